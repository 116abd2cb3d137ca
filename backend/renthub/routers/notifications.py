from __future__ import annotations

from fastapi import APIRouter, Depends

from renthub.config import API_PREFIX
from renthub.db import get_db
from renthub.schemas import MessageResponse, NotificationListResponse, NotificationOut
from renthub.services.notifications import NotificationEmitter
from renthub.utils import serialize_doc

router = APIRouter(prefix=API_PREFIX, tags=["notifications"])


@router.get("/{account_id}/notifications", response_model=NotificationListResponse)
async def list_notifications(account_id: str, db=Depends(get_db)) -> NotificationListResponse:
    notifications = await NotificationEmitter(db).list_for_account(account_id)
    return NotificationListResponse(
        message="Notifications fetched",
        notifications=[NotificationOut.model_validate(serialize_doc(n)) for n in notifications],
    )


@router.put("/{account_id}/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_read(account_id: str, notification_id: str, db=Depends(get_db)) -> MessageResponse:
    await NotificationEmitter(db).mark_read(account_id, notification_id)
    return MessageResponse(message="Notification marked as read")
