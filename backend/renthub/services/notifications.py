from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from pymongo.errors import PyMongoError

from renthub.errors import not_found
from renthub.repositories.account_repository import AccountRepository, Mutation
from renthub.utils import new_id, now_utc

logger = logging.getLogger(__name__)


NotificationType = Literal["info", "success", "warning", "alert"]

VALID_TYPES = ("info", "success", "warning", "alert")


# Content per lifecycle event: (title, message, type)
BOOKING_REQUESTED_OWNER = ("New Booking Request", "You have a new booking request.", "info")
BOOKING_REQUESTED_TENANT = ("Booking Request Sent", "Your booking request has been sent to the owner.", "info")
BOOKING_ACCEPTED_TENANT = (
    "Booking Accepted",
    "Your booking request was accepted. Please complete the payment to confirm.",
    "success",
)
BOOKING_REJECTED_TENANT = ("Booking Rejected", "The owner rejected your booking request.", "alert")
PAYMENT_SUCCEEDED_TENANT = ("Payment Successful", "Your payment was successful. Booking is confirmed.", "success")


def payment_received_owner(tenant_name: Optional[str]) -> tuple[str, str, str]:
    if tenant_name:
        message = f"Payment received for a booking from {tenant_name}."
    else:
        message = "Payment received for a booking."
    return ("Payment Received", message, "success")


def build_notification(title: str, message: str, notification_type: str = "info") -> Dict[str, Any]:
    if notification_type not in VALID_TYPES:
        notification_type = "info"

    return {
        "_id": new_id(),
        "title": title,
        "message": message,
        "type": notification_type,
        "is_read": False,
        "created_at": now_utc(),
    }


class NotificationEmitter:
    """Appends notification records to accounts.

    Notifications for the account a service is already mutating are built
    with `build_notification` and written inside that same CAS write.
    `emit_if_present` covers the secondary party.
    """

    def __init__(self, db) -> None:
        self.accounts = AccountRepository(db)

    async def emit_if_present(
        self,
        account_id: Optional[str],
        content: tuple[str, str, str],
    ) -> Optional[Dict[str, Any]]:
        """Notify `account_id` if that account exists.

        Returns the stored notification, or None when the account is
        missing or the append failed. Never raises for a missing account.
        """

        if not account_id:
            return None

        title, message, notification_type = content
        notification = build_notification(title, message, notification_type)
        try:
            delivered = await self.accounts.push_notification(account_id, notification)
        except PyMongoError as exc:
            logger.warning("Notification %r for account %s not stored: %s", title, account_id, exc)
            return None

        if not delivered:
            logger.info("Account %s not found, skipping notification %r", account_id, title)
            return None
        return notification

    async def list_for_account(self, account_id: str) -> List[Dict[str, Any]]:
        account = await self.accounts.get(account_id)
        if not account:
            raise not_found("account", account_id)
        return list(account.get("notifications") or [])

    async def mark_read(self, account_id: str, notification_id: str) -> Dict[str, Any]:
        def _mark(account: Dict[str, Any]) -> Mutation:
            for notification in account["notifications"]:
                if str(notification.get("_id")) == notification_id:
                    if notification.get("is_read"):
                        return Mutation(notification, changed=False)
                    notification["is_read"] = True
                    return Mutation(notification)
            raise not_found("notification", notification_id)

        _, notification = await self.accounts.mutate(account_id, _mark)
        return notification
