from __future__ import annotations

from fastapi import APIRouter, Depends

from renthub.config import API_PREFIX
from renthub.db import get_db
from renthub.schemas import (
    BookingCreateRequest,
    BookingListResponse,
    BookingOut,
    BookingResponse,
    MessageResponse,
)
from renthub.services.booking_lifecycle import BookingLifecycleService
from renthub.utils import serialize_doc

router = APIRouter(prefix=f"{API_PREFIX}/bookings", tags=["bookings"])


def _booking_out(booking: dict) -> BookingOut:
    return BookingOut.model_validate(serialize_doc(booking))


@router.post("/{owner_id}", status_code=201, response_model=MessageResponse)
async def create_booking(owner_id: str, payload: BookingCreateRequest, db=Depends(get_db)) -> MessageResponse:
    """File a booking request against the owner's account."""
    service = BookingLifecycleService(db)
    await service.create_booking(
        owner_id,
        from_=payload.from_,
        to=payload.to,
        date=payload.date,
        time=payload.time,
        price=payload.price,
    )
    return MessageResponse(message="Booking added and owner notified")


@router.post("/{owner_id}/{booking_id}/accept", response_model=BookingResponse)
async def accept_booking(owner_id: str, booking_id: str, db=Depends(get_db)) -> BookingResponse:
    booking = await BookingLifecycleService(db).accept_booking(owner_id, booking_id)
    return BookingResponse(message="Booking accepted", booking=_booking_out(booking))


@router.post("/{owner_id}/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(owner_id: str, booking_id: str, db=Depends(get_db)) -> BookingResponse:
    booking = await BookingLifecycleService(db).reject_booking(owner_id, booking_id)
    return BookingResponse(message="Booking rejected", booking=_booking_out(booking))


@router.get("/{party_id}", response_model=BookingListResponse)
async def list_bookings(party_id: str, db=Depends(get_db)) -> BookingListResponse:
    """Bookings where the party is either the tenant or the owner."""
    bookings = await BookingLifecycleService(db).list_for_party(party_id)
    return BookingListResponse(
        message="Bookings fetched",
        bookings=[_booking_out(b) for b in bookings],
    )
