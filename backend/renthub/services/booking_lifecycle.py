from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from renthub import config
from renthub.domain.booking_state_machine import (
    BookingStateTransitionError,
    apply_transition,
    plan_transition,
    state_of,
)
from renthub.errors import invalid_state, not_found, owner_mismatch, reserved_account_id
from renthub.repositories.account_repository import AccountRepository, Mutation
from renthub.services.notifications import (
    BOOKING_ACCEPTED_TENANT,
    BOOKING_REJECTED_TENANT,
    BOOKING_REQUESTED_OWNER,
    BOOKING_REQUESTED_TENANT,
    NotificationEmitter,
    build_notification,
)
from renthub.utils import new_id, now_utc

logger = logging.getLogger(__name__)


def find_booking(account: Dict[str, Any], booking_id: str) -> Dict[str, Any]:
    for booking in account.get("bookings") or []:
        if str(booking.get("_id")) == booking_id:
            return booking
    raise not_found("booking", booking_id)


class BookingLifecycleService:
    """Creates bookings and moves them between pending/accepted/rejected.

    The booking lives in the owner's account; the owner-side change and any
    owner notification are a single CAS write. The tenant is notified
    afterwards, only if its account exists.
    """

    _TENANT_CONTENT = {
        "accept": BOOKING_ACCEPTED_TENANT,
        "reject": BOOKING_REJECTED_TENANT,
    }

    def __init__(self, db, *, allow_reacceptance: Optional[bool] = None) -> None:
        self.accounts = AccountRepository(db)
        self.notifications = NotificationEmitter(db)
        if allow_reacceptance is None:
            allow_reacceptance = config.allow_reacceptance()
        self.allow_reacceptance = allow_reacceptance

    async def create_booking(
        self,
        owner_id: str,
        *,
        from_: str,
        to: str,
        date: str,
        time: str,
        price: float,
    ) -> Dict[str, Any]:
        for party_id in (owner_id, from_):
            if party_id in config.RESERVED_ACCOUNT_IDS:
                raise reserved_account_id(party_id)

        def _create(account: Dict[str, Any]) -> Mutation:
            if to != str(account["_id"]):
                raise owner_mismatch(owner_id, to)

            now = now_utc()
            booking = {
                "_id": new_id(),
                "from": from_,
                "to": to,
                "date": date,
                "time": time,
                "price": price,
                "status": "pending",
                "payment_status": "pending",
                "gateway_order_id": None,
                "gateway_payment_id": None,
                "created_at": now,
                "updated_at": now,
            }
            account["bookings"].append(booking)
            account["notifications"].append(build_notification(*BOOKING_REQUESTED_OWNER))
            return Mutation(booking)

        _, booking = await self.accounts.mutate(owner_id, _create)
        logger.info("Booking %s requested by %s from owner %s", booking["_id"], from_, owner_id)

        await self.notifications.emit_if_present(from_, BOOKING_REQUESTED_TENANT)
        return booking

    async def accept_booking(self, owner_id: str, booking_id: str) -> Dict[str, Any]:
        return await self._transition(owner_id, booking_id, "accept")

    async def reject_booking(self, owner_id: str, booking_id: str) -> Dict[str, Any]:
        return await self._transition(owner_id, booking_id, "reject")

    async def _transition(self, owner_id: str, booking_id: str, action: str) -> Dict[str, Any]:
        def _apply(account: Dict[str, Any]) -> Mutation:
            booking = find_booking(account, booking_id)
            try:
                changed = plan_transition(booking, action, allow_reacceptance=self.allow_reacceptance)
            except BookingStateTransitionError as exc:
                status, payment_status = state_of(booking)
                raise invalid_state(
                    "invalid_booking_transition",
                    str(exc),
                    booking_id=booking_id,
                    status=status,
                    payment_status=payment_status,
                ) from exc

            if not changed:
                return Mutation((booking, False), changed=False)

            apply_transition(booking, action)
            booking["updated_at"] = now_utc()
            return Mutation((booking, True))

        _, (booking, changed) = await self.accounts.mutate(owner_id, _apply)
        if not changed:
            logger.info("Booking %s already in target state for %s, nothing to do", booking_id, action)
            return booking

        logger.info("Booking %s %sed by owner %s", booking_id, action, owner_id)
        await self.notifications.emit_if_present(booking.get("from"), self._TENANT_CONTENT[action])
        return booking

    async def list_for_party(self, party_id: str) -> List[Dict[str, Any]]:
        accounts = await self.accounts.find_by_participant(party_id)
        return [
            booking
            for account in accounts
            for booking in account.get("bookings") or []
            if booking.get("from") == party_id or booking.get("to") == party_id
        ]
