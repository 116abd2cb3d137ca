from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from renthub import config
from renthub.domain.booking_state_machine import can_pay, state_of
from renthub.errors import AppError, invalid_state, not_found, signature_mismatch
from renthub.repositories.account_repository import AccountRepository, Mutation
from renthub.services import razorpay_adapter
from renthub.services.booking_lifecycle import find_booking
from renthub.services.notifications import (
    PAYMENT_SUCCEEDED_TENANT,
    NotificationEmitter,
    build_notification,
    payment_received_owner,
)
from renthub.utils import hmac_sha256_hex, now_utc, signatures_match

logger = logging.getLogger(__name__)


def to_minor_units(price: Any) -> int:
    """Convert a major-unit price to the gateway's minor unit (paise).

    Raises a 400 AppError for prices that are not finite or fall outside
    [0, MAX_BOOKING_PRICE], instead of letting the conversion overflow.
    """

    try:
        value = float(price)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value) or not 0 <= value <= config.MAX_BOOKING_PRICE:
        raise AppError(
            400,
            "invalid_booking_price",
            "Booking price cannot be charged",
            {"price": str(price), "max_price": config.MAX_BOOKING_PRICE},
        )
    return int(round(value * 100))


def payment_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """HMAC-SHA256 hex digest Razorpay signs a checkout callback with."""

    secret = secret if secret is not None else config.razorpay_key_secret()
    return hmac_sha256_hex(secret, f"{order_id}|{payment_id}")


def _assert_orderable(booking: Dict[str, Any], booking_id: str) -> None:
    status, payment_status = state_of(booking)
    if payment_status == "success":
        raise invalid_state("booking_already_paid", "Booking is already paid", booking_id=booking_id)
    if status != "accepted":
        raise invalid_state(
            "booking_not_accepted",
            "Booking must be accepted before payment",
            status_code=400,
            booking_id=booking_id,
            status=status,
        )


class PaymentOrderService:
    """Opens at most one Razorpay order per booking.

    While the booking is unpaid, repeated calls return the order already on
    record, so every checkout the tenant opens pays into the order that
    verification matches against.
    """

    def __init__(self, db) -> None:
        self.accounts = AccountRepository(db)

    def _order_response(self, order_id: str, amount: int, currency: str) -> Dict[str, Any]:
        return {
            "order_id": order_id,
            "amount": amount,
            "currency": currency,
            "key": razorpay_adapter.public_key_id(),
        }

    async def create_order(self, booking_id: str) -> Dict[str, Any]:
        owner = await self.accounts.find_by_booking(booking_id)
        if not owner:
            raise not_found("booking", booking_id)

        booking = find_booking(owner, booking_id)
        _assert_orderable(booking, booking_id)
        amount = to_minor_units(booking.get("price", 0))

        existing_order_id = booking.get("gateway_order_id")
        if existing_order_id:
            logger.info("Reusing Razorpay order %s for booking %s", existing_order_id, booking_id)
            return self._order_response(existing_order_id, amount, config.PAYMENT_CURRENCY)

        order = await razorpay_adapter.create_order(
            amount=amount,
            currency=config.PAYMENT_CURRENCY,
            receipt=f"{config.RECEIPT_PREFIX}{booking_id}",
        )
        order_id = order["id"]

        def _record(account: Dict[str, Any]) -> Mutation:
            current = find_booking(account, booking_id)
            _assert_orderable(current, booking_id)
            if current.get("gateway_order_id"):
                # A concurrent call recorded its order first; keep that one
                return Mutation(current["gateway_order_id"], changed=False)
            current["gateway_order_id"] = order_id
            current["updated_at"] = now_utc()
            return Mutation(order_id)

        try:
            _, recorded_order_id = await self.accounts.mutate(str(owner["_id"]), _record)
        except Exception:
            # The order now exists upstream without a local record.
            logger.error("Razorpay order %s opened for booking %s but not recorded", order_id, booking_id)
            raise

        if recorded_order_id != order_id:
            logger.warning(
                "Razorpay order %s for booking %s superseded by concurrent order %s",
                order_id,
                booking_id,
                recorded_order_id,
            )
            return self._order_response(recorded_order_id, amount, config.PAYMENT_CURRENCY)

        logger.info("Razorpay order %s opened for booking %s (amount=%d)", order_id, booking_id, amount)
        return self._order_response(
            order_id,
            order.get("amount", amount),
            order.get("currency", config.PAYMENT_CURRENCY),
        )


class PaymentVerifier:
    """Validates a gateway checkout callback and marks the booking paid.

    Safe to call repeatedly with the same payload: once a booking is paid
    with a given payment id, further calls return it unchanged and emit
    no notifications.
    """

    def __init__(self, db) -> None:
        self.accounts = AccountRepository(db)
        self.notifications = NotificationEmitter(db)

    async def verify_payment(
        self,
        booking_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> Dict[str, Any]:
        secret = config.razorpay_key_secret()
        if not secret:
            raise AppError(500, "payment_gateway_not_configured", "Razorpay key secret not configured.")

        expected = payment_signature(gateway_order_id, gateway_payment_id, secret)
        if not signatures_match(signature, expected):
            logger.warning("Rejected payment callback for booking %s: signature mismatch", booking_id)
            raise signature_mismatch()

        owner = await self.accounts.find_by_booking(booking_id)
        if not owner:
            raise not_found("booking", booking_id)

        tenant_id = find_booking(owner, booking_id).get("from")
        tenant = await self.accounts.get(tenant_id)
        tenant_name = tenant.get("name") if tenant else None

        def _mark_paid(account: Dict[str, Any]) -> Mutation:
            booking = find_booking(account, booking_id)
            status, payment_status = state_of(booking)

            if payment_status == "success":
                if booking.get("gateway_payment_id") == gateway_payment_id:
                    return Mutation((booking, False), changed=False)
                raise invalid_state("booking_already_paid", "Booking is already paid", booking_id=booking_id)

            if not can_pay(booking):
                raise invalid_state(
                    "booking_not_accepted",
                    "Booking must be accepted before payment",
                    booking_id=booking_id,
                    status=status,
                    payment_status=payment_status,
                )

            stored_order_id = booking.get("gateway_order_id")
            if not stored_order_id:
                raise invalid_state(
                    "payment_order_missing",
                    "No payment order has been created for this booking",
                    booking_id=booking_id,
                )
            if stored_order_id != gateway_order_id:
                raise invalid_state(
                    "payment_order_mismatch",
                    "Payment order does not belong to this booking",
                    booking_id=booking_id,
                )

            booking["payment_status"] = "success"
            booking["gateway_payment_id"] = gateway_payment_id
            booking["updated_at"] = now_utc()
            account["notifications"].append(build_notification(*payment_received_owner(tenant_name)))
            return Mutation((booking, True))

        _, (booking, changed) = await self.accounts.mutate(str(owner["_id"]), _mark_paid)
        if not changed:
            logger.info("Payment %s already recorded for booking %s", gateway_payment_id, booking_id)
            return booking

        logger.info("Payment %s verified for booking %s", gateway_payment_id, booking_id)
        await self.notifications.emit_if_present(tenant_id, PAYMENT_SUCCEEDED_TENANT)
        return booking
