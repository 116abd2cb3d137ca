from __future__ import annotations

from fastapi import APIRouter, Depends

from renthub.config import API_PREFIX
from renthub.db import get_db
from renthub.schemas import (
    BookingOut,
    BookingResponse,
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
)
from renthub.services.payments import PaymentOrderService, PaymentVerifier
from renthub.utils import serialize_doc

router = APIRouter(prefix=f"{API_PREFIX}/payments", tags=["payments"])


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(payload: CreateOrderRequest, db=Depends(get_db)) -> CreateOrderResponse:
    """Open a Razorpay order for an accepted booking."""
    order = await PaymentOrderService(db).create_order(payload.booking_id)
    return CreateOrderResponse(message="Order created", **order)


@router.post("/verify", response_model=BookingResponse)
async def verify_payment(payload: VerifyPaymentRequest, db=Depends(get_db)) -> BookingResponse:
    """Razorpay checkout callback: verify the signature and mark the booking paid."""
    booking = await PaymentVerifier(db).verify_payment(
        payload.booking_id,
        payload.gateway_order_id,
        payload.gateway_payment_id,
        payload.signature,
    )
    return BookingResponse(
        message="Payment verified and booking updated",
        booking=BookingOut.model_validate(serialize_doc(booking)),
    )
