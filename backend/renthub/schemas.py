from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from renthub.config import MAX_BOOKING_PRICE


class CamelModel(BaseModel):
    """Snake_case in Python and Mongo, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, le=MAX_BOOKING_PRICE, allow_inf_nan=False)


BookingStatus = Literal["pending", "accepted", "rejected"]
PaymentStatus = Literal["pending", "success", "failed"]


class BookingOut(CamelModel):
    id: str
    from_: str = Field(..., alias="from")
    to: str
    date: str
    time: str
    price: float
    status: BookingStatus
    payment_status: PaymentStatus
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingResponse(BaseModel):
    message: str
    booking: BookingOut


class BookingListResponse(BaseModel):
    message: str
    bookings: List[BookingOut]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationOut(CamelModel):
    id: str
    title: str
    message: str
    type: Literal["info", "success", "warning", "alert"] = "info"
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    message: str
    notifications: List[NotificationOut]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class CreateOrderRequest(BaseModel):
    booking_id: str = Field(..., min_length=1, validation_alias=AliasChoices("bookingId", "booking_id"))


class CreateOrderResponse(CamelModel):
    message: str
    order_id: str
    amount: int
    currency: str
    key: str


class VerifyPaymentRequest(BaseModel):
    # Razorpay checkout hands back razorpay_* field names; accept them as-is
    booking_id: str = Field(..., min_length=1, validation_alias=AliasChoices("bookingId", "booking_id"))
    gateway_order_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("gatewayOrderId", "razorpay_order_id", "gateway_order_id"),
    )
    gateway_payment_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("gatewayPaymentId", "razorpay_payment_id", "gateway_payment_id"),
    )
    signature: str = Field(..., validation_alias=AliasChoices("signature", "razorpay_signature"))
