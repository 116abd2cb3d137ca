from __future__ import annotations

"""Razorpay adapter layer.

Isolates the Razorpay SDK from the rest of the codebase behind a minimal
async API surface. Functions are small and stateless so they can be
monkeypatched in tests.
"""

import logging
from typing import Any, Dict

import anyio
import razorpay  # type: ignore
from razorpay.errors import BadRequestError, GatewayError, ServerError
import requests

from renthub.config import razorpay_key_id, razorpay_key_secret
from renthub.errors import AppError, upstream_gateway_error

logger = logging.getLogger(__name__)


def _razorpay_client() -> razorpay.Client:
    key_id = razorpay_key_id()
    key_secret = razorpay_key_secret()
    if not key_id or not key_secret:
        raise AppError(
            500,
            "payment_gateway_not_configured",
            "Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.",
        )
    return razorpay.Client(auth=(key_id, key_secret))


def public_key_id() -> str:
    key_id = razorpay_key_id()
    if not key_id:
        raise AppError(500, "payment_gateway_not_configured", "Razorpay key id not configured.")
    return key_id


async def create_order(*, amount: int, currency: str, receipt: str) -> Dict[str, Any]:
    """Open a Razorpay order for `amount` minor units.

    The SDK is synchronous (requests based) and runs in a worker thread.
    Gateway failures surface as a 502 AppError; nothing is retried.
    """

    if amount < 0:
        raise ValueError("amount must be >= 0")

    client = _razorpay_client()

    def _create() -> Dict[str, Any]:  # pragma: no cover - thin sync wrapper
        return client.order.create({"amount": amount, "currency": currency, "receipt": receipt})

    try:
        order = await anyio.to_thread.run_sync(_create)
    except (
        BadRequestError,
        GatewayError,
        ServerError,
        requests.RequestException,
    ) as exc:
        logger.warning("Razorpay order creation failed for receipt %s: %s", receipt, exc)
        raise upstream_gateway_error("Payment gateway order creation failed", receipt=receipt) from exc

    return dict(order)
