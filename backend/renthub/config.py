from __future__ import annotations

"""Application-level configuration.

Everything is read from the environment. Secrets are read lazily through
accessor functions so tests and deployments can inject them after import.
"""

import os


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean-like flag from environment.

    Accepted falsy values: "0", "false", "off", "no" (case-insensitive).
    Anything else unrecognised (or unset) falls back to `default`.
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"0", "false", "off", "no"}:
        return False
    if value in {"1", "true", "on", "yes"}:
        return True
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# Application constants
API_PREFIX = "/api"

# GET /api/bookings/notifications resolves to the bookings listing, so an
# account with this id could never read its notification feed
RESERVED_ACCOUNT_IDS = frozenset({"bookings"})
APP_NAME = "RentHub Booking API"
APP_VERSION = "1.0.0"
SERVICE_NAME = "renthub"

# Razorpay works in the currency's minor unit (paise for INR)
PAYMENT_CURRENCY = "INR"
RECEIPT_PREFIX = "renthub_rcpt_"

# Upper bound on a booking price in rupees; keeps the paise amount a sane integer
MAX_BOOKING_PRICE = 10_000_000


def allow_reacceptance() -> bool:
    """Whether owners may correct a decision (rejected -> accepted, accepted -> rejected before payment)."""

    return _env_flag("ALLOW_REACCEPTANCE", default=False)


def account_cas_attempts() -> int:
    return _env_int("ACCOUNT_CAS_ATTEMPTS", 3)


def razorpay_key_id() -> str:
    return os.environ.get("RAZORPAY_KEY_ID", "")


def razorpay_key_secret() -> str:
    return os.environ.get("RAZORPAY_KEY_SECRET", "")
