"""
Indexes for the accounts collection.

Bookings and notifications are embedded in their owning account; the
multikey indexes below let the service resolve a booking to its owner and
list a party's bookings without scanning every account.
"""
from __future__ import annotations

from pymongo import ASCENDING
from pymongo.errors import OperationFailure
import logging

logger = logging.getLogger(__name__)


async def ensure_account_indexes(db):
    """Ensure indexes for the accounts collection.

    An index with the same name but different options left over from an
    older deployment is kept (logged) instead of blocking startup.
    """

    async def _safe_create(collection, *args, **kwargs):
        try:
            await collection.create_index(*args, **kwargs)
        except OperationFailure as e:
            msg = str(e).lower()
            if (
                "indexoptionsconflict" in msg
                or "indexkeyspecsconflict" in msg
                or "already exists" in msg
            ):
                logger.warning(
                    "[account_indexes] Keeping legacy index for %s (name=%s): %s",
                    collection.name,
                    kwargs.get("name"),
                    msg,
                )
                return
            raise

    await _safe_create(
        db.accounts,
        [("email", ASCENDING)],
        unique=True,
        sparse=True,
        name="uniq_account_email",
    )
    await _safe_create(
        db.accounts,
        [("bookings._id", ASCENDING)],
        name="accounts_by_booking_id",
    )
    await _safe_create(
        db.accounts,
        [("bookings.from", ASCENDING)],
        name="accounts_by_booking_tenant",
    )
    await _safe_create(
        db.accounts,
        [("bookings.to", ASCENDING)],
        name="accounts_by_booking_owner",
    )
