from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from renthub.config import account_cas_attempts
from renthub.errors import AppError, not_found
from renthub.repositories.base_repository import get_collection
from renthub.utils import id_filter, now_utc

logger = logging.getLogger(__name__)

# Embedded lists written back by a CAS mutation
_MUTABLE_FIELDS = ("bookings", "notifications")


@dataclass
class Mutation:
    """What a mutator hands back to AccountRepository.mutate.

    `changed=False` skips the write entirely (idempotent no-op).
    """

    value: Any = None
    changed: bool = True


Mutator = Callable[[Dict[str, Any]], Mutation]


def _version_of(doc: Dict[str, Any]) -> int:
    lock = doc.get("lock") or {}
    return int(lock.get("version", 0))


def _version_filter(doc: Dict[str, Any]) -> Dict[str, Any]:
    version = _version_of(doc)
    if version:
        return {"_id": doc["_id"], "lock.version": version}
    return {
        "_id": doc["_id"],
        "$or": [{"lock.version": 0}, {"lock.version": {"$exists": False}}],
    }


class AccountRepository:
    """Access layer for the `accounts` collection.

    An account embeds its products, the bookings filed against it (as
    owner) and its notifications. Every write made here increments
    `lock.version`, which is what `mutate` compares against.
    """

    def __init__(self, db: AsyncIOMotorDatabase, *, max_attempts: Optional[int] = None) -> None:
        self._db = db
        self._col = get_collection(db, "accounts")
        self._max_attempts = max_attempts or account_cas_attempts()

    async def get(self, account_id: str) -> Optional[Dict[str, Any]]:
        if not account_id:
            return None
        return await self._col.find_one(id_filter(str(account_id)))

    async def find_by_booking(self, booking_id: str) -> Optional[Dict[str, Any]]:
        """Return the owner account embedding `booking_id` (indexed on bookings._id)."""

        return await self._col.find_one({"bookings._id": booking_id})

    async def find_by_participant(self, party_id: str) -> List[Dict[str, Any]]:
        cursor = self._col.find(
            {"$or": [{"bookings.from": party_id}, {"bookings.to": party_id}]},
            {"bookings": 1},
        )
        return await cursor.to_list(None)

    async def mutate(self, account_id: str, mutator: Mutator) -> Tuple[Dict[str, Any], Any]:
        """Read-modify-write an account with compare-and-set on lock.version.

        The mutator receives a freshly read document on every attempt and
        edits its embedded lists in place. AppError raised by the mutator
        aborts without writing. Returns (account_after, mutation.value).
        """

        for attempt in range(1, self._max_attempts + 1):
            current = await self.get(account_id)
            if not current:
                raise not_found("account", account_id)

            for field in _MUTABLE_FIELDS:
                current.setdefault(field, [])

            mutation = mutator(current)
            if not mutation.changed:
                return current, mutation.value

            updated = await self._col.find_one_and_update(
                _version_filter(current),
                {
                    "$set": {
                        **{field: current[field] for field in _MUTABLE_FIELDS},
                        "updated_at": now_utc(),
                    },
                    "$inc": {"lock.version": 1},
                },
                return_document=ReturnDocument.AFTER,
            )
            if updated is not None:
                return updated, mutation.value

            logger.info(
                "Concurrent write on account %s, retrying (attempt %d/%d)",
                account_id,
                attempt,
                self._max_attempts,
            )

        raise AppError(
            409,
            "account_concurrency_conflict",
            "Concurrent modification detected for account",
            {"account_id": account_id},
            retryable=True,
        )

    async def push_notification(self, account_id: str, notification: Dict[str, Any]) -> bool:
        """Atomically append one notification. Returns False if the account is absent."""

        res = await self._col.update_one(
            id_filter(str(account_id)),
            {
                "$push": {"notifications": notification},
                "$set": {"updated_at": now_utc()},
                "$inc": {"lock.version": 1},
            },
        )
        return res.matched_count > 0
