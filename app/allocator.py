from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from loguru import logger
from tortoise.exceptions import DBConnectionError, OperationalError
from tortoise.models import Model
from tortoise.transactions import in_transaction

from app.exceptions import StorageUnavailableError
from app.models import BookingDetails, CustomerDetails, PaymentDetails

COLLECTIONS: dict[str, type[Model]] = {
    "bookings": BookingDetails,
    "customers": CustomerDetails,
    "payments": PaymentDetails,
}

# IntegrityError subclasses OperationalError, so a cross-process id collision
# surfaces as a storage failure rather than a duplicate row.
STORAGE_ERRORS = (OperationalError, DBConnectionError)

T = TypeVar("T", bound=Model)


@contextmanager
def storage_guard(action: str) -> Iterator[None]:
    """Re-raise ORM/driver failures inside the block as StorageUnavailableError."""
    try:
        yield
    except STORAGE_ERRORS as exc:
        logger.error("Storage failure while {}: {}", action, exc)
        raise StorageUnavailableError(f"Storage unavailable while {action}") from exc


def model_for(collection: str) -> type[Model]:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection!r}") from None


class IdentifierAllocator:
    """
    Hands out the next integer id for a collection.

    The id is derived from the stored rows on every call (MAX(id) + 1, or 1
    for an empty collection). There is no stored counter, so rows removed out
    of band never lead to a collision, and a rejected write never consumes an id.

    `next_id` alone is NOT safe under concurrency: two callers can read the
    same maximum. Rows must be created through `allocate_and_insert`, which
    holds a per-collection lock and a transaction across the read and the insert.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    async def next_id(self, collection: str) -> int:
        model = model_for(collection)
        with storage_guard(f"reading max id of {collection}"):
            last = await model.all().order_by("-id").first()
        return last.pk + 1 if last is not None else 1

    async def allocate_and_insert(
        self,
        collection: str,
        insert: Callable[[int], Awaitable[T]],
    ) -> T:
        """
        Allocate the next id and run `insert(new_id)` as one indivisible step.

        `insert` runs inside the collection's critical section, so it may also
        look up existing rows (e.g. an idempotency key) without racing other
        writers of the same collection.
        """
        async with self._lock_for(collection):
            with storage_guard(f"inserting into {collection}"):
                async with in_transaction():
                    new_id = await self.next_id(collection)
                    return await insert(new_id)


allocator = IdentifierAllocator()
