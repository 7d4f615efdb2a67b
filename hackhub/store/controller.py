# hackhub/store/controller.py
"""
Fallback controller: the single storage entry point of the service.

Behaviour:
- Starts in DURABLE mode on top of a durable AggregateStore.
- The first connectivity-class failure (StorageUnavailable, including an
  operation timeout) switches the whole process to FALLBACK mode, for good.
  The failed operation is then re-run against an in-memory store seeded with
  the last known data set (or the fixed seed set when the durable store never
  connected), so the caller sees no error.
- Data errors (StorageDataError) are surfaced and never switch modes.
- update() applies a mutator under a per-aggregate lock: read, mutate, write
  back, all while holding the lock for that id. Locks are dropped once no
  caller references them.

Writes made in FALLBACK mode are volatile: a restart loses them.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from hackhub.errors import NotFound, StorageDataError, StorageUnavailable
from hackhub.metrics import STORAGE_ERRORS, STORAGE_FALLBACK
from hackhub.models import Hackathon, Payment
from hackhub.store.base import AggregateStore
from hackhub.store.memory_store import MemoryStore
from hackhub.store.seed import seed_hackathons
from hackhub.utils import utc_iso_now

logger = logging.getLogger("hackhub.storage")

T = TypeVar("T")

HackathonMutator = Callable[[Hackathon], None]
PaymentMutator = Callable[[Payment], None]


class StorageMode(str, Enum):
    DURABLE = "durable"
    FALLBACK = "fallback"


class StorageController:
    def __init__(
        self,
        durable: Optional[AggregateStore],
        *,
        seed: Optional[Iterable[Hackathon]] = None,
        timeout_seconds: float = 10.0,
        fallback_enabled: bool = True,
    ) -> None:
        self._durable = durable
        self._seed: List[Hackathon] = list(seed) if seed is not None else seed_hackathons()
        self.timeout_seconds = timeout_seconds
        self.fallback_enabled = fallback_enabled

        self._mode = StorageMode.DURABLE
        self._memory: Optional[MemoryStore] = None
        self._connected = False
        self.fallback_reason: Optional[str] = None
        self.fallback_since: Optional[str] = None

        # Mirror of the durable data set, used to seed the memory store.
        self._last_hackathons: Dict[str, Hackathon] = {}
        self._last_payments: Dict[str, Payment] = {}

        # An entry lives only while some caller holds or waits on the lock.
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    # ------------------------------------------------------------------
    # Mode inspection
    # ------------------------------------------------------------------
    @property
    def mode(self) -> StorageMode:
        return self._mode

    @property
    def is_fallback(self) -> bool:
        return self._mode is StorageMode.FALLBACK

    def describe(self) -> Dict[str, Any]:
        return {
            "mode": self._mode.value,
            "backend": self._durable.name if self._durable is not None else None,
            "durable": not self.is_fallback,
            "connected": self._connected,
            "fallbackEnabled": self.fallback_enabled,
            "fallbackReason": self.fallback_reason,
            "fallbackSince": self.fallback_since,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Connect the durable store and load (or seed) its data set."""
        if self._durable is None:
            self._enter_fallback("no durable store configured")
            return

        try:
            await self._call(self._durable.connect())
            hackathons = await self._call(self._durable.list_hackathons())
            if not hackathons:
                logger.info("Seeding initial hackathon data (%d documents)", len(self._seed))
                for h in self._seed:
                    await self._call(self._durable.insert_hackathon(h))
                hackathons = [h.model_copy(deep=True) for h in self._seed]
            payments = await self._call(self._durable.list_payments())
        except StorageUnavailable as exc:
            STORAGE_ERRORS.labels(kind="unavailable").inc()
            if not self.fallback_enabled:
                raise
            self._enter_fallback(f"start: {exc}")
            return

        self._connected = True
        for h in hackathons:
            self._remember_hackathon(h)
        for p in payments:
            self._remember_payment(p)
        logger.info(
            "Storage ready (%s): %d hackathons, %d payments",
            self._durable.name,
            len(hackathons),
            len(payments),
        )

    async def close(self) -> None:
        if self._durable is not None:
            try:
                await self._durable.close()
            except StorageUnavailable as exc:
                logger.warning("Error closing durable store: %s", exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _call(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise StorageUnavailable(f"storage operation timed out after {self.timeout_seconds}s") from exc

    def _enter_fallback(self, reason: str) -> None:
        if self._mode is StorageMode.FALLBACK:
            return

        if self._connected:
            self._memory = MemoryStore(self._last_hackathons.values(), self._last_payments.values())
            source = "last known data set"
        else:
            self._memory = MemoryStore(self._seed)
            source = "seed data set"

        self._mode = StorageMode.FALLBACK
        self.fallback_reason = reason
        self.fallback_since = utc_iso_now()
        STORAGE_FALLBACK.set(1)
        logger.warning(
            "Durable storage unavailable (%s). Switching to in-memory storage seeded from the %s; "
            "data will not persist between restarts.",
            reason,
            source,
        )

    async def _run(self, operation: str, fn: Callable[[AggregateStore], Awaitable[T]]) -> T:
        if self._mode is StorageMode.DURABLE:
            try:
                return await self._call(fn(self._durable))
            except StorageUnavailable as exc:
                STORAGE_ERRORS.labels(kind="unavailable").inc()
                if not self.fallback_enabled:
                    raise
                self._enter_fallback(f"{operation}: {exc}")
            except StorageDataError:
                STORAGE_ERRORS.labels(kind="data").inc()
                raise
        return await fn(self._memory)

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _remember_hackathon(self, hackathon: Hackathon) -> None:
        if not self.is_fallback:
            self._last_hackathons[hackathon.id] = hackathon.model_copy(deep=True)

    def _remember_payment(self, payment: Payment) -> None:
        if not self.is_fallback:
            self._last_payments[payment.id] = payment.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Hackathon aggregate
    # ------------------------------------------------------------------
    async def list_hackathons(self) -> List[Hackathon]:
        return await self._run("list_hackathons", lambda store: store.list_hackathons())

    async def read(self, hackathon_id: str) -> Hackathon:
        hackathon = await self._run("read", lambda store: store.get_hackathon(hackathon_id))
        if hackathon is None:
            raise NotFound("hackathon", hackathon_id)
        self._remember_hackathon(hackathon)
        return hackathon

    async def insert(self, hackathon: Hackathon) -> Hackathon:
        stored = await self._run("insert", lambda store: store.insert_hackathon(hackathon))
        self._remember_hackathon(stored)
        return stored

    async def delete(self, hackathon_id: str) -> bool:
        lock = self._lock_for(f"hackathon:{hackathon_id}")
        async with lock:
            deleted = await self._run("delete", lambda store: store.delete_hackathon(hackathon_id))
        if deleted and not self.is_fallback:
            self._last_hackathons.pop(hackathon_id, None)
        return deleted

    async def update(self, hackathon_id: str, mutator: HackathonMutator) -> Hackathon:
        """
        Read the aggregate, apply `mutator` in place, write it back.

        Runs under the lock of `hackathon_id`. If the mutator raises, nothing
        is written and the exception propagates.
        """

        async def apply(store: AggregateStore) -> Hackathon:
            current = await store.get_hackathon(hackathon_id)
            if current is None:
                raise NotFound("hackathon", hackathon_id)
            mutator(current)
            if not await store.replace_hackathon(current):
                raise NotFound("hackathon", hackathon_id)
            return current

        lock = self._lock_for(f"hackathon:{hackathon_id}")
        async with lock:
            updated = await self._run("update", apply)
            self._remember_hackathon(updated)
        return updated

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------
    async def list_payments(self) -> List[Payment]:
        return await self._run("list_payments", lambda store: store.list_payments())

    async def insert_payment(self, payment: Payment) -> Payment:
        stored = await self._run("insert_payment", lambda store: store.insert_payment(payment))
        self._remember_payment(stored)
        return stored

    async def read_payment(self, order_id: str) -> Payment:
        payment = await self._run("read_payment", lambda store: store.get_payment_by_order(order_id))
        if payment is None:
            raise NotFound("payment", order_id)
        self._remember_payment(payment)
        return payment

    async def update_payment(self, order_id: str, mutator: PaymentMutator) -> Payment:
        async def apply(store: AggregateStore) -> Payment:
            current = await store.get_payment_by_order(order_id)
            if current is None:
                raise NotFound("payment", order_id)
            mutator(current)
            if not await store.replace_payment(current):
                raise NotFound("payment", order_id)
            return current

        lock = self._lock_for(f"payment:{order_id}")
        async with lock:
            updated = await self._run("update_payment", apply)
            self._remember_payment(updated)
        return updated
