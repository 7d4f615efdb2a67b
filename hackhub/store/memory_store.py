"""Volatile in-process store. Same contract as the durable ones, no persistence."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from hackhub.errors import StorageDataError
from hackhub.models import Hackathon, Payment
from hackhub.store.base import AggregateStore, check_document_size


class MemoryStore(AggregateStore):
    name = "memory"
    durable = False

    def __init__(
        self,
        hackathons: Iterable[Hackathon] = (),
        payments: Iterable[Payment] = (),
    ) -> None:
        # Documents (plain dicts) in insertion order, never shared with callers.
        self._hackathons: List[Dict[str, Any]] = [h.to_document() for h in hackathons]
        self._payments: List[Dict[str, Any]] = [p.to_document() for p in payments]

    def _hackathon_index(self, hackathon_id: str) -> int:
        return next((i for i, d in enumerate(self._hackathons) if d.get("id") == hackathon_id), -1)

    def _payment_index(self, key: str, value: str) -> int:
        return next((i for i, d in enumerate(self._payments) if d.get(key) == value), -1)

    async def list_hackathons(self) -> List[Hackathon]:
        return [Hackathon.model_validate(d) for d in self._hackathons]

    async def get_hackathon(self, hackathon_id: str) -> Optional[Hackathon]:
        idx = self._hackathon_index(hackathon_id)
        return Hackathon.model_validate(self._hackathons[idx]) if idx >= 0 else None

    async def insert_hackathon(self, hackathon: Hackathon) -> Hackathon:
        if self._hackathon_index(hackathon.id) >= 0:
            raise StorageDataError("Duplicate hackathon id", {"reason": "DUPLICATE_KEY", "id": hackathon.id})
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        self._hackathons.append(doc)
        return Hackathon.model_validate(doc)

    async def replace_hackathon(self, hackathon: Hackathon) -> bool:
        idx = self._hackathon_index(hackathon.id)
        if idx < 0:
            return False
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        self._hackathons[idx] = doc
        return True

    async def delete_hackathon(self, hackathon_id: str) -> bool:
        idx = self._hackathon_index(hackathon_id)
        if idx < 0:
            return False
        del self._hackathons[idx]
        return True

    async def list_payments(self) -> List[Payment]:
        return [Payment.model_validate(d) for d in self._payments]

    async def get_payment_by_order(self, order_id: str) -> Optional[Payment]:
        idx = self._payment_index("orderId", order_id)
        return Payment.model_validate(self._payments[idx]) if idx >= 0 else None

    async def insert_payment(self, payment: Payment) -> Payment:
        for key, value in (("id", payment.id), ("orderId", payment.order_id), ("receiptId", payment.receipt_id)):
            if self._payment_index(key, value) >= 0:
                raise StorageDataError("Duplicate payment key", {"reason": "DUPLICATE_KEY", key: value})
        doc = payment.to_document()
        self._payments.append(doc)
        return Payment.model_validate(doc)

    async def replace_payment(self, payment: Payment) -> bool:
        idx = self._payment_index("id", payment.id)
        if idx < 0:
            return False
        self._payments[idx] = payment.to_document()
        return True
