# hackhub/store/json_store.py
"""
Durable JSON document store.

Responsibilities:
- Keep Hackathon aggregates in <DATA_DIR>/hackathons.json (a LIST of documents)
- Keep Payment records in <DATA_DIR>/payments.json (a LIST of documents)
- Translate filesystem failures into StorageUnavailable and bad payloads into
  StorageDataError, so the controller can tell the two apart

IMPORTANT:
- Every write rewrites the whole file through save_json_file (temp file +
  os.replace), serialised by one lock per store.
- File reads and writes run in a worker thread so a slow disk never blocks
  the event loop or the controller's timeout.
- A missing file is an empty collection, not an error.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import pathlib
from typing import Any, Dict, List, Optional

from hackhub.errors import StorageDataError, StorageUnavailable
from hackhub.models import Hackathon, Payment
from hackhub.store.base import AggregateStore, check_document_size, parse_document
from hackhub.utils import load_json_file, save_json_file

logger = logging.getLogger("hackhub.storage.json")

HACKATHONS_FILE = "hackathons.json"
PAYMENTS_FILE = "payments.json"


class JsonFileStore(AggregateStore):
    name = "json"
    durable = True

    def __init__(self, data_dir: pathlib.Path) -> None:
        self.data_dir = pathlib.Path(data_dir)
        self.hackathons_file = self.data_dir / HACKATHONS_FILE
        self.payments_file = self.data_dir / PAYMENTS_FILE
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------
    async def _read(self, path: pathlib.Path) -> List[Dict[str, Any]]:
        try:
            raw = await asyncio.to_thread(load_json_file, path)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as exc:
            raise StorageDataError(f"Corrupted data file {path.name}: {exc}") from exc
        except OSError as exc:
            raise StorageUnavailable(f"Cannot read {path}: {exc}") from exc

        if not isinstance(raw, list):
            raise StorageDataError(f"Data file {path.name} must hold a list of documents")
        return [d for d in raw if isinstance(d, dict)]

    async def _write(self, path: pathlib.Path, docs: List[Dict[str, Any]]) -> None:
        try:
            await asyncio.to_thread(save_json_file, path, docs)
        except (TypeError, ValueError) as exc:
            raise StorageDataError(f"Cannot serialise {path.name}: {exc}") from exc
        except OSError as exc:
            raise StorageUnavailable(f"Cannot write {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Data directory unavailable: {exc}") from exc
        if not os.access(self.data_dir, os.R_OK | os.W_OK):
            raise StorageUnavailable(f"Data directory not readable/writable: {self.data_dir}")
        logger.info("JSON store ready at %s", self.data_dir)

    # ------------------------------------------------------------------
    # Hackathons
    # ------------------------------------------------------------------
    async def list_hackathons(self) -> List[Hackathon]:
        docs = await self._read(self.hackathons_file)
        return [parse_document(Hackathon, d) for d in docs]

    async def get_hackathon(self, hackathon_id: str) -> Optional[Hackathon]:
        docs = await self._read(self.hackathons_file)
        doc = next((d for d in docs if d.get("id") == hackathon_id), None)
        return parse_document(Hackathon, doc) if doc is not None else None

    async def insert_hackathon(self, hackathon: Hackathon) -> Hackathon:
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        async with self._lock:
            docs = await self._read(self.hackathons_file)
            if any(d.get("id") == hackathon.id for d in docs):
                raise StorageDataError("Duplicate hackathon id", {"reason": "DUPLICATE_KEY", "id": hackathon.id})
            docs.append(doc)
            await self._write(self.hackathons_file, docs)
        return parse_document(Hackathon, doc)

    async def replace_hackathon(self, hackathon: Hackathon) -> bool:
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        async with self._lock:
            docs = await self._read(self.hackathons_file)
            for i, d in enumerate(docs):
                if d.get("id") == hackathon.id:
                    docs[i] = doc
                    await self._write(self.hackathons_file, docs)
                    return True
        return False

    async def delete_hackathon(self, hackathon_id: str) -> bool:
        async with self._lock:
            docs = await self._read(self.hackathons_file)
            kept = [d for d in docs if d.get("id") != hackathon_id]
            if len(kept) == len(docs):
                return False
            await self._write(self.hackathons_file, kept)
        return True

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------
    async def list_payments(self) -> List[Payment]:
        docs = await self._read(self.payments_file)
        return [parse_document(Payment, d) for d in docs]

    async def get_payment_by_order(self, order_id: str) -> Optional[Payment]:
        docs = await self._read(self.payments_file)
        doc = next((d for d in docs if d.get("orderId") == order_id), None)
        return parse_document(Payment, doc) if doc is not None else None

    async def insert_payment(self, payment: Payment) -> Payment:
        doc = payment.to_document()
        async with self._lock:
            docs = await self._read(self.payments_file)
            for key in ("id", "orderId", "receiptId"):
                if any(d.get(key) == doc[key] for d in docs):
                    raise StorageDataError("Duplicate payment key", {"reason": "DUPLICATE_KEY", key: doc[key]})
            docs.append(doc)
            await self._write(self.payments_file, docs)
        return parse_document(Payment, doc)

    async def replace_payment(self, payment: Payment) -> bool:
        doc = payment.to_document()
        async with self._lock:
            docs = await self._read(self.payments_file)
            for i, d in enumerate(docs):
                if d.get("id") == payment.id:
                    docs[i] = doc
                    await self._write(self.payments_file, docs)
                    return True
        return False
