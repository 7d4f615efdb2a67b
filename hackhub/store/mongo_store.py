"""MongoDB backend (motor). Hackathon aggregates embed their participants."""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator, List, Optional

from bson.errors import InvalidDocument
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import (
    ConnectionFailure,
    DocumentTooLarge,
    DuplicateKeyError,
    PyMongoError,
    WriteError,
)

from hackhub.errors import StorageDataError, StorageUnavailable
from hackhub.models import Hackathon, Payment
from hackhub.store.base import AggregateStore, check_document_size, parse_document

logger = logging.getLogger("hackhub.storage.mongo")

_NO_OBJECT_ID = {"_id": 0}


@contextlib.contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Data errors first: DuplicateKeyError is itself an OperationFailure."""
    try:
        yield
    except (DocumentTooLarge, DuplicateKeyError, WriteError, InvalidDocument) as exc:
        raise StorageDataError(f"MongoDB rejected {operation}: {exc}") from exc
    except ConnectionFailure as exc:
        raise StorageUnavailable(f"MongoDB unreachable during {operation}: {exc}") from exc
    except PyMongoError as exc:
        # Auth/authorization failures and server errors make the store unusable.
        raise StorageUnavailable(f"MongoDB error during {operation}: {exc}") from exc


class MongoStore(AggregateStore):
    name = "mongo"
    durable = True

    def __init__(self, uri: str, database: str, timeout_seconds: float = 10.0) -> None:
        self.uri = uri
        self.database_name = database
        self.timeout_ms = int(timeout_seconds * 1000)
        self._client: Optional[AsyncIOMotorClient] = None

    @property
    def _db(self):
        if self._client is None:
            raise StorageUnavailable("MongoDB client not connected")
        return self._client[self.database_name]

    async def connect(self) -> None:
        self._client = AsyncIOMotorClient(
            self.uri,
            connectTimeoutMS=self.timeout_ms,
            serverSelectionTimeoutMS=self.timeout_ms,
            heartbeatFrequencyMS=5000,
        )
        with _translate_errors("connect"):
            await self._client.admin.command("ping")
            await self._db.hackathons.create_index("id", unique=True)
            await self._db.payments.create_index("id", unique=True)
            await self._db.payments.create_index("orderId", unique=True)
            await self._db.payments.create_index("receiptId", unique=True)
        logger.info("Connected to MongoDB database %s", self.database_name)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # hackathons
    async def list_hackathons(self) -> List[Hackathon]:
        with _translate_errors("list_hackathons"):
            docs = await self._db.hackathons.find({}, _NO_OBJECT_ID).to_list(length=None)
        return [parse_document(Hackathon, d) for d in docs]

    async def get_hackathon(self, hackathon_id: str) -> Optional[Hackathon]:
        with _translate_errors("get_hackathon"):
            doc = await self._db.hackathons.find_one({"id": hackathon_id}, _NO_OBJECT_ID)
        return parse_document(Hackathon, doc) if doc else None

    async def insert_hackathon(self, hackathon: Hackathon) -> Hackathon:
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        with _translate_errors("insert_hackathon"):
            # insert_one adds _id to the dict it is given
            await self._db.hackathons.insert_one(dict(doc))
        return parse_document(Hackathon, doc)

    async def replace_hackathon(self, hackathon: Hackathon) -> bool:
        doc = hackathon.to_document()
        check_document_size(doc, "hackathon")
        with _translate_errors("replace_hackathon"):
            result = await self._db.hackathons.replace_one({"id": hackathon.id}, doc)
        return result.matched_count > 0

    async def delete_hackathon(self, hackathon_id: str) -> bool:
        with _translate_errors("delete_hackathon"):
            result = await self._db.hackathons.delete_one({"id": hackathon_id})
        return result.deleted_count > 0

    # payments
    async def list_payments(self) -> List[Payment]:
        with _translate_errors("list_payments"):
            docs = await self._db.payments.find({}, _NO_OBJECT_ID).to_list(length=None)
        return [parse_document(Payment, d) for d in docs]

    async def get_payment_by_order(self, order_id: str) -> Optional[Payment]:
        with _translate_errors("get_payment_by_order"):
            doc = await self._db.payments.find_one({"orderId": order_id}, _NO_OBJECT_ID)
        return parse_document(Payment, doc) if doc else None

    async def insert_payment(self, payment: Payment) -> Payment:
        doc = payment.to_document()
        with _translate_errors("insert_payment"):
            await self._db.payments.insert_one(dict(doc))
        return parse_document(Payment, doc)

    async def replace_payment(self, payment: Payment) -> bool:
        with _translate_errors("replace_payment"):
            result = await self._db.payments.replace_one({"id": payment.id}, payment.to_document())
        return result.matched_count > 0
