"""Storage contract shared by the durable and the volatile backends."""

from __future__ import annotations

import abc
import json
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from hackhub.errors import StorageDataError
from hackhub.models import Hackathon, Payment

# Same ceiling MongoDB enforces on a single BSON document.
MAX_DOCUMENT_BYTES = 16 * 1024 * 1024

M = TypeVar("M", bound=BaseModel)


def check_document_size(doc: Dict[str, Any], kind: str) -> None:
    size = len(json.dumps(doc, ensure_ascii=False).encode("utf-8"))
    if size > MAX_DOCUMENT_BYTES:
        raise StorageDataError(
            f"{kind.capitalize()} data is too large ({size / 1_000_000:.2f}MB).",
            {"reason": "DOCUMENT_TOO_LARGE", "bytes": size},
        )


def parse_document(model: Type[M], doc: Dict[str, Any]) -> M:
    """Validate a stored document; a schema mismatch is a data error."""
    try:
        return model.model_validate(doc)
    except PydanticValidationError as exc:
        raise StorageDataError(f"Stored {model.__name__} does not match schema: {exc}") from exc


class AggregateStore(abc.ABC):
    """
    Read/replace-by-id storage of Hackathon aggregates and Payment records.

    Implementations return fresh model instances on every read: mutating a
    returned object never changes stored state without a replace call.

    Connectivity failures raise StorageUnavailable, data failures raise
    StorageDataError.
    """

    name = "abstract"
    durable = True

    async def connect(self) -> None:
        """Open the backend. Raises StorageUnavailable when unreachable."""

    async def close(self) -> None:
        """Release backend resources."""

    # hackathons
    @abc.abstractmethod
    async def list_hackathons(self) -> List[Hackathon]: ...

    @abc.abstractmethod
    async def get_hackathon(self, hackathon_id: str) -> Optional[Hackathon]: ...

    @abc.abstractmethod
    async def insert_hackathon(self, hackathon: Hackathon) -> Hackathon: ...

    @abc.abstractmethod
    async def replace_hackathon(self, hackathon: Hackathon) -> bool:
        """Overwrite the stored aggregate. False when no aggregate has that id."""

    @abc.abstractmethod
    async def delete_hackathon(self, hackathon_id: str) -> bool: ...

    # payments
    @abc.abstractmethod
    async def list_payments(self) -> List[Payment]: ...

    @abc.abstractmethod
    async def get_payment_by_order(self, order_id: str) -> Optional[Payment]: ...

    @abc.abstractmethod
    async def insert_payment(self, payment: Payment) -> Payment: ...

    @abc.abstractmethod
    async def replace_payment(self, payment: Payment) -> bool: ...
