"""Base mapper turning raw provider payloads into documents."""

import uuid
from abc import ABC, abstractmethod
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from ..errors import MappingError
from ..models import Document, DocumentType, parse_document_date
from ..types import JSONObject

logger = structlog.get_logger(__name__)


class BaseMapper(ABC):
    """Base class for per-domain document mappers.

    Subclasses pin ``document_type`` and ``payload_model``. Mapping is pure:
    no I/O and no clock access; the document date always comes from the
    caller.
    """

    document_type: DocumentType
    payload_model: type[BaseModel]

    def __init__(self, deterministic_ids: bool = False) -> None:
        """Initialize mapper.

        Args:
            deterministic_ids: Derive ids from domain and date so that
                re-ingesting the same day collides instead of duplicating.
        """
        self._deterministic_ids = deterministic_ids

    @abstractmethod
    def summarize(self, payload: BaseModel) -> dict[str, Any]:
        """Return a few headline values of the payload for log context."""

    def items(self, as_of: str, raw: JSONObject) -> list[tuple[str, JSONObject]]:
        """Split a fetched payload into ``(date, item)`` pairs to map.

        Daily domains produce a single document dated ``as_of``.
        """
        return [(as_of, raw)]

    def map(self, date: str, raw: JSONObject) -> Document:
        """Map a raw payload describing ``date`` to a Document.

        Raises:
            MappingError: If the date or the payload is malformed.
        """
        try:
            parse_document_date(date)
        except ValueError as e:
            raise MappingError(str(e)) from e

        payload = self._validate(raw)

        document = Document(
            id=self._document_id(date, payload),
            payload=payload.model_dump(mode="json", exclude_unset=True),
            date=date,
            document_type=self.document_type,
        )
        logger.debug(
            "document_mapped",
            document_type=self.document_type.value,
            date=date,
            document_id=document.id,
            **self.summarize(payload),
        )
        return document

    def _validate(self, raw: JSONObject) -> BaseModel:
        if not isinstance(raw, dict):
            raise MappingError(
                f"{self.document_type.value} payload must be a JSON object, "
                f"got {type(raw).__name__}"
            )
        try:
            return self.payload_model.model_validate(raw)
        except ValidationError as e:
            raise MappingError(
                f"Malformed {self.document_type.value} payload: "
                f"{e.error_count()} validation error(s)"
            ) from e

    def natural_key(self, date: str, payload: BaseModel) -> str:
        """Identity of the observation within its domain."""
        return f"{self.document_type.value}-{date}"

    def _document_id(self, date: str, payload: BaseModel) -> str:
        if self._deterministic_ids:
            return self.natural_key(date, payload)
        return str(uuid.uuid4())
