"""Document store interface and an in-memory implementation."""

from collections.abc import Sequence
from typing import Any, Protocol

import structlog

from .errors import DocumentConflictError
from .models import Document

logger = structlog.get_logger(__name__)


class DocumentStore(Protocol):
    """Partitioned document store used by workers and the read API.

    Every domain lives in its own partition whose key equals the
    document type value.
    """

    async def create_document(self, document: Document, partition_key: str) -> None:
        """Insert a new document; never replaces an existing one."""
        ...

    async def query_by_date(self, date: str, partition_key: str) -> Document | None:
        """Return the first document for ``date`` in the partition, if any."""
        ...

    async def query_paged(
        self, partition_key: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        """Return a page of documents (newest first) and the partition total."""
        ...

    async def query_range(
        self, partition_key: str, start: str, end: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        """Return a page of documents dated within ``[start, end]`` and the match total."""
        ...


def check_partition(document: Document, partition_key: str) -> None:
    """Reject writes routed to a partition other than the document's own."""
    if partition_key != document.document_type.value:
        raise ValueError(
            f"Partition key '{partition_key}' does not match document type "
            f"'{document.document_type.value}'"
        )


def first_match(matches: Sequence[Document], date: str, partition_key: str) -> Document | None:
    """Pick the first of possibly several documents for one date."""
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "duplicate_documents_for_date",
            date=date,
            partition_key=partition_key,
            count=len(matches),
        )
    return matches[0]


class InMemoryDocumentStore:
    """Process-local store for tests and local runs.

    Ids are unique across the whole container, as in the hosted store.
    Documents are kept in insertion order; paged listings return the most
    recently inserted first.
    """

    def __init__(self) -> None:
        self._documents: list[Document] = []
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._documents)

    def partition(self, partition_key: str) -> list[Document]:
        """All documents in a partition, oldest insert first."""
        return [d for d in self._documents if d.document_type.value == partition_key]

    async def create_document(self, document: Document, partition_key: str) -> None:
        check_partition(document, partition_key)
        if document.id in self._ids:
            raise DocumentConflictError(
                f"Document '{document.id}' already exists", status_code=409
            )
        self._ids.add(document.id)
        self._documents.append(document)
        logger.debug(
            "document_created",
            document_id=document.id,
            partition_key=partition_key,
            date=document.date,
        )

    async def query_by_date(self, date: str, partition_key: str) -> Document | None:
        matches = [d for d in self.partition(partition_key) if d.date == date]
        return first_match(matches, date, partition_key)

    async def query_paged(
        self, partition_key: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        documents = list(reversed(self.partition(partition_key)))
        return documents[skip : skip + take], len(documents)

    async def query_range(
        self, partition_key: str, start: str, end: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        # ISO dates order lexicographically
        matches = sorted(
            (d for d in self.partition(partition_key) if start <= d.date <= end),
            key=lambda d: d.date,
        )
        return matches[skip : skip + take], len(matches)

    def dump(self) -> list[dict[str, Any]]:
        """Serialized view of every stored item."""
        return [d.to_item() for d in self._documents]
