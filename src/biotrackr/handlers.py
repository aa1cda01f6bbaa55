"""Read handlers shared by all metric domains."""

import structlog

from .models import Document, DocumentType
from .pagination import PaginationResponse, build_response, normalize
from .store import DocumentStore

logger = structlog.get_logger(__name__)


class DocumentReader:
    """Reads documents of one domain from its store partition.

    Store errors propagate unchanged so that callers can tell a failure
    apart from an empty result.
    """

    def __init__(self, document_type: DocumentType, store: DocumentStore) -> None:
        self._document_type = document_type
        self._store = store

    @property
    def document_type(self) -> DocumentType:
        return self._document_type

    @property
    def partition_key(self) -> str:
        return self._document_type.value

    async def get_by_date(self, date: str) -> Document | None:
        """Return the document recorded for ``date``, or None when there is none."""
        document = await self._store.query_by_date(date, self.partition_key)
        if document is None:
            logger.info("document_not_found", document_type=self.partition_key, date=date)
        return document

    async def get_paged(
        self, page_number: int | None = None, page_size: int | None = None
    ) -> PaginationResponse[Document]:
        """Return one page of the domain's documents, newest first."""
        request = normalize(page_number, page_size)
        items, total_count = await self._store.query_paged(
            self.partition_key, request.skip, request.take
        )
        return build_response(items, total_count, request)

    async def get_by_date_range(
        self,
        start: str,
        end: str,
        page_number: int | None = None,
        page_size: int | None = None,
    ) -> PaginationResponse[Document]:
        """Return one page of documents dated within ``[start, end]``."""
        request = normalize(page_number, page_size)
        items, total_count = await self._store.query_range(
            self.partition_key, start, end, request.skip, request.take
        )
        return build_response(items, total_count, request)
