"""Azure Cosmos DB document store."""

from contextlib import asynccontextmanager
from typing import Any

import structlog
from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from azure.cosmos.aio import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceExistsError
from pydantic import ValidationError

from .config import CosmosSettings
from .errors import (
    DocumentConflictError,
    StoreError,
    StoreTransientError,
    StoreUnauthorizedError,
    StoreUnavailableError,
)
from .metrics import STORE_ERRORS, STORE_OPERATION_DURATION
from .models import Document
from .store import check_partition, first_match
from .types import StoreStatus

logger = structlog.get_logger(__name__)

_QUERY_BY_DATE = "SELECT * FROM c WHERE c.date = @date"
_COUNT_ALL = "SELECT VALUE COUNT(1) FROM c"
_QUERY_PAGED = "SELECT * FROM c ORDER BY c._ts DESC OFFSET @offset LIMIT @limit"
_RANGE_FILTER = "WHERE c.date >= @startDate AND c.date <= @endDate"
_COUNT_RANGE = f"SELECT VALUE COUNT(1) FROM c {_RANGE_FILTER}"
_QUERY_RANGE = f"SELECT * FROM c {_RANGE_FILTER} ORDER BY c.date OFFSET @offset LIMIT @limit"

# Status codes worth retrying at a higher level
_TRANSIENT_STATUS = {408, 429, 449, 500, 502, 504}


def _translate_error(operation: str, e: Exception) -> StoreError:
    """Map an SDK exception onto the store error hierarchy."""
    if isinstance(e, CosmosResourceExistsError):
        return DocumentConflictError(str(e.message or e), status_code=e.status_code)
    if isinstance(e, CosmosHttpResponseError):
        status = e.status_code
        if status in (401, 403):
            return StoreUnauthorizedError(f"{operation} rejected: {e.message}", status)
        if status == 503:
            return StoreUnavailableError(f"{operation} failed: store unavailable", status)
        if status in _TRANSIENT_STATUS:
            return StoreTransientError(f"{operation} failed with status {status}", status)
        return StoreError(f"{operation} failed: {e.message}", status)
    if isinstance(e, (ServiceRequestError, ServiceResponseError)):
        return StoreUnavailableError(f"{operation} failed: {e}")
    return StoreError(f"{operation} failed: {e}")


def _to_document(item: dict[str, Any]) -> Document:
    try:
        return Document.model_validate(item)
    except ValidationError as e:
        raise StoreError(f"Stored item '{item.get('id')}' is not a valid document") from e


class CosmosDocumentStore:
    """Document store backed by a single partitioned Cosmos DB container.

    Every query is scoped to one partition; the partition key for writes is
    taken from the document body's ``documentType``.
    """

    def __init__(
        self, settings: CosmosSettings, container: ContainerProxy | None = None
    ) -> None:
        """Initialize store.

        Args:
            settings: Cosmos DB connection settings.
            container: Pre-built container client; skips connecting when given.
        """
        self._settings = settings
        self._client: CosmosClient | None = None
        self._container = container

    async def connect(self) -> None:
        """Open the client and verify the container is reachable."""
        if self._container is not None:
            return

        logger.info(
            "cosmos_connecting",
            endpoint=self._settings.endpoint,
            database=self._settings.database_name,
            container=self._settings.container_name,
        )
        self._client = CosmosClient(self._settings.endpoint, credential=self._settings.account_key)
        database = self._client.get_database_client(self._settings.database_name)
        container = database.get_container_client(self._settings.container_name)
        try:
            await container.read()
        except Exception as e:
            await self._client.close()
            self._client = None
            error = _translate_error("connect", e)
            logger.error("cosmos_connect_failed", error=str(error), error_type=type(error).__name__)
            raise error from e

        self._container = container
        logger.info("cosmos_connected")

    async def disconnect(self) -> None:
        """Close the client if this store opened it."""
        if self._client:
            await self._client.close()
            self._client = None
            self._container = None
            logger.info("cosmos_disconnected")

    @property
    def container(self) -> ContainerProxy:
        if self._container is None:
            raise RuntimeError("Cosmos DB store not connected")
        return self._container

    async def create_document(self, document: Document, partition_key: str) -> None:
        check_partition(document, partition_key)
        with STORE_OPERATION_DURATION.labels(operation="create").time():
            try:
                await self.container.create_item(body=document.to_item())
            except Exception as e:
                raise self._fail("create", e, partition_key=partition_key) from e

        logger.debug(
            "document_created",
            document_id=document.id,
            partition_key=partition_key,
            date=document.date,
        )

    async def query_by_date(self, date: str, partition_key: str) -> Document | None:
        items = await self._query(
            "query_by_date",
            _QUERY_BY_DATE,
            [{"name": "@date", "value": date}],
            partition_key,
        )
        return first_match([_to_document(i) for i in items], date, partition_key)

    async def query_paged(
        self, partition_key: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        total = await self._count("count", _COUNT_ALL, [], partition_key)
        items = await self._query(
            "query_paged",
            _QUERY_PAGED,
            [{"name": "@offset", "value": skip}, {"name": "@limit", "value": take}],
            partition_key,
        )
        return [_to_document(i) for i in items], total

    async def query_range(
        self, partition_key: str, start: str, end: str, skip: int, take: int
    ) -> tuple[list[Document], int]:
        bounds = [
            {"name": "@startDate", "value": start},
            {"name": "@endDate", "value": end},
        ]
        total = await self._count("count_range", _COUNT_RANGE, bounds, partition_key)
        items = await self._query(
            "query_range",
            _QUERY_RANGE,
            [*bounds, {"name": "@offset", "value": skip}, {"name": "@limit", "value": take}],
            partition_key,
        )
        return [_to_document(i) for i in items], total

    async def health_check(self) -> StoreStatus:
        """Read container metadata; raises StoreError when unreachable."""
        try:
            await self.container.read()
        except Exception as e:
            raise self._fail("health_check", e) from e
        return {
            "database": self._settings.database_name,
            "container": self._settings.container_name,
        }

    async def _count(
        self,
        operation: str,
        query: str,
        parameters: list[dict[str, Any]],
        partition_key: str,
    ) -> int:
        result = await self._query(operation, query, parameters, partition_key)
        return int(result[0]) if result else 0

    async def _query(
        self,
        operation: str,
        query: str,
        parameters: list[dict[str, Any]],
        partition_key: str,
    ) -> list[Any]:
        with STORE_OPERATION_DURATION.labels(operation=operation).time():
            try:
                return [
                    item
                    async for item in self.container.query_items(
                        query=query,
                        parameters=parameters,
                        partition_key=partition_key,
                    )
                ]
            except Exception as e:
                raise self._fail(operation, e, partition_key=partition_key) from e

    def _fail(self, operation: str, e: Exception, **context: Any) -> StoreError:
        error = _translate_error(operation, e)
        if isinstance(error, DocumentConflictError):
            logger.warning("document_conflict", operation=operation, error=str(error), **context)
            return error
        STORE_ERRORS.labels(operation=operation, error_type=type(error).__name__).inc()
        logger.error(
            "cosmos_operation_failed",
            operation=operation,
            error=str(e),
            error_type=type(error).__name__,
            status_code=error.status_code,
            **context,
        )
        return error


@asynccontextmanager
async def create_store(settings: CosmosSettings):
    """Context manager for creating and managing a Cosmos DB store.

    Args:
        settings: Cosmos DB connection settings.

    Yields:
        Connected CosmosDocumentStore instance.
    """
    store = CosmosDocumentStore(settings)
    await store.connect()
    try:
        yield store
    finally:
        await store.disconnect()
