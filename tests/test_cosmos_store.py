"""Tests for the Cosmos DB document store."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core.exceptions import ServiceRequestError
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceExistsError

from biotrackr.config import CosmosSettings
from biotrackr.cosmos_store import CosmosDocumentStore
from biotrackr.errors import (
    DocumentConflictError,
    StoreError,
    StoreTransientError,
    StoreUnauthorizedError,
    StoreUnavailableError,
)
from biotrackr.models import Document, DocumentType


class _AsyncItems:
    """Async iterator standing in for the SDK's paged query result."""

    def __init__(self, items=None, error: Exception | None = None) -> None:
        self._items = list(items or [])
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._error is not None:
            raise self._error
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


def _item(doc_id: str, date: str, document_type: str = "Sleep") -> dict:
    return {
        "id": doc_id,
        "payload": {"summary": {"totalMinutesAsleep": 400}},
        "date": date,
        "documentType": document_type,
        "_rid": "abc==",
        "_ts": 1705200000,
    }


def _make_store(container: MagicMock) -> CosmosDocumentStore:
    settings = CosmosSettings(_env_file=None, account_key="test-key")
    return CosmosDocumentStore(settings, container=container)


@pytest.fixture
def container() -> MagicMock:
    container = MagicMock()
    container.create_item = AsyncMock()
    container.read = AsyncMock(return_value={"id": "records"})
    return container


class TestCreateDocument:
    @pytest.mark.asyncio
    async def test_creates_item_with_stored_field_names(self, container):
        store = _make_store(container)
        document = Document(
            id="d1", payload={"a": 1}, date="2024-01-14", document_type=DocumentType.FOOD
        )

        await store.create_document(document, "Food")

        container.create_item.assert_awaited_once_with(
            body={"id": "d1", "payload": {"a": 1}, "date": "2024-01-14", "documentType": "Food"}
        )

    @pytest.mark.asyncio
    async def test_wrong_partition_rejected_before_any_call(self, container):
        store = _make_store(container)
        document = Document(
            id="d1", payload={}, date="2024-01-14", document_type=DocumentType.FOOD
        )

        with pytest.raises(ValueError):
            await store.create_document(document, "Sleep")

        container.create_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_id_raises_conflict(self, container):
        container.create_item.side_effect = CosmosResourceExistsError(
            status_code=409, message="Entity with the specified id already exists"
        )
        store = _make_store(container)
        document = Document(
            id="d1", payload={}, date="2024-01-14", document_type=DocumentType.FOOD
        )

        with pytest.raises(DocumentConflictError):
            await store.create_document(document, "Food")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "error_type"),
        [
            (401, StoreUnauthorizedError),
            (403, StoreUnauthorizedError),
            (429, StoreTransientError),
            (500, StoreTransientError),
            (503, StoreUnavailableError),
            (400, StoreError),
        ],
    )
    async def test_http_errors_are_translated(self, container, status_code, error_type):
        container.create_item.side_effect = CosmosHttpResponseError(
            status_code=status_code, message="failure"
        )
        store = _make_store(container)
        document = Document(
            id="d1", payload={}, date="2024-01-14", document_type=DocumentType.FOOD
        )

        with pytest.raises(error_type) as exc_info:
            await store.create_document(document, "Food")

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self, container):
        container.create_item.side_effect = ServiceRequestError("connection reset")
        store = _make_store(container)
        document = Document(
            id="d1", payload={}, date="2024-01-14", document_type=DocumentType.FOOD
        )

        with pytest.raises(StoreUnavailableError):
            await store.create_document(document, "Food")


class TestQueries:
    @pytest.mark.asyncio
    async def test_query_by_date_is_parameterized_and_partition_scoped(self, container):
        container.query_items = MagicMock(return_value=_AsyncItems([_item("a", "2024-01-14")]))
        store = _make_store(container)

        document = await store.query_by_date("2024-01-14", "Sleep")

        assert document.id == "a"
        assert document.document_type is DocumentType.SLEEP
        kwargs = container.query_items.call_args.kwargs
        assert kwargs["partition_key"] == "Sleep"
        assert kwargs["parameters"] == [{"name": "@date", "value": "2024-01-14"}]
        assert "@date" in kwargs["query"]

    @pytest.mark.asyncio
    async def test_query_by_date_returns_first_of_many(self, container):
        container.query_items = MagicMock(
            return_value=_AsyncItems([_item("a", "2024-01-14"), _item("b", "2024-01-14")])
        )
        store = _make_store(container)

        document = await store.query_by_date("2024-01-14", "Sleep")

        assert document.id == "a"

    @pytest.mark.asyncio
    async def test_query_by_date_not_found(self, container):
        container.query_items = MagicMock(return_value=_AsyncItems([]))
        store = _make_store(container)

        assert await store.query_by_date("2024-01-14", "Sleep") is None

    @pytest.mark.asyncio
    async def test_query_paged_counts_then_pages(self, container):
        container.query_items = MagicMock(
            side_effect=[
                _AsyncItems([45]),
                _AsyncItems([_item("a", "2024-01-14"), _item("b", "2024-01-13")]),
            ]
        )
        store = _make_store(container)

        items, total = await store.query_paged("Sleep", skip=20, take=2)

        assert total == 45
        assert [d.id for d in items] == ["a", "b"]
        count_call, page_call = container.query_items.call_args_list
        assert "COUNT(1)" in count_call.kwargs["query"]
        assert page_call.kwargs["parameters"] == [
            {"name": "@offset", "value": 20},
            {"name": "@limit", "value": 2},
        ]
        assert "ORDER BY c._ts DESC" in page_call.kwargs["query"]

    @pytest.mark.asyncio
    async def test_query_range_binds_dates(self, container):
        container.query_items = MagicMock(
            side_effect=[_AsyncItems([1]), _AsyncItems([_item("a", "2024-01-10")])]
        )
        store = _make_store(container)

        items, total = await store.query_range("Sleep", "2024-01-10", "2024-01-12", 0, 20)

        assert total == 1
        assert items[0].date == "2024-01-10"
        page_params = container.query_items.call_args_list[1].kwargs["parameters"]
        assert {"name": "@startDate", "value": "2024-01-10"} in page_params
        assert {"name": "@endDate", "value": "2024-01-12"} in page_params

    @pytest.mark.asyncio
    async def test_count_failure_propagates(self, container):
        container.query_items = MagicMock(
            return_value=_AsyncItems(
                error=CosmosHttpResponseError(status_code=503, message="unavailable")
            )
        )
        store = _make_store(container)

        with pytest.raises(StoreUnavailableError):
            await store.query_paged("Sleep", skip=0, take=20)

    @pytest.mark.asyncio
    async def test_invalid_stored_item_raises_store_error(self, container):
        container.query_items = MagicMock(
            return_value=_AsyncItems([{"id": "x", "date": "not-a-date"}])
        )
        store = _make_store(container)

        with pytest.raises(StoreError, match="not a valid document"):
            await store.query_by_date("2024-01-14", "Sleep")


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check_reports_location(self, container):
        status = await _make_store(container).health_check()
        assert status == {"database": "biotrackr", "container": "records"}

    @pytest.mark.asyncio
    async def test_health_check_failure(self, container):
        container.read.side_effect = CosmosHttpResponseError(status_code=401, message="bad key")

        with pytest.raises(StoreUnauthorizedError):
            await _make_store(container).health_check()

    def test_unconnected_store_raises(self):
        store = CosmosDocumentStore(CosmosSettings(_env_file=None, account_key="test-key"))
        with pytest.raises(RuntimeError, match="not connected"):
            store.container
