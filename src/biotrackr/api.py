"""Read API exposing stored metric documents over HTTP."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI, Query, Request, Response, status
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from . import __version__
from .config import HTTPSettings
from .errors import StoreError
from .handlers import DocumentReader
from .metrics import HTTP_REQUESTS_TOTAL
from .models import Document, DocumentType, parse_document_date
from .pagination import PaginationResponse
from .store import DocumentStore
from .tracing import extract_trace_context
from .types import ErrorBody, StoreStatus

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


def _log_task_exception(task: asyncio.Task) -> None:
    """Log exceptions from background tasks that would otherwise be silently lost."""
    if not task.cancelled() and task.exception():
        logger.error("background_task_failed", error=str(task.exception()))


class InfoResponse(BaseModel):
    """Service info response."""

    name: str
    version: str
    domains: list[str]


def error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    payload: ErrorBody = {"error": error}
    if detail is not None:
        payload["detail"] = detail
    return JSONResponse(status_code=status_code, content=payload)


def page_content(page: PaginationResponse[Document]) -> dict:
    """Serialize a page of documents using the stored field names."""
    content = page.model_dump(mode="json", by_alias=True, exclude={"items"})
    content["items"] = [document.to_item() for document in page.items]
    return content


@contextmanager
def _server_span(request: Request, name: str, route: str) -> Iterator[Span]:
    with tracer.start_as_current_span(
        name,
        context=extract_trace_context(dict(request.headers)),
        kind=SpanKind.SERVER,
    ) as span:
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.route", route)
        yield span


class ReadAPI:
    """HTTP read surface over the document store.

    One router per metric domain, each mounted under the domain's slug
    (``/activity``, ``/sleep``, ``/weight``, ``/food``).
    """

    def __init__(
        self,
        settings: HTTPSettings,
        store: DocumentStore,
        readiness_check: Callable[[], Awaitable[StoreStatus]] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._readiness_check = readiness_check
        self._app: FastAPI | None = None
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task | None = None

    def _build_router(self, document_type: DocumentType) -> APIRouter:
        reader = DocumentReader(document_type, self._store)
        prefix = f"/{document_type.slug}"
        router = APIRouter(prefix=prefix, tags=[document_type.value])

        def count(route: str, status_code: int) -> None:
            HTTP_REQUESTS_TOTAL.labels(
                method="GET", path=f"{prefix}{route}", status=str(status_code)
            ).inc()

        def store_failure(route: str, e: StoreError) -> JSONResponse:
            logger.error(
                "document_read_failed",
                document_type=document_type.value,
                route=f"{prefix}{route}",
                error=str(e),
                error_type=type(e).__name__,
            )
            count(route, 500)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to read documents", str(e)
            )

        @router.get("/", summary=f"List {document_type.value} documents")
        async def list_documents(
            request: Request,
            page_number: int | None = Query(default=None, alias="pageNumber"),
            page_size: int | None = Query(default=None, alias="pageSize"),
        ) -> JSONResponse:
            """Handle GET /{domain}/ -- newest documents first."""
            with _server_span(request, f"http.{document_type.slug}.list", f"{prefix}/"):
                try:
                    page = await reader.get_paged(page_number, page_size)
                except StoreError as e:
                    return store_failure("/", e)
                count("/", 200)
                return JSONResponse(content=page_content(page))

        @router.get(
            "/range/{start_date}/{end_date}",
            summary=f"List {document_type.value} documents in a date range",
        )
        async def list_range(
            request: Request,
            start_date: str,
            end_date: str,
            page_number: int | None = Query(default=None, alias="pageNumber"),
            page_size: int | None = Query(default=None, alias="pageSize"),
        ) -> JSONResponse:
            """Handle GET /{domain}/range/{startDate}/{endDate}."""
            route = "/range/{startDate}/{endDate}"
            with _server_span(request, f"http.{document_type.slug}.range", f"{prefix}{route}"):
                try:
                    start = parse_document_date(start_date)
                    end = parse_document_date(end_date)
                except ValueError as e:
                    count(route, 400)
                    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid date", str(e))
                if start > end:
                    count(route, 400)
                    return error_response(
                        status.HTTP_400_BAD_REQUEST,
                        "Invalid date range",
                        f"Start date {start_date} is after end date {end_date}",
                    )
                try:
                    page = await reader.get_by_date_range(
                        start_date, end_date, page_number, page_size
                    )
                except StoreError as e:
                    return store_failure(route, e)
                count(route, 200)
                return JSONResponse(content=page_content(page))

        @router.get("/{date}", summary=f"Get the {document_type.value} document for a date")
        async def get_by_date(request: Request, date: str) -> JSONResponse:
            """Handle GET /{domain}/{date}."""
            route = "/{date}"
            with _server_span(request, f"http.{document_type.slug}.by_date", f"{prefix}{route}"):
                try:
                    parse_document_date(date)
                except ValueError as e:
                    count(route, 400)
                    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid date", str(e))
                try:
                    document = await reader.get_by_date(date)
                except StoreError as e:
                    return store_failure(route, e)
                if document is None:
                    count(route, 404)
                    return error_response(
                        status.HTTP_404_NOT_FOUND,
                        "Not found",
                        f"No {document_type.value} document for {date}",
                    )
                count(route, 200)
                return JSONResponse(content=document.to_item())

        return router

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="Biotrackr API",
            version=__version__,
            description="Read API for ingested Fitbit health metrics.",
        )

        for document_type in DocumentType:
            app.include_router(self._build_router(document_type))

        @app.get("/health", response_model=dict[str, str], summary="Health check")
        async def health() -> dict[str, str]:
            """Handle GET /health -- returns service liveness status."""
            HTTP_REQUESTS_TOTAL.labels(method="GET", path="/health", status="200").inc()
            return {"status": "ok"}

        @app.get("/ready", summary="Readiness check")
        async def ready():
            """Handle GET /ready -- verifies the document store is reachable."""
            if self._readiness_check is None:
                HTTP_REQUESTS_TOTAL.labels(method="GET", path="/ready", status="200").inc()
                return {"status": "ok"}
            try:
                store_status = await self._readiness_check()
            except StoreError as e:
                HTTP_REQUESTS_TOTAL.labels(method="GET", path="/ready", status="503").inc()
                return error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE, "Document store unavailable", str(e)
                )
            HTTP_REQUESTS_TOTAL.labels(method="GET", path="/ready", status="200").inc()
            return {"status": "ok", "store": store_status}

        @app.get("/info", response_model=InfoResponse, summary="Service info")
        async def info() -> InfoResponse:
            """Handle GET /info -- returns service metadata."""
            HTTP_REQUESTS_TOTAL.labels(method="GET", path="/info", status="200").inc()
            return InfoResponse(
                name="biotrackr",
                version=__version__,
                domains=[document_type.slug for document_type in DocumentType],
            )

        @app.get("/metrics", summary="Prometheus metrics")
        async def metrics() -> Response:
            """Handle GET /metrics -- returns Prometheus metrics."""
            HTTP_REQUESTS_TOTAL.labels(method="GET", path="/metrics", status="200").inc()
            return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self._build_app()
        config = uvicorn.Config(
            self._app,
            host=self._settings.host,
            port=self._settings.port,
            log_level="info",
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve())
        self._server_task.add_done_callback(_log_task_exception)
        logger.info(
            "http_server_started",
            host=self._settings.host,
            port=self._settings.port,
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._server:
            self._server.should_exit = True
        if self._server_task:
            await self._server_task
            self._server_task = None
        logger.info("http_server_stopped")

    @property
    def app(self) -> FastAPI:
        """Expose the FastAPI app for testing."""
        if not self._app:
            self._app = self._build_app()
        return self._app
