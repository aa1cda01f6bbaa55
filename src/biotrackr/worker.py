"""Run-once ingestion worker: fetch, map and persist one metric domain."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum

import structlog
from opentelemetry import trace

from .errors import DocumentConflictError, WorkerCancelledError
from .fitbit_client import MetricSource
from .mappers import BaseMapper
from .metrics import DOCUMENTS_PERSISTED, DOCUMENTS_SKIPPED, WORKER_RUNS
from .models import Document, DocumentType
from .store import DocumentStore
from .types import JSONObject

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

# Trailing window fetched for body weight
WEIGHT_WINDOW_DAYS = 7


class WorkerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MAPPING = "mapping"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


class ExitStatus(IntEnum):
    """Process exit code reported for a finished run."""

    OK = 0
    FAILED = 1


@dataclass(frozen=True)
class WorkerResult:
    """Terminal outcome of a worker run."""

    state: WorkerState
    exit_status: ExitStatus
    documents_written: int = 0
    documents_skipped: int = 0
    failed_step: str | None = None
    error: str | None = None


def fetch_window(document_type: DocumentType, today: date) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` dates to fetch for a domain.

    Activity is collected for the current day. Sleep and food are collected
    for the previous, completed day. Weight covers the trailing week.
    """
    if document_type is DocumentType.ACTIVITY:
        return today, today
    if document_type is DocumentType.WEIGHT:
        return today - timedelta(days=WEIGHT_WINDOW_DAYS), today
    yesterday = today - timedelta(days=1)
    return yesterday, yesterday


class IngestionWorker:
    """Executes a single ingestion pass for one metric domain.

    The worker never touches the process; callers inspect the returned
    ``WorkerResult`` and decide how to exit.
    """

    def __init__(
        self,
        document_type: DocumentType,
        source: MetricSource,
        store: DocumentStore,
        mapper: BaseMapper,
        *,
        today: Callable[[], date] = date.today,
        cancel_event: asyncio.Event | None = None,
        skip_conflicts: bool = False,
    ) -> None:
        """Initialize worker.

        Args:
            document_type: Domain to ingest.
            source: Provider of raw payloads.
            store: Destination document store.
            mapper: Mapper for ``document_type``.
            today: Clock returning the current local date.
            cancel_event: Set to stop the run at the next step boundary.
            skip_conflicts: Treat an existing document id as already ingested.
        """
        if mapper.document_type is not document_type:
            raise ValueError(
                f"Mapper for {mapper.document_type.value} cannot ingest {document_type.value}"
            )
        self._document_type = document_type
        self._source = source
        self._store = store
        self._mapper = mapper
        self._today = today
        self._cancel_event = cancel_event
        self._skip_conflicts = skip_conflicts
        self._state = WorkerState.IDLE
        self._written = 0
        self._skipped = 0

    @property
    def state(self) -> WorkerState:
        return self._state

    async def run(self) -> WorkerResult:
        """Run the fetch, map and persist steps once.

        Returns:
            WorkerResult in COMPLETED or FAILED state.

        Raises:
            RuntimeError: If this worker has already been run.
        """
        if self._state is not WorkerState.IDLE:
            raise RuntimeError(f"Worker already ran (state={self._state.value})")

        log = logger.bind(document_type=self._document_type.value)
        try:
            start, end = fetch_window(self._document_type, self._today())
            log.info("worker_started", start=start.isoformat(), end=end.isoformat())

            raw = await self._fetch(start, end)
            documents = self._map(start.isoformat(), raw)
            await self._persist(documents)
        except Exception as e:
            failed_step = self._state.value
            self._state = WorkerState.FAILED
            WORKER_RUNS.labels(
                document_type=self._document_type.value, status=WorkerState.FAILED.value
            ).inc()
            log.error(
                "worker_step_failed",
                step=failed_step,
                error=str(e),
                error_type=type(e).__name__,
                documents_written=self._written,
            )
            return WorkerResult(
                state=WorkerState.FAILED,
                exit_status=ExitStatus.FAILED,
                documents_written=self._written,
                documents_skipped=self._skipped,
                failed_step=failed_step,
                error=str(e),
            )

        self._state = WorkerState.COMPLETED
        WORKER_RUNS.labels(
            document_type=self._document_type.value, status=WorkerState.COMPLETED.value
        ).inc()
        log.info(
            "worker_completed",
            documents_written=self._written,
            documents_skipped=self._skipped,
        )
        return WorkerResult(
            state=WorkerState.COMPLETED,
            exit_status=ExitStatus.OK,
            documents_written=self._written,
            documents_skipped=self._skipped,
        )

    def _enter(self, state: WorkerState) -> None:
        self._check_cancelled()
        self._state = state

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise WorkerCancelledError(f"Cancelled while {self._state.value}")

    async def _fetch(self, start: date, end: date) -> JSONObject:
        self._enter(WorkerState.FETCHING)
        with tracer.start_as_current_span("worker.fetch") as span:
            span.set_attribute("biotrackr.document_type", self._document_type.value)
            span.set_attribute("biotrackr.window.start", start.isoformat())
            span.set_attribute("biotrackr.window.end", end.isoformat())
            return await self._source.fetch(self._document_type, start, end)

    def _map(self, as_of: str, raw: JSONObject) -> list[Document]:
        self._enter(WorkerState.MAPPING)
        with tracer.start_as_current_span("worker.map") as span:
            documents = [
                self._mapper.map(item_date, item)
                for item_date, item in self._mapper.items(as_of, raw)
            ]
            span.set_attribute("biotrackr.documents", len(documents))
        logger.debug(
            "documents_mapped",
            document_type=self._document_type.value,
            count=len(documents),
        )
        return documents

    async def _persist(self, documents: list[Document]) -> None:
        self._enter(WorkerState.PERSISTING)
        partition_key = self._document_type.value
        with tracer.start_as_current_span("worker.persist") as span:
            span.set_attribute("db.system", "cosmosdb")
            span.set_attribute("biotrackr.partition_key", partition_key)
            for document in documents:
                self._check_cancelled()
                try:
                    await self._store.create_document(document, partition_key)
                except DocumentConflictError:
                    if not self._skip_conflicts:
                        raise
                    self._skipped += 1
                    DOCUMENTS_SKIPPED.labels(document_type=partition_key).inc()
                    logger.info(
                        "document_already_ingested",
                        document_id=document.id,
                        date=document.date,
                    )
                    continue
                self._written += 1
                DOCUMENTS_PERSISTED.labels(document_type=partition_key).inc()
            span.set_attribute("biotrackr.documents_written", self._written)
