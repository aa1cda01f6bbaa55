"""Entry points for the ingestion workers and the read API."""

import argparse
import asyncio
import signal
import sys
from collections.abc import Callable
from contextlib import AsyncExitStack
from datetime import date, datetime
from zoneinfo import ZoneInfo

import structlog
from pydantic import ValidationError

from . import __version__
from .api import ReadAPI
from .config import Settings, get_settings
from .cosmos_store import create_store
from .errors import BiotrackrError
from .fitbit_client import FitbitClient, MetricSource
from .logging import setup_logging
from .mappers import MapperRegistry
from .metrics import SERVICE_INFO
from .models import DocumentType
from .store import DocumentStore
from .tracing import setup_tracing
from .worker import ExitStatus, IngestionWorker, WorkerResult

logger = structlog.get_logger(__name__)


def local_today(timezone: str) -> Callable[[], date]:
    """Clock returning the current date in ``timezone``."""
    zone = ZoneInfo(timezone)
    return lambda: datetime.now(zone).date()


async def run_worker(
    document_type: DocumentType,
    settings: Settings,
    *,
    source: MetricSource | None = None,
    store: DocumentStore | None = None,
    cancel_event: asyncio.Event | None = None,
    today: Callable[[], date] | None = None,
) -> WorkerResult:
    """Wire collaborators from settings and run one ingestion pass.

    Collaborators not supplied are built from settings and closed on return.
    """
    mapper = MapperRegistry(settings.app.deterministic_ids).get(document_type)

    async with AsyncExitStack() as stack:
        if source is None:
            source = await stack.enter_async_context(FitbitClient(settings.fitbit))
        if store is None:
            store = await stack.enter_async_context(create_store(settings.cosmos))

        worker = IngestionWorker(
            document_type,
            source,
            store,
            mapper,
            today=today or local_today(settings.app.timezone),
            cancel_event=cancel_event,
            skip_conflicts=settings.app.deterministic_ids,
        )
        return await worker.run()


def _install_signal_handlers(event: asyncio.Event) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        logger.info("shutdown_signal_received")
        event.set()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except (NotImplementedError, RuntimeError):
            continue
        installed.append(sig)
    return installed


async def _worker_async(document_type: DocumentType, settings: Settings) -> ExitStatus:
    provider = setup_tracing(settings.tracing)
    cancel_event = asyncio.Event()
    installed = _install_signal_handlers(cancel_event)
    try:
        result = await run_worker(document_type, settings, cancel_event=cancel_event)
        return result.exit_status
    except BiotrackrError as e:
        # Failures while wiring collaborators, before the worker runs
        logger.error(
            "worker_setup_failed",
            document_type=document_type.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ExitStatus.FAILED
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)
        if provider:
            provider.shutdown()


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(int(ExitStatus.FAILED))


def worker_main(argv: list[str] | None = None) -> None:
    """CLI entry point for a run-once ingestion worker.

    Usage:
        biotrackr-worker <activity|sleep|weight|food>

    Exits 0 when the run completes and 1 when it fails.
    """
    parser = argparse.ArgumentParser(
        prog="biotrackr-worker",
        description="Fetch one Fitbit metric domain and store it as documents",
    )
    parser.add_argument(
        "domain",
        choices=[document_type.slug for document_type in DocumentType],
        help="Metric domain to ingest",
    )
    args = parser.parse_args(argv)

    settings = _load_settings()
    setup_logging(settings.app)
    SERVICE_INFO.info({"version": __version__, "component": "worker"})

    exit_status = asyncio.run(_worker_async(DocumentType.from_slug(args.domain), settings))
    sys.exit(int(exit_status))


async def _serve_api(settings: Settings) -> None:
    provider = setup_tracing(settings.tracing)
    shutdown_event = asyncio.Event()
    installed = _install_signal_handlers(shutdown_event)
    try:
        async with create_store(settings.cosmos) as store:
            api = ReadAPI(settings.http, store, readiness_check=store.health_check)
            await api.start()
            try:
                await shutdown_event.wait()
            finally:
                await api.stop()
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)
        if provider:
            provider.shutdown()


def api_main() -> None:
    """CLI entry point for the read API server."""
    settings = _load_settings()
    setup_logging(settings.app)
    SERVICE_INFO.info({"version": __version__, "component": "api"})

    try:
        asyncio.run(_serve_api(settings))
    except BiotrackrError as e:
        logger.error("api_startup_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    worker_main()
