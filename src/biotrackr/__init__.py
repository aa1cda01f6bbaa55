"""Fitbit health metric ingestion and read service.

Run-once workers fetch one metric domain (activity, sleep, weight or food)
from the Fitbit Web API, map it into documents and store them in a
partitioned Cosmos DB container. A read API serves the stored documents by
date, by date range and as paginated listings.

Modules:
    config: Configuration management using pydantic-settings
    fitbit_client: Fitbit Web API client
    mappers: Per-domain payload to document mappers
    cosmos_store: Cosmos DB document store
    worker: Run-once ingestion worker
    api: FastAPI read endpoints

Example:
    Ingest yesterday's sleep::

        $ biotrackr-worker sleep

    Serve the read API::

        $ biotrackr-api
"""

__version__ = "0.1.0"

from .config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
