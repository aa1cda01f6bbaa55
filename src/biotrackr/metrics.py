"""Prometheus metrics definitions."""

from prometheus_client import Counter, Histogram, Info

# -- Service info --
SERVICE_INFO = Info("biotrackr", "Biotrackr service info")

# -- Ingestion worker --
WORKER_RUNS = Counter(
    "biotrackr_worker_runs_total",
    "Total worker runs by domain and terminal state",
    ["document_type", "status"],
)
DOCUMENTS_PERSISTED = Counter(
    "biotrackr_documents_persisted_total",
    "Total documents created in the store",
    ["document_type"],
)
DOCUMENTS_SKIPPED = Counter(
    "biotrackr_documents_skipped_total",
    "Total documents skipped because they already existed",
    ["document_type"],
)

# -- Document store --
STORE_OPERATION_DURATION = Histogram(
    "biotrackr_store_operation_duration_seconds",
    "Document store operation latency",
    ["operation"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
STORE_ERRORS = Counter(
    "biotrackr_store_errors_total",
    "Total failed document store operations",
    ["operation", "error_type"],
)

# -- Metric source --
FETCH_REQUESTS = Counter(
    "biotrackr_fetch_requests_total",
    "Total provider requests by domain and outcome",
    ["document_type", "status"],
)

# -- HTTP --
HTTP_REQUESTS_TOTAL = Counter(
    "biotrackr_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
