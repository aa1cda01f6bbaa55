"""Exception hierarchy for ingestion and retrieval."""


class BiotrackrError(Exception):
    """Base class for all service errors."""


class FetchError(BiotrackrError):
    """Raised when the metric source cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthExpiredError(FetchError):
    """Access token missing, expired or rejected by the provider."""


class RateLimitedError(FetchError):
    """Provider rate limit reached."""


class SourceNotFoundError(FetchError):
    """Provider has no resource at the requested path."""


class TransientFetchError(FetchError):
    """Network failure, server error, or undecodable response body."""


class MappingError(BiotrackrError):
    """Raised when a raw provider payload cannot be mapped to a document."""


class StoreError(BiotrackrError):
    """Raised when a document store operation fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocumentConflictError(StoreError):
    """A document with the same id already exists in the container."""


class StoreUnavailableError(StoreError):
    """The store could not be reached."""


class StoreUnauthorizedError(StoreError):
    """The store rejected the configured credentials."""


class StoreTransientError(StoreError):
    """Throttling, timeout or server-side failure reported by the store."""


class WorkerCancelledError(BiotrackrError):
    """Raised inside a worker run when cancellation was requested."""
