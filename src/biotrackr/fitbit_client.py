"""Fitbit Web API client."""

from datetime import date
from typing import Protocol

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import FitbitSettings
from .errors import (
    AuthExpiredError,
    FetchError,
    RateLimitedError,
    SourceNotFoundError,
    TransientFetchError,
)
from .metrics import FETCH_REQUESTS
from .models import DocumentType
from .types import JSONObject

logger = structlog.get_logger(__name__)


class MetricSource(Protocol):
    """Anything that can return the raw payload for a domain and date window."""

    async def fetch(self, document_type: DocumentType, start: date, end: date) -> JSONObject:
        ...


def resource_path(document_type: DocumentType, start: date, end: date) -> str:
    """Build the API path for a domain.

    Daily domains only look at ``start``; weight is fetched as a window.
    """
    if document_type is DocumentType.ACTIVITY:
        return f"/1/user/-/activities/date/{start.isoformat()}.json"
    if document_type is DocumentType.SLEEP:
        return f"/1.2/user/-/sleep/date/{start.isoformat()}.json"
    if document_type is DocumentType.WEIGHT:
        return f"/1/user/-/body/log/weight/date/{start.isoformat()}/{end.isoformat()}.json"
    if document_type is DocumentType.FOOD:
        return f"/1/user/-/foods/log/date/{start.isoformat()}.json"
    raise ValueError(f"Unsupported document type: {document_type}")


class FitbitClient:
    """Fetches raw metric payloads for the authenticated Fitbit user.

    Rate limiting and transient failures are retried with exponential
    backoff; auth and not-found responses fail immediately.
    """

    def __init__(
        self,
        settings: FitbitSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Fitbit API settings.
            transport: Optional httpx transport, e.g. a MockTransport in tests.
        """
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "FitbitClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(self, document_type: DocumentType, start: date, end: date) -> JSONObject:
        """Fetch the raw payload for a domain.

        Raises:
            FetchError: Subclass describing why the payload could not be fetched.
        """
        if not self._settings.access_token:
            FETCH_REQUESTS.labels(document_type=document_type.value, status="auth_missing").inc()
            raise AuthExpiredError("Fitbit access token is not configured")

        path = resource_path(document_type, start, end)
        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_retries),
                wait=wait_exponential(
                    multiplier=self._settings.retry_delay_seconds,
                    min=self._settings.retry_delay_seconds,
                    max=60,
                ),
                retry=retry_if_exception_type((TransientFetchError, RateLimitedError)),
                reraise=True,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    payload = await self._attempt_fetch(document_type, path, attempt)
        except FetchError as e:
            FETCH_REQUESTS.labels(
                document_type=document_type.value, status=type(e).__name__
            ).inc()
            logger.error(
                "fitbit_request_failed",
                document_type=document_type.value,
                path=path,
                status_code=e.status_code,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        FETCH_REQUESTS.labels(document_type=document_type.value, status="success").inc()
        return payload

    async def _attempt_fetch(
        self, document_type: DocumentType, path: str, attempt: int
    ) -> JSONObject:
        try:
            response = await self._client.get(
                path,
                headers={
                    "Authorization": f"Bearer {self._settings.access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.warning(
                "fitbit_transport_error", path=path, attempt=attempt, error=str(e)
            )
            raise TransientFetchError(f"Request to {path} failed: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise AuthExpiredError(f"Fitbit rejected the access token ({status})", status)
        if status == 404:
            raise SourceNotFoundError(f"No Fitbit resource at {path}", status)
        if status == 429:
            logger.warning(
                "fitbit_rate_limited",
                path=path,
                attempt=attempt,
                retry_after=response.headers.get("Retry-After"),
            )
            raise RateLimitedError("Fitbit rate limit reached", status)
        if status >= 500:
            logger.warning("fitbit_server_error", path=path, attempt=attempt, status=status)
            raise TransientFetchError(f"Fitbit returned HTTP {status}", status)
        if status >= 400:
            raise FetchError(f"Fitbit returned HTTP {status}", status)

        try:
            payload = response.json()
        except ValueError as e:
            raise TransientFetchError(f"Undecodable response body from {path}", status) from e
        if not isinstance(payload, dict):
            raise TransientFetchError(f"Expected a JSON object from {path}", status)

        logger.info(
            "fitbit_payload_fetched",
            document_type=document_type.value,
            path=path,
            attempt=attempt,
        )
        return payload
