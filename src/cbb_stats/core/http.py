"""
Shared HTTP client infrastructure for upstream feed integrations.

Feeds are season-sized downloads (a gzipped JSON archive, a CSV export, a
JSON document), so the base client hands back the raw body and leaves
decoding to the feed module. Requests are spaced by a per-client rate
limiter and retried on transport errors, 5xx and 429.

Usage:
    class MyFeedClient(BaseApiClient):
        BASE_URL = "https://feeds.example.com"

        async def get_archive(self, year: int) -> bytes:
            return await self._get_bytes(f"/{year}.json.gz")

        async def get_export(self, year: int) -> str:
            return await self._get_text(f"/export.php?year={year}&csv=1")
"""

import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)

# Longest we honour a Retry-After header before trying again
MAX_RETRY_AFTER_WAIT = 30


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExternalAPIError(Exception):
    """A feed request failed."""

    def __init__(
        self,
        message: str,
        code: str = "EXTERNAL_API_ERROR",
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class RateLimitError(ExternalAPIError):
    """The feed kept answering 429 until retries ran out."""

    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, code="RATE_LIMITED", status_code=429)
        self.retry_after = retry_after


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

class RateLimiter:
    """Minimum spacing between requests from one client."""

    def __init__(self, requests_per_minute: int = 600):
        self.delay = 60.0 / requests_per_minute
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request slot."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.delay:
                await asyncio.sleep(self.delay - elapsed)
            self._last_request = time.monotonic()


def _is_retryable(status: int) -> bool:
    return status == 429 or status >= 500


def _backoff(attempt: int) -> int:
    return 2 ** attempt


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------

class BaseApiClient:
    """
    Async feed client base with rate limiting and retries.

    Use as an async context manager:

        async with MyFeedClient() as client:
            payload = await client.get_archive(2026)

    Without the context manager the httpx client is created on first
    request; call close() when done. Tests pass an httpx transport
    (e.g. httpx.MockTransport) to stay off the network.
    """

    BASE_URL: str = ""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        requests_per_minute: int = 600,
        timeout: float = 30.0,
        max_retries: int = 3,
        follow_redirects: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._headers = headers or {}
        self._rate_limiter = RateLimiter(requests_per_minute)
        self._timeout = timeout
        self._max_retries = max_retries
        self._follow_redirects = follow_redirects
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # -- Lifecycle -----------------------------------------------------------

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=self._follow_redirects,
            transport=self._transport,
        )

    async def __aenter__(self) -> "BaseApiClient":
        self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the HTTP client, lazily creating it if needed."""
        if self._client is None or self._client.is_closed:
            self._client = self._build_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # -- Requests ------------------------------------------------------------

    async def _get_bytes(self, path: str) -> bytes:
        """GET a raw body (e.g. a gzip archive)."""
        return (await self._fetch(path)).content

    async def _get_text(self, path: str) -> str:
        """GET a decoded text body (e.g. CSV)."""
        return (await self._fetch(path)).text

    async def _fetch(self, path: str) -> httpx.Response:
        """
        GET a path with rate limiting and retries.

        Raises:
            RateLimitError: The feed answered 429 on the last attempt
            ExternalAPIError: Any other failure once retries are used up,
                or immediately for a 4xx
        """
        last_error: ExternalAPIError | None = None

        for attempt in range(self._max_retries):
            final = attempt == self._max_retries - 1
            await self._rate_limiter.acquire()
            try:
                response = await self.client.get(path)
            except httpx.RequestError as e:
                last_error = ExternalAPIError(f"Request to {path} failed: {e}")
                if not final:
                    logger.warning("Request error for %s, retrying in %ds: %s", path, _backoff(attempt), e)
                    await asyncio.sleep(_backoff(attempt))
                continue

            if response.is_success:
                return response

            status = response.status_code
            if status == 429:
                retry_after = int(response.headers.get("retry-after", 60))
                last_error = RateLimitError(
                    f"Feed rate limit exceeded. Try again in {retry_after} seconds.",
                    retry_after=retry_after,
                )
                wait = min(retry_after, MAX_RETRY_AFTER_WAIT)
            else:
                last_error = ExternalAPIError(
                    f"HTTP {status} for {path}: {response.text[:200]}",
                    status_code=status,
                )
                wait = _backoff(attempt)

            if not _is_retryable(status):
                raise last_error
            if not final:
                logger.warning(
                    "%s returned %d for %s, retrying in %ds (attempt %d)",
                    self._base_url,
                    status,
                    path,
                    wait,
                    attempt + 1,
                )
                await asyncio.sleep(wait)

        raise last_error or ExternalAPIError("Request failed after retries")
