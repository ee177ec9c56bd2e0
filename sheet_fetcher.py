import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

import requests

from config import Settings
from sheet_process import HeaderNames, get_parser, transform_grid
from utils.errors import UpstreamError
from utils.result import Result

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 30


class LogContext:
    """Context manager for tracking and logging operation metrics"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.pop('request_id', str(uuid.uuid4())[:8])
        self.extra = kwargs

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )
        else:
            logger.info(
                f"Completed {self.operation_name} in {duration:.2f}s",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )


class TTLCache:
    """
    Single-slot cache holding one value and the time it was fetched.

    The slot is replaced as a whole on every write, so concurrent writers
    never leave a mixed value behind; the last write wins.
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._slot: Optional[Tuple[Any, float]] = None

    def get(self) -> Optional[Any]:
        """Return the cached value while it is younger than the TTL, else None."""
        slot = self._slot
        if slot is None:
            return None
        value, fetched_at = slot
        if self.clock() - fetched_at < self.ttl_seconds:
            return value
        return None

    def set(self, value: Any, fetched_at: Optional[float] = None) -> None:
        self._slot = (value, self.clock() if fetched_at is None else fetched_at)

    def clear(self) -> None:
        self._slot = None


class SheetsClient:
    """
    Thin HTTP client for the spreadsheet provider.

    Every transport, HTTP status and decoding failure surfaces as UpstreamError.
    No retries are attempted.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str, params: Dict[str, str]) -> Any:
        """
        GET ``url`` and decode the JSON body.

        Args:
            url: Endpoint URL
            params: Query parameters, including the API key

        Returns:
            Decoded JSON payload

        Raises:
            UpstreamError: On network errors, non-2xx responses or invalid JSON
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamError(str(e) or type(e).__name__, _error_details(e)) from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Invalid JSON in spreadsheet provider response", str(e)) from e


def _error_details(error: requests.RequestException) -> str:
    response = getattr(error, "response", None)
    if response is not None and response.text:
        return response.text
    return str(error) or type(error).__name__


class SheetDataFetcher:
    """
    Serves transformed sheet data, fetching from the provider only when the cache is stale.

    Concurrent callers that find the cache stale each fetch from the provider;
    whichever finishes last owns the cache slot.
    """

    def __init__(
        self,
        client: SheetsClient,
        settings: Settings,
        cache: Optional[TTLCache] = None,
        header_names: Optional[HeaderNames] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.settings = settings
        self.parser = get_parser(settings.sheet_format)
        self.cache = cache or TTLCache(clock=clock)
        self.header_names = header_names or HeaderNames()

    def get_data(self) -> Dict[str, Any]:
        """
        Return the transformed sheet, from cache when fresh.

        Returns:
            dict: ``{sheet_name: {entity_name: record}}``

        Raises:
            UpstreamError: If the provider call fails or returns an unexpected shape.
                The cache keeps its previous value.
        """
        cached = self.cache.get()
        if cached is not None:
            logger.info("Serving from cache.")
            return cached

        # Same clock the cache measures age with
        started_at = self.cache.clock()
        url, params = self.parser.request(
            self.settings.sheet_id, self.settings.api_key, self.settings.sheet_name
        )
        with LogContext(
            "sheet data fetch",
            sheet_name=self.settings.sheet_name,
            sheet_format=self.parser.name,
        ):
            payload = self.client.fetch(url, params)
            rows = self.parser.parse(payload, self.settings.sheet_name)

        data = transform_grid(rows, self.settings.sheet_name, self.header_names)
        self.cache.set(data, started_at)
        logger.info("Cache updated.")
        return data

    def fetch_result(self) -> Result[Dict[str, Any]]:
        """
        Wrap get_data() in a Result for the request boundary.

        Returns:
            Result: ok with the data, or a 500 failure carrying the upstream details
        """
        try:
            return Result.ok(self.get_data())
        except UpstreamError as e:
            logger.error(f"Error fetching or parsing sheet data: {e.details}")
            return Result.server_error("Failed to fetch sheet data", details=e.details)
        except Exception as e:
            logger.exception("Unexpected error while building sheet data")
            return Result.server_error("Failed to fetch sheet data", details=f"{type(e).__name__}: {e}")


def build_fetcher(settings: Settings) -> SheetDataFetcher:
    """Create the fetcher used by the API from loaded settings."""
    return SheetDataFetcher(SheetsClient(timeout=settings.upstream_timeout), settings)
