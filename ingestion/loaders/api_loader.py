"""
Paginated REST API loader with retry logic and a circuit breaker.

Supports the pagination styles seen in public APIs:
- page: page-number query parameter (?page=1, ?page=2, ...)
- offset: offset/limit counters
- cursor: opaque cursor returned by the previous response
- next_url: follow the absolute "next" link of the previous response
"""

import httpx
import asyncio
from typing import List, Dict, Any, Optional, Tuple
from datetime import datetime, timedelta, timezone
from ingestion.base import Loader, Page
from core.config import settings
from core.exceptions import (
    FetchError,
    NetworkError,
    RateLimitError,
    AuthenticationError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

PAGINATION_MODES = ("page", "offset", "cursor", "next_url")


class PaginatedAPILoader(Loader):
    """
    Load records page by page from a JSON REST API.

    Termination:
    - the source returns zero records
    - the source returns fewer records than page_size
    - the response says has_next=false, or has no next link / cursor
    - max_pages is reached (normal terminal state, not an error)

    Attributes:
        max_retries: Attempts per page (default: settings.MAX_RETRIES)
        retry_delay: Initial retry delay in seconds, doubled per attempt
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        source_name: str,
        api_url: str,
        pagination: str = "page",
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        records_key: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        api_key: Optional[str] = None,
        page_param: str = "page",
        page_size_param: str = "limit",
        offset_param: str = "offset",
        cursor_param: str = "cursor",
        cursor_field: str = "next_cursor",
        next_field: str = "next",
        start_page: int = 1,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None
    ):
        super().__init__(source_name)
        if pagination not in PAGINATION_MODES:
            raise ValueError(
                f"Unknown pagination mode '{pagination}', expected one of {PAGINATION_MODES}"
            )
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be at least 1")

        self.api_url = api_url
        self.pagination = pagination
        self.page_size = page_size
        self.max_pages = max_pages
        self.records_key = records_key
        self.params = dict(params or {})
        self.headers = dict(headers or {})
        self.api_key = api_key or settings.API_KEY
        self.page_param = page_param
        self.page_size_param = page_size_param
        self.offset_param = offset_param
        self.cursor_param = cursor_param
        self.cursor_field = cursor_field
        self.next_field = next_field
        self.start_page = start_page
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.RETRY_DELAY
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

        self._client = client
        self._owns_client = client is None

        # Circuit breaker state
        self._circuit_breaker_failures = 0
        self._circuit_breaker_threshold = 5
        self._circuit_breaker_open_until: Optional[datetime] = None
        self._circuit_breaker_timeout = 60  # seconds

        self._init_position()

    def _init_position(self):
        self._page_number = self.start_page
        self._offset = 0
        self._cursor: Optional[str] = None
        self._next_url: Optional[str] = None

    def reset(self):
        super().reset()
        self._init_position()

    async def close(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------
    # Circuit breaker
    # ------------------------------------------------------------------

    def _is_circuit_open(self) -> bool:
        """Check if circuit breaker is open."""
        if self._circuit_breaker_open_until is None:
            return False

        if datetime.now(timezone.utc) >= self._circuit_breaker_open_until:
            logger.info(f"Circuit breaker reset for {self.source_name}")
            self._circuit_breaker_failures = 0
            self._circuit_breaker_open_until = None
            return False

        return True

    def _record_failure(self):
        """Record a failure and potentially open circuit breaker."""
        self._circuit_breaker_failures += 1

        if self._circuit_breaker_failures >= self._circuit_breaker_threshold:
            self._circuit_breaker_open_until = datetime.now(timezone.utc) + timedelta(
                seconds=self._circuit_breaker_timeout
            )
            logger.warning(
                f"Circuit breaker opened for {self.source_name}. "
                f"Will retry after {self._circuit_breaker_timeout} seconds."
            )

    def _record_success(self):
        """Record a successful request."""
        self._circuit_breaker_failures = 0
        self._circuit_breaker_open_until = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _build_request(self) -> Tuple[str, Optional[Dict[str, Any]]]:
        """URL and query parameters for the page at the current position"""
        if self.pagination == "next_url" and self._next_url:
            # The next link already carries every query parameter; httpx
            # replaces the URL query when params is passed, even empty
            return self._next_url, None

        params = dict(self.params)
        if self.page_size is not None:
            params[self.page_size_param] = self.page_size

        if self.pagination == "page":
            params[self.page_param] = self._page_number
        elif self.pagination == "offset":
            params[self.offset_param] = self._offset
        elif self.pagination == "cursor" and self._cursor:
            params[self.cursor_param] = self._cursor

        return self.api_url, params

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", **self.headers}
        if self.api_key:
            headers.setdefault("Authorization", f"Bearer {self.api_key}")
        return headers

    async def _make_request_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]]
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic and exponential backoff.

        Raises:
            FetchError: For non-retryable errors or an open circuit
            NetworkError: For retryable failures after max retries
        """
        if self._is_circuit_open():
            raise FetchError(
                f"Circuit breaker is open for {self.source_name}",
                context={
                    "source_name": self.source_name,
                    "api_url": url,
                    "open_until": self._circuit_breaker_open_until.isoformat()
                }
            )

        for attempt in range(self.max_retries):
            last_attempt = attempt >= self.max_retries - 1
            delay = self.retry_delay * (2 ** attempt)

            try:
                logger.debug(f"Request attempt {attempt + 1}/{self.max_retries} to {url}")
                response = await client.get(url, headers=headers, params=params or None, timeout=self.timeout)

            except httpx.TimeoutException as e:
                if not last_attempt:
                    logger.warning(f"Request timeout. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                self._record_failure()
                raise NetworkError(
                    f"Request timeout after {self.max_retries} retries",
                    context={
                        "api_url": url,
                        "source_name": self.source_name,
                        "timeout": self.timeout,
                        "retry_count": attempt + 1
                    },
                    original_exception=e
                )

            except httpx.TransportError as e:
                if not last_attempt:
                    logger.warning(f"Network error. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                self._record_failure()
                raise NetworkError(
                    f"Network error after {self.max_retries} retries",
                    context={
                        "api_url": url,
                        "source_name": self.source_name,
                        "retry_count": attempt + 1
                    },
                    original_exception=e
                )

            status = response.status_code
            context = {"api_url": url, "source_name": self.source_name}

            if status in (401, 403):
                self._record_failure()
                raise AuthenticationError(
                    f"Authentication failed for {url}",
                    status_code=status,
                    response_body=response.text,
                    context=context
                )

            if status == 404:
                self._record_failure()
                raise ResourceNotFoundError(
                    f"Resource not found: {url}",
                    status_code=status,
                    response_body=response.text,
                    context=context
                )

            if status == 429:
                retry_after = _parse_retry_after(response, default=delay)
                if not last_attempt:
                    logger.warning(f"Rate limited. Retrying after {retry_after} seconds")
                    await asyncio.sleep(retry_after)
                    continue
                self._record_failure()
                raise RateLimitError(
                    f"Rate limit exceeded for {url}",
                    response_body=response.text,
                    context={**context, "retry_count": attempt + 1},
                    retry_after=retry_after
                )

            if status >= 500:
                if not last_attempt:
                    logger.warning(
                        f"Server error {status}. "
                        f"Retrying in {delay} seconds (attempt {attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                self._record_failure()
                raise NetworkError(
                    f"Server error after {self.max_retries} retries",
                    status_code=status,
                    response_body=response.text,
                    context={**context, "retry_count": attempt + 1}
                )

            if status >= 400:
                self._record_failure()
                raise FetchError(
                    f"Unexpected HTTP {status} from {url}",
                    status_code=status,
                    response_body=response.text,
                    context=context
                )

            self._record_success()
            return response

        raise FetchError(
            "Max retries exceeded",
            context={"api_url": url, "source_name": self.source_name}
        )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def fetch_page(self) -> Page:
        """
        Fetch the page at the current position and advance.

        Raises:
            FetchError: For HTTP failures or unparseable responses
        """
        url, params = self._build_request()
        page_index = self.pages_fetched + 1
        logger.debug(f"Fetching page {page_index} from {url}")

        response = await self._make_request_with_retry(
            self._get_client(), url, self._build_headers(), params
        )

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(
                "Failed to parse JSON response",
                status_code=response.status_code,
                response_body=response.text,
                context={"api_url": url, "source_name": self.source_name, "page": page_index},
                original_exception=e
            )

        records = self._extract_records(data, url, page_index)
        done = self._advance(data, records)

        if not done and self.max_pages is not None and page_index >= self.max_pages:
            logger.info(
                f"Reached max page ceiling ({self.max_pages}) for {self.source_name}; stopping"
            )
            done = True

        logger.debug(f"Fetched {len(records)} records from page {page_index}")
        return Page(records=records, done=done, cursor=self._position())

    def _extract_records(self, data: Any, url: str, page_index: int) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            if self.records_key:
                records = data.get(self.records_key, [])
            else:
                records = data.get("data", data.get("results", []))
        else:
            records = None

        if not isinstance(records, list):
            raise FetchError(
                "Unexpected response shape",
                context={
                    "api_url": url,
                    "source_name": self.source_name,
                    "page": page_index,
                    "response_type": type(data).__name__
                }
            )
        return records

    def _advance(self, data: Any, records: List[Dict[str, Any]]) -> bool:
        """Move to the next position; return True when the source is exhausted."""
        if not records:
            return True

        exhausted = self.page_size is not None and len(records) < self.page_size
        if isinstance(data, dict) and data.get("has_next") is False:
            exhausted = True

        if self.pagination == "page":
            self._page_number += 1
        elif self.pagination == "offset":
            self._offset += len(records)
        elif self.pagination == "cursor":
            self._cursor = data.get(self.cursor_field) if isinstance(data, dict) else None
            if not self._cursor:
                exhausted = True
        elif self.pagination == "next_url":
            self._next_url = data.get(self.next_field) if isinstance(data, dict) else None
            if not self._next_url:
                exhausted = True

        return exhausted

    def _position(self) -> Optional[str]:
        if self.pagination == "page":
            return str(self._page_number)
        if self.pagination == "offset":
            return str(self._offset)
        if self.pagination == "cursor":
            return self._cursor
        return self._next_url


def _parse_retry_after(response: httpx.Response, default: float) -> float:
    value = response.headers.get("Retry-After")
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default
