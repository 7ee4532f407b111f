"""Async HTTP transport for the content management API.

The decoders and request builders in this package are pure; ``ContentApiClient``
is the piece that actually talks to the API. It executes ``RequestDescriptor``
objects with httpx, retries transient failures with tenacity, maps HTTP and
network failures onto the contentbridge exception hierarchy, and can cache GET
response bodies in memory.
"""

import hashlib
import ssl
from http import HTTPStatus
from typing import Any, Self

import certifi
import httpx
import tenacity
from cachetools import TTLCache  # type: ignore[import-untyped]
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
)

from .auth import AuthStrategy, auth_from_settings
from .config import ContentSettings, get_settings
from .exceptions import (
    APIError,
    ConfigurationError,
    ContentBridgeError,
    ContentBridgeRequestError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    TimeoutError,
)
from .log_config import logger
from .schema import LocaleSet
from .types import RequestDescriptor


class ContentApiClient:
    """Asynchronous client executing request descriptors against the API.

    Key features:
    - Automatic retries with exponential backoff for 429/5xx, timeouts and
      network errors
    - Optional in-memory TTL cache for GET response bodies
    - Pluggable authentication strategies
    - HTTP failures mapped onto ``APIError`` and its subclasses

    Attributes:
        _settings: Configuration settings for the client.
        _base_url: The base URL for API requests.
        _retryable_status_codes: HTTP status codes that trigger a retry.
        _cache: Optional TTL cache of GET response bodies.
        _auth_strategy: Authentication strategy instance.
        _http_client: The underlying httpx.AsyncClient.
        _should_close_client: Whether this instance owns ``_http_client``.
    """

    DEFAULT_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset(
        [429, 500, 502, 503, 504]
    )

    def __init__(
        self,
        settings: ContentSettings | None = None,
        auth_strategy: AuthStrategy | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    ):
        """Initialize the ContentApiClient.

        Args:
            settings: Client settings; defaults to ``get_settings()``.
            auth_strategy: Optional authentication strategy. Defaults to a Bearer
                token strategy when ``settings.access_token`` is set.
            http_client: Optional pre-configured httpx.AsyncClient instance.
            retryable_status_codes: Set of HTTP status codes to retry on.
        """
        self._settings = settings or get_settings()
        self._base_url: str = self._settings.base_url.rstrip("/")
        self._retryable_status_codes = retryable_status_codes

        self._cache: TTLCache[str, bytes] | None = None
        if self._settings.enable_caching and self._settings.cache_ttl_seconds > 0:
            logger.info(
                f"Response caching enabled. Max size: {self._settings.cache_max_size}, "
                f"TTL: {self._settings.cache_ttl_seconds}s"
            )
            self._cache = TTLCache(
                maxsize=self._settings.cache_max_size,
                ttl=self._settings.cache_ttl_seconds,
            )

        self._auth_strategy: AuthStrategy = auth_strategy or auth_from_settings(
            self._settings
        )
        logger.info(
            f"Using authentication strategy: {type(self._auth_strategy).__name__}"
        )

        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()
        logger.debug("ContentApiClient initialized.")

    @property
    def settings(self) -> ContentSettings:
        return self._settings

    @property
    def space_id(self) -> str:
        """The configured space id.

        Raises:
            ConfigurationError: If no space id is configured.
        """
        if not self._settings.space_id:
            raise ConfigurationError(
                "No space configured; set CONTENTBRIDGE_SPACE_ID or settings.space_id."
            )
        return self._settings.space_id

    @property
    def locale(self) -> LocaleSet | None:
        return self._settings.locale_set()

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create an httpx.AsyncClient with certifi SSL, timeout and user agent."""
        try:
            verify_ssl: ssl.SSLContext | bool = ssl.create_default_context(
                cafile=certifi.where()
            )
        except (OSError, ssl.SSLError):
            verify_ssl = True
            logger.warning(
                "Could not load the certifi CA bundle. Using default SSL verification."
            )

        return httpx.AsyncClient(
            timeout=self._settings.request_timeout,
            verify=verify_ssl,
            headers={"User-Agent": self._settings.user_agent},
        )

    async def _execute_single_request(
        self, descriptor: RequestDescriptor
    ) -> httpx.Response:
        """Send one attempt of a request and map failures onto our exceptions.

        Raises:
            NotFoundError: On 404.
            RateLimitError: On 429.
            APIError: On any other 4xx/5xx status.
            TimeoutError: If the request times out.
            NetworkError: For connection-level failures.
            ContentBridgeRequestError: For any other httpx request failure.
        """
        request = descriptor.build_request(self._base_url)
        await self._auth_strategy.async_authenticate(request)
        if not request.headers.get("User-Agent"):
            request.headers["User-Agent"] = self._settings.user_agent

        logger.debug(f"Sending request: {request.method} {request.url}")
        try:
            response = await self._http_client.send(request)
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {request.url}")
            raise TimeoutError("Request timed out", request=request) from e
        except httpx.NetworkError as e:
            logger.error(f"Network error occurred for {request.url}: {e}")
            raise NetworkError(
                f"Network error for {request.url}: {e}", request=request
            ) from e
        except httpx.RequestError as e:
            logger.error(f"HTTP request error for {request.url}: {e}")
            raise ContentBridgeRequestError(
                f"HTTP request error for {request.url}: {e}", request=request
            ) from e

        logger.debug(f"Received response: {response.status_code} for {request.url}")
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError("Resource not found", response=response)
        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
            raise RateLimitError("API rate limit exceeded.", response=response)
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            raise APIError(
                f"API request failed with status {response.status_code}",
                response=response,
            )
        return response

    def _should_retry_request(self, retry_state: tenacity.RetryCallState) -> bool:
        """Predicate for tenacity: retry timeouts, network errors and retryable statuses."""
        outcome = retry_state.outcome
        if not outcome or not outcome.failed:
            return False

        exc = outcome.exception()
        if isinstance(exc, TimeoutError | NetworkError):
            logger.warning(f"Retrying due to {type(exc).__name__}")
            return True
        if isinstance(exc, APIError) and exc.response is not None:
            status_code = exc.response.status_code
            if status_code in self._retryable_status_codes:
                logger.warning(f"Retrying due to status code {status_code}")
                return True
        return False

    async def _before_retry_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        if not retry_state.outcome:
            return
        exc = retry_state.outcome.exception()
        sleep_time = (
            getattr(retry_state.next_action, "sleep", 0)
            if retry_state.next_action
            else 0
        )
        logger.info(
            f"Retrying request in {sleep_time:.2f} seconds after "
            f"{retry_state.attempt_number} attempt(s) due to: {type(exc).__name__} - {exc}"
        )

    async def send(self, descriptor: RequestDescriptor) -> httpx.Response:
        """Execute a request descriptor with retries for transient failures.

        Args:
            descriptor: The request to execute.

        Returns:
            httpx.Response: The successful (2xx/3xx) response.

        Raises:
            ContentBridgeError: The last failure once retries are exhausted, or
                the first non-retryable one.
        """
        retry_strategy = AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries + 1),
            wait=wait_exponential(multiplier=self._settings.backoff_factor),
            retry=self._should_retry_request,
            reraise=True,
            before_sleep=self._before_retry_sleep,
        )
        try:
            response = await retry_strategy(self._execute_single_request, descriptor)
        except ContentBridgeError as e:
            logger.error(f"{descriptor.method} {descriptor.path} failed: {e}")
            raise

        if descriptor.method != "GET" and self._cache:
            # A write changes entry versions and list contents alike
            logger.debug(
                f"Clearing {len(self._cache)} cached responses after {descriptor.method}"
            )
            self._cache.clear()
        return response

    def _cache_key(self, descriptor: RequestDescriptor) -> str:
        key_parts = [descriptor.method, self._base_url, descriptor.path]
        key_parts.extend(f"{name}={value}" for name, value in descriptor.query)
        return hashlib.md5("|".join(key_parts).encode("utf-8")).hexdigest()

    async def fetch(self, descriptor: RequestDescriptor) -> bytes:
        """Execute a request and return the response body.

        GET bodies are served from and stored in the cache when caching is enabled.
        Any successful non-GET request empties the cache.
        """
        cacheable = self._cache is not None and descriptor.method == "GET"
        cache_key = self._cache_key(descriptor) if cacheable else None
        if cache_key is not None and self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {descriptor.path}")
                return cached

        response = await self.send(descriptor)
        body = response.content
        if cache_key is not None and self._cache is not None:
            self._cache[cache_key] = body
        return body

    async def fetch_json(self, descriptor: RequestDescriptor) -> Any:
        """Execute a request and return the parsed JSON response body."""
        response = await self.send(descriptor)
        return response.json()

    async def aclose(self) -> None:
        """Close the underlying HTTP client (if owned) and the auth strategy."""
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug("ContentApiClient internal HTTP client closed.")
        await self._auth_strategy.async_close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()
