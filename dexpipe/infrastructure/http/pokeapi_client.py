"""Async PokeAPI client built on httpx.

Every request passes through the shared `RateLimiter`, is validated,
optionally answered from the response cache, classified into the typed
error taxonomy and decoded into a pydantic model. Bodies are written to
the response cache only after they decode successfully.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from dexpipe import __version__
from dexpipe.domain.errors import (
    DecodingFailedError,
    HTTPStatusError,
    InvalidEndpointError,
    NetworkFailedError,
    NotFoundError,
    PokeApiError,
    RateLimitedError,
    ServerError,
)
from dexpipe.domain.events.api_events import (
    ApiCallDeferred,
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
)
from dexpipe.domain.interfaces.cache import ResponseCache
from dexpipe.domain.models.common import CacheKey, normalize_name
from dexpipe.domain.models.resources import (
    ListResponse,
    MoveDetailResponse,
    Pokemon,
    PokemonMovesResponse,
    Region,
    TypeResponse,
)
from dexpipe.infrastructure.resilience.api_retry import ApiRetryService
from dexpipe.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"
DEFAULT_USER_AGENT = f"dexpipe/{__version__}"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_RESOURCE_TIMEOUT = 60.0

M = TypeVar("M", bound=BaseModel)
EventListener = Callable[[Any], None]


def _log_event(event: Any) -> None:
    logger.debug(f"EVENT: {event}")


class PokeApiClient:
    """Issues single decoded requests against PokeAPI."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        response_cache: Optional[ResponseCache] = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT,
        retry_service: Optional[ApiRetryService] = None,
        event_listener: Optional[EventListener] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the client.

        Args:
            rate_limiter: The limiter shared by every outbound request.
            response_cache: Optional URL-keyed cache for raw response bodies.
            base_url: Root that relative endpoints are joined onto.
            user_agent: Value of the `User-Agent` header.
            request_timeout: Per-request timeout in seconds (connect/read/write).
            resource_timeout: Upper bound in seconds for a whole request.
            retry_service: Wraps each attempt when transient errors should be retried.
            event_listener: Receives the `Api*` domain events.
            transport: Custom httpx transport (tests use `httpx.MockTransport`).
        """
        self.rate_limiter = rate_limiter
        self.response_cache = response_cache
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.resource_timeout = resource_timeout
        self.retry_service = retry_service
        self._dispatch_event = event_listener or _log_event
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        logger.info(f"PokeApiClient initialized: base_url={self.base_url}")

    # --- Lifecycle ---

    def _get_client(self) -> httpx.AsyncClient:
        """Creates the underlying AsyncClient on first use, inside the running loop."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.default_headers,
                timeout=httpx.Timeout(self.request_timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # --- Core Request ---

    async def request(self, endpoint: str, response_model: Type[M]) -> M:
        """Fetches `endpoint` and decodes the body into `response_model`.

        Args:
            endpoint: A path relative to the base URL (`pokemon/25`,
                `move?limit=1000&offset=0`) or an absolute URL.
            response_model: Pydantic model describing the expected body.

        Returns:
            The decoded model instance.

        Raises:
            PokeApiError: One of its subclasses, classified by failure mode.
        """
        if self.retry_service is not None:
            return await self.retry_service.execute_with_retry(
                self._attempt, endpoint, response_model, endpoint_name=endpoint
            )
        return await self._attempt(endpoint, response_model)

    async def _attempt(self, endpoint: str, response_model: Type[M]) -> M:
        wait_time = self.rate_limiter.get_wait_time()
        if wait_time > 0:
            self._dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=wait_time))
        await self.rate_limiter.wait_for_permission()

        try:
            url = self.resolve_url(endpoint)
        except InvalidEndpointError as e:
            self._fail(endpoint, e)
            raise

        start_time = time.perf_counter()
        cache_key = CacheKey(url)
        if self.response_cache is not None:
            cached_body = await self.response_cache.get(cache_key)
            if cached_body is not None:
                try:
                    result = self._decode(cached_body, response_model)
                except DecodingFailedError:
                    logger.warning(f"Discarding undecodable cached body for {url}")
                    await self.response_cache.delete(cache_key)
                else:
                    self._dispatch_event(ApiCallSucceeded(
                        endpoint=url,
                        latency_ms=(time.perf_counter() - start_time) * 1000,
                        from_cache=True,
                    ))
                    return result

        self._dispatch_event(ApiCallInitiated(endpoint=url))
        try:
            response = await self._send(url)
            self._raise_for_status(response)
            result = self._decode(response.content, response_model)
        except PokeApiError as e:
            self._fail(url, e)
            raise

        if self.response_cache is not None:
            await self.response_cache.set(cache_key, response.content)

        self._dispatch_event(ApiCallSucceeded(
            endpoint=url,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            status_code=response.status_code,
        ))
        return result

    def resolve_url(self, endpoint: str) -> str:
        """Joins a relative endpoint onto the base URL and validates the result."""
        if not endpoint or not endpoint.strip() or any(ch.isspace() for ch in endpoint):
            raise InvalidEndpointError(endpoint)
        if "://" in endpoint:
            raw = endpoint
        else:
            raw = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise InvalidEndpointError(endpoint) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidEndpointError(endpoint)
        return str(url)

    async def _send(self, url: str) -> httpx.Response:
        client = self._get_client()
        try:
            return await asyncio.wait_for(client.get(url), timeout=self.resource_timeout)
        except asyncio.TimeoutError as e:
            raise NetworkFailedError(e) from e
        except httpx.HTTPError as e:
            raise NetworkFailedError(e) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        if status == 404:
            raise NotFoundError(str(response.request.url))
        if status == 429:
            raise RateLimitedError()
        if 500 <= status < 600:
            raise ServerError(status)
        raise HTTPStatusError(status)

    @staticmethod
    def _decode(body: bytes, response_model: Type[M]) -> M:
        try:
            return response_model.model_validate_json(body)
        except ValidationError as e:
            raise DecodingFailedError(e) from e

    def _fail(self, endpoint: str, error: PokeApiError) -> None:
        logger.debug(f"Request to {endpoint} failed: {error.description}")
        self._dispatch_event(ApiCallFailed(
            endpoint=endpoint,
            error_type=type(error).__name__,
            error_message=error.description,
        ))

    # --- Convenience Operations ---

    async def fetch_pokemon(self, id_or_name: Union[int, str]) -> Pokemon:
        key = id_or_name if isinstance(id_or_name, int) else normalize_name(id_or_name)
        return await self.request(f"pokemon/{key}", Pokemon)

    async def fetch_pokemon_moves(self, pokemon_id: int) -> PokemonMovesResponse:
        return await self.request(f"pokemon/{pokemon_id}", PokemonMovesResponse)

    async def fetch_resource_list(self, resource: str, limit: int = 20, offset: int = 0) -> ListResponse:
        return await self.request(f"{resource}?limit={limit}&offset={offset}", ListResponse)

    async def fetch_pokemon_list(self, limit: int = 20, offset: int = 0) -> ListResponse:
        return await self.fetch_resource_list("pokemon", limit, offset)

    async def fetch_move(self, id_or_url: Union[int, str]) -> MoveDetailResponse:
        endpoint = id_or_url if isinstance(id_or_url, str) and "://" in id_or_url else f"move/{id_or_url}"
        return await self.request(endpoint, MoveDetailResponse)

    async def fetch_region(self, name: str) -> Region:
        return await self.request(f"region/{normalize_name(name)}", Region)

    async def fetch_all_regions(self) -> ListResponse:
        return await self.request("region", ListResponse)

    async def fetch_type(self, name: str) -> TypeResponse:
        return await self.request(f"type/{normalize_name(name)}", TypeResponse)

    # --- Cache Management ---

    async def clear_cache(self) -> None:
        if self.response_cache is not None:
            await self.response_cache.clear()

    def cache_disk_usage(self) -> int:
        if self.response_cache is None:
            return 0
        return self.response_cache.disk_usage()

    @property
    def default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}
