"""Async httpx client with retries, a rate limit and an optional HTTP cache."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from termrequester.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from termrequester.config.http_resilience import (
        CacheConfig,
        RateLimit,
        ResilienceConfig,
        RetryPolicy,
    )

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    json: object
    params: dict[str, str]
    headers: dict[str, str]


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


def build_cache_storage(cache: CacheConfig | None) -> AsyncSqliteStorage | None:
    """Hishel storage for ``cache``; ``None`` disables caching."""

    if cache is None:
        return None
    match cache.backend:
        case "memory":
            database_path = ":memory:"
        case "sqlite":
            database_path = cache.sqlite_path or str(get_storage_config().http_cache_path())
        case _:
            raise ValueError(f"Unsupported cache backend: {cache.backend}")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=cache.default_ttl_seconds,
        refresh_ttl_on_access=cache.refresh_ttl_on_access,
    )


class ResilientClient:
    """One-shot async client; use as ``async with ResilientClient(config) as client``.

    Every request waits for the rate limiter. Retries happen below it in the
    transport, so a retried request counts once against the limit. Pass a
    ``limiter`` owned by the caller to share the budget across clients; it must
    only be used by one event loop at a time.
    """

    def __init__(self, config: ResilienceConfig, *, limiter: AsyncLimiter | None = None) -> None:
        self.config = config
        self._limiter = limiter if limiter is not None else build_limiter(config.ratelimit)
        self._client = self._build_client(config)

    @staticmethod
    def _build_client(config: ResilienceConfig) -> httpx.AsyncClient:
        transport = RetryTransport(retry=build_retry(config.retry))
        headers = dict(config.default_headers or {})
        base_url = config.base_url or ""
        storage = build_cache_storage(config.cache)
        if storage is not None:
            log.debug("HTTP cache enabled for %s (%s)", config.name, config.cache)
            return AsyncCacheClient(
                base_url=base_url,
                headers=headers,
                timeout=config.timeout_seconds,
                transport=transport,
                storage=storage,
            )
        return httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        **options: Unpack[RequestOptions],
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **options)
        async with self._limiter:
            return await self._client.request(method, url, **options)

    async def get(self, url: str, **options: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **options)

    async def post(self, url: str, **options: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **options)

    async def patch(self, url: str, **options: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("PATCH", url, **options)
