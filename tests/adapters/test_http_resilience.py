from __future__ import annotations

import asyncio

import httpx
import pytest
from hishel import AsyncSqliteStorage

from termrequester.adapters.http_resilience import (
    ResilientClient,
    build_cache_storage,
    build_limiter,
    build_retry,
)
from termrequester.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)


def test_retry_never_replays_post() -> None:
    retry = build_retry(RetryPolicy())

    assert retry.is_retryable_method("PATCH")
    assert not retry.is_retryable_method("POST")


def test_cache_storage_follows_config() -> None:
    assert build_cache_storage(None) is None
    assert isinstance(build_cache_storage(CacheConfig(backend="memory")), AsyncSqliteStorage)


def test_requests_go_through_the_rate_limiter() -> None:
    seen: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(204)

    async def run() -> list[int]:
        config = ResilienceConfig(
            name="test",
            base_url="https://api.example.test",
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        )
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
                base_url="https://api.example.test",
                transport=httpx.MockTransport(handler),
            )
            responses = [await client.get("a"), await client.patch("b", json={})]
        return [response.status_code for response in responses]

    assert asyncio.run(run()) == [204, 204]
    assert seen == ["/a", "/b"]


def test_limiter_is_shared_when_given() -> None:
    config = ResilienceConfig(name="test", ratelimit=RateLimit(max_calls=1, per_seconds=60.0))
    limiter = build_limiter(config.ratelimit)

    async def run() -> None:
        async with ResilientClient(config, limiter=limiter) as client:
            client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
                base_url="https://api.example.test",
                transport=httpx.MockTransport(lambda request: httpx.Response(204)),
            )
            await client.get("a")

    asyncio.run(run())

    assert build_limiter(None) is None
    assert limiter is not None
    assert not limiter.has_capacity()


@pytest.mark.parametrize("backend", ["redis"])
def test_unknown_cache_backend_is_rejected(backend: str) -> None:
    with pytest.raises(ValueError, match="Unsupported cache backend"):
        build_cache_storage(CacheConfig(backend=backend))  # type: ignore[arg-type]
