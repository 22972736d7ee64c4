"""GitHub Issues API client."""

from __future__ import annotations

import asyncio
import threading
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, TypeVar

from termrequester.adapters.http_resilience import ResilientClient, build_limiter

from .schema import GitHubIssue, GitHubIssueSearch

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence

    import httpx
    from aiolimiter import AsyncLimiter

    from termrequester.config.github import GitHubConfig
    from termrequester.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

T = TypeVar("T")

DEFAULT_SEARCH_PAGE_SIZE = 30


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API returns an unexpected response."""


class ClientFactory(Protocol):
    def __call__(
        self,
        config: ResilienceConfig,
        *,
        limiter: AsyncLimiter | None = None,
    ) -> ResilientClient: ...


class GitHubClient:
    """Low-level HTTP client for the issues of one GitHub repository.

    Each call runs its own event loop. The rate limiter outlives those loops so
    the configured budget holds across calls; calls are serialised to keep the
    limiter on one loop at a time.
    """

    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory: ClientFactory = client_factory or ResilientClient
        self._limiter = build_limiter(config.resilience.ratelimit)
        self._loop_lock = threading.Lock()
        self._issues_path = f"repos/{config.owner}/{config.repository}/issues"

    def create_issue(
        self,
        *,
        title: str,
        body: str,
        labels: Sequence[str] = (),
    ) -> GitHubIssue:
        payload: dict[str, object] = {"title": title, "body": body}
        if labels:
            payload["labels"] = list(labels)
        return self._run(self._send_issue("POST", self._issues_path, payload))

    def update_issue(self, *, number: int, title: str, body: str) -> GitHubIssue:
        return self._run(
            self._send_issue("PATCH", f"{self._issues_path}/{number}", {"title": title, "body": body})
        )

    def get_issue(self, *, number: int) -> GitHubIssue | None:
        return self._run(self._get_issue_async(number=number))

    def search_issues(
        self,
        *,
        query: str,
        per_page: int = DEFAULT_SEARCH_PAGE_SIZE,
    ) -> GitHubIssueSearch:
        (result,) = self.search_issues_many([query], per_page=per_page)
        return result

    def search_issues_many(
        self,
        queries: Sequence[str],
        *,
        per_page: int = DEFAULT_SEARCH_PAGE_SIZE,
    ) -> list[GitHubIssueSearch]:
        """Run several searches through one client, in order."""

        return self._run(self._search_issues_async(queries, per_page=per_page))

    def _run(self, coroutine: Coroutine[object, object, T]) -> T:
        with self._loop_lock:
            return asyncio.run(coroutine)

    def _open(self) -> ResilientClient:
        return self._client_factory(self._resilience, limiter=self._limiter)

    async def _send_issue(
        self,
        method: str,
        path: str,
        payload: dict[str, object],
    ) -> GitHubIssue:
        async with self._open() as client:
            response = await client.request(method, path, json=payload)
        response.raise_for_status()
        return GitHubIssue.model_validate(_json_object(response))

    async def _get_issue_async(self, *, number: int) -> GitHubIssue | None:
        async with self._open() as client:
            response = await client.get(f"{self._issues_path}/{number}")
        if response.status_code == 404:  # noqa: PLR2004
            log.info("GitHub issue #%s not found in %s", number, self._config.full_name)
            return None
        response.raise_for_status()
        return GitHubIssue.model_validate(_json_object(response))

    async def _search_issues_async(
        self,
        queries: Sequence[str],
        *,
        per_page: int,
    ) -> list[GitHubIssueSearch]:
        results: list[GitHubIssueSearch] = []
        async with self._open() as client:
            for query in queries:
                response = await client.get(
                    "search/issues", params={"q": query, "per_page": str(per_page)}
                )
                response.raise_for_status()
                result = GitHubIssueSearch.model_validate(_json_object(response))
                if result.incomplete_results:
                    log.warning("GitHub search for %r returned incomplete results", query)
                results.append(result)
        return results


def _json_object(response: httpx.Response) -> dict[str, object]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise GitHubAPIError(
            f"GitHub returned a non-JSON body for {response.request.url}"
        ) from exc
    if not isinstance(payload, dict):
        raise GitHubAPIError("Unexpected GitHub response payload")
    return payload
