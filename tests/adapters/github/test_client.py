from __future__ import annotations

import json
import time
from dataclasses import replace
from typing import TYPE_CHECKING

import httpx
import pytest

from termrequester.adapters.github import GitHubAPIError, GitHubClient, IssueState
from termrequester.config.http_resilience import RateLimit
from tests.helpers.github import make_client_factory

if TYPE_CHECKING:
    from termrequester.adapters.http_resilience import ResilientClient
    from termrequester.config.github import GitHubConfig


def _issue_payload(number: int, **extra: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "number": number,
        "title": "New term request: abnormal gait",
        "state": "open",
        "body": "TERM: abnormal gait",
        "labels": [{"name": "new term", "color": "ededed"}],
        "user": {"login": "someone"},
    }
    payload.update(extra)
    return payload


def test_create_issue_posts_payload(github_config: GitHubConfig) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json=_issue_payload(17))

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    issue = client.create_issue(title="t", body="b", labels=["new term"])

    assert issue.number == 17
    assert issue.label_names == {"new term"}
    (request,) = requests
    assert request.method == "POST"
    assert request.url.path == "/repos/obophenotype/term-requests/issues"
    assert request.headers["Authorization"] == "Bearer test-token"
    assert json.loads(request.content) == {"title": "t", "body": "b", "labels": ["new term"]}


def test_update_issue_patches_existing_issue(github_config: GitHubConfig) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_issue_payload(17, body="b2"))

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    issue = client.update_issue(number=17, title="t", body="b2")

    assert issue.body == "b2"
    assert requests[0].method == "PATCH"
    assert requests[0].url.path == "/repos/obophenotype/term-requests/issues/17"


def test_get_issue_returns_none_for_missing_issue(github_config: GitHubConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(404, json={"message": "Not Found"})

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    assert client.get_issue(number=99) is None


def test_get_issue_parses_closed_issue(github_config: GitHubConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(
            200,
            json=_issue_payload(3, state="closed", state_reason="completed"),
        )

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    issue = client.get_issue(number=3)

    assert issue is not None
    assert issue.state is IssueState.CLOSED
    assert not issue.is_pull_request


def test_search_issues_sends_query(github_config: GitHubConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"total_count": 1, "incomplete_results": False, "items": [_issue_payload(4)]},
        )

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    result = client.search_issues(query='repo:o/r is:issue "limp"', per_page=10)

    assert [issue.number for issue in result.items] == [4]
    assert seen[0].url.path == "/search/issues"
    assert seen[0].url.params["q"] == 'repo:o/r is:issue "limp"'
    assert seen[0].url.params["per_page"] == "10"


def test_server_errors_raise(github_config: GitHubConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(500, json={"message": "boom"})

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    with pytest.raises(httpx.HTTPStatusError):
        client.get_issue(number=1)


def test_non_object_payload_is_rejected(github_config: GitHubConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, json=[])

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    with pytest.raises(GitHubAPIError):
        client.get_issue(number=1)


def test_html_body_is_rejected(github_config: GitHubConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, text="<html>maintenance</html>")

    client = GitHubClient(config=github_config, client_factory=make_client_factory(handler))

    with pytest.raises(GitHubAPIError, match="non-JSON"):
        client.search_issues(query="repo:o/r")


def _search_payload() -> dict[str, object]:
    return {"total_count": 0, "incomplete_results": False, "items": []}


def test_search_issues_many_shares_one_client(github_config: GitHubConfig) -> None:
    seen: list[str] = []
    opened: list[ResilientClient] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["q"])
        return httpx.Response(200, json=_search_payload())

    client = GitHubClient(
        config=github_config,
        client_factory=make_client_factory(handler, opened=opened),
    )

    results = client.search_issues_many(["first", "second"])

    assert len(results) == 2
    assert seen == ["first", "second"]
    assert len(opened) == 1


def test_rate_limit_holds_across_calls(github_config: GitHubConfig) -> None:
    resilience = replace(
        github_config.resilience, ratelimit=RateLimit(max_calls=1, per_seconds=0.5)
    )
    config = replace(github_config, resilience=resilience)

    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, json=_search_payload())

    client = GitHubClient(config=config, client_factory=make_client_factory(handler))

    client.search_issues(query="first")
    started = time.monotonic()
    client.search_issues(query="second")

    assert time.monotonic() - started >= 0.4  # noqa: PLR2004


def test_rate_limit_throttles_batched_searches(github_config: GitHubConfig) -> None:
    resilience = replace(
        github_config.resilience, ratelimit=RateLimit(max_calls=1, per_seconds=0.5)
    )
    config = replace(github_config, resilience=resilience)

    def handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, json=_search_payload())

    client = GitHubClient(config=config, client_factory=make_client_factory(handler))

    started = time.monotonic()
    client.search_issues_many(["first", "second"])

    assert time.monotonic() - started >= 0.4  # noqa: PLR2004
