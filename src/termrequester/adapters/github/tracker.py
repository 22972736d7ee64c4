"""Issue tracker adapter backed by GitHub Issues."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol

import httpx
from pydantic import ValidationError

from termrequester.domain.errors import TrackerIOError
from termrequester.domain.model import Phenotype, Status, parse_issue_body

from .client import GitHubAPIError, GitHubClient
from .schema import IssueState

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from termrequester.config.github import GitHubConfig, GitHubLabels

    from .schema import GitHubIssue, GitHubIssueSearch

log = getLogger(__name__)

# GitHub search accepts at most five boolean operators per query
MAX_TERMS_PER_QUERY: Final[int] = 5


class IssueClient(Protocol):
    def create_issue(
        self, *, title: str, body: str, labels: Sequence[str] = ()
    ) -> GitHubIssue: ...

    def update_issue(self, *, number: int, title: str, body: str) -> GitHubIssue: ...

    def get_issue(self, *, number: int) -> GitHubIssue | None: ...

    def search_issues_many(
        self, queries: Sequence[str], *, per_page: int = 30
    ) -> list[GitHubIssueSearch]: ...


class GitHubIssueTracker:
    """Track phenotype requests as issues of one GitHub repository."""

    def __init__(self, *, config: GitHubConfig, client: IssueClient | None = None) -> None:
        self._config = config
        self._client = client or GitHubClient(config=config)

    def open_issue(self, phenotype: Phenotype) -> None:
        with _tracker_errors("open issue", phenotype):
            issue = self._client.create_issue(
                title=phenotype.issue_title(),
                body=phenotype.issue_body(),
                labels=(self._config.labels.request,),
            )
        phenotype.attach_issue(str(issue.number))

    def patch_issue(self, phenotype: Phenotype) -> None:
        number = _issue_number(phenotype)
        with _tracker_errors("patch issue", phenotype):
            self._client.update_issue(
                number=number,
                title=phenotype.issue_title(),
                body=phenotype.issue_body(),
            )

    def has_issue(self, phenotype: Phenotype) -> bool:
        # A known issue counts in any state; a closed one must not be opened twice.
        if phenotype.issue_number is not None:
            with _tracker_errors("fetch issue", phenotype):
                issue = self._client.get_issue(number=_issue_number(phenotype))
            if issue is not None:
                return True
        return self.search_for_issue(phenotype) is not None

    def search_for_issue(self, phenotype: Phenotype) -> str | None:
        queries = search_queries(self._config.full_name, phenotype.names)
        with _tracker_errors("search issues", phenotype):
            results = self._client.search_issues_many(queries)
        for result in results:
            for issue in result.items:
                if issue.is_pull_request or issue.state is not IssueState.OPEN:
                    continue
                if phenotype.matches(parse_issue_body(issue.body)):
                    return str(issue.number)
        return None

    def get_status(self, phenotype: Phenotype) -> Status:
        with _tracker_errors("fetch issue", phenotype):
            issue = self._client.get_issue(number=_issue_number(phenotype))
        if issue is None:
            raise TrackerIOError(f"Issue #{phenotype.issue_number} of {phenotype.name!r} is gone")
        return issue_status(issue, self._config.labels)


def issue_status(issue: GitHubIssue, labels: GitHubLabels) -> Status:
    """Map the state and outcome labels of an issue onto a review status."""

    names = issue.label_names
    if labels.published.casefold() in names:
        return Status.PUBLISHED
    if labels.accepted.casefold() in names:
        return Status.ACCEPTED
    if labels.synonym.casefold() in names:
        return Status.SYNONYM
    if labels.rejected.casefold() in names:
        return Status.REJECTED
    if issue.state is IssueState.OPEN:
        return Status.SUBMITTED
    # closed without an outcome label
    return Status.REJECTED


def search_queries(repository: str, names: Iterable[str]) -> list[str]:
    phrases = (name.replace('"', " ").strip() for name in sorted(names))
    terms = [f'"{phrase}"' for phrase in phrases if phrase]
    queries: list[str] = []
    for start in range(0, len(terms), MAX_TERMS_PER_QUERY):
        chunk = " OR ".join(terms[start : start + MAX_TERMS_PER_QUERY])
        queries.append(f"repo:{repository} is:issue is:open in:body {chunk}")
    return queries


def _issue_number(phenotype: Phenotype) -> int:
    if phenotype.issue_number is None:
        raise TrackerIOError(f"Phenotype {phenotype.name!r} has no issue")
    try:
        return int(phenotype.issue_number)
    except ValueError as exc:
        raise TrackerIOError(f"Invalid issue number {phenotype.issue_number!r}") from exc


@contextmanager
def _tracker_errors(action: str, phenotype: Phenotype) -> Iterator[None]:
    try:
        yield
    except httpx.HTTPError as exc:
        raise TrackerIOError(f"Could not {action} for {phenotype.name!r}: {exc}") from exc
    except (GitHubAPIError, ValidationError) as exc:
        raise TrackerIOError(f"Unexpected GitHub payload on {action}: {exc}") from exc
