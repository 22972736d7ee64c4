"""GitHub REST API payload schemas for issue tracking."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class GitHubBaseModel(BaseModel):
    # GitHub payloads carry far more keys than the tracker needs
    model_config = ConfigDict(extra="ignore")


class IssueState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


class GitHubLabel(GitHubBaseModel):
    name: str
    color: str | None = None


class GitHubIssue(GitHubBaseModel):
    number: int
    title: str
    state: IssueState
    body: str | None = None
    state_reason: str | None = None
    html_url: str | None = None
    labels: list[GitHubLabel] = Field(default_factory=list["GitHubLabel"])
    pull_request: dict[str, object] | None = None

    @property
    def label_names(self) -> frozenset[str]:
        return frozenset(label.name.casefold() for label in self.labels)

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


class GitHubIssueSearch(GitHubBaseModel):
    total_count: int
    incomplete_results: bool = False
    items: list[GitHubIssue] = Field(default_factory=list["GitHubIssue"])
