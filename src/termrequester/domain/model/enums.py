"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Status(StrEnum):
    """Review status of a phenotype request."""

    UNSUBMITTED = "unsubmitted"
    SUBMITTED = "submitted"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    SYNONYM = "synonym"
    PUBLISHED = "published"


# Single-step lifecycle transitions, as observed on the tracker.
NEXT_STATUSES: dict[Status, frozenset[Status]] = {
    Status.UNSUBMITTED: frozenset({Status.SUBMITTED}),
    Status.SUBMITTED: frozenset({Status.REJECTED, Status.ACCEPTED, Status.SYNONYM}),
    Status.ACCEPTED: frozenset({Status.PUBLISHED}),
    Status.REJECTED: frozenset(),
    Status.SYNONYM: frozenset(),
    Status.PUBLISHED: frozenset(),
}
