"""Error kinds raised by the term requester core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from termrequester.domain.model.enums import Status


class TermRequesterError(RuntimeError):
    """Base class for term requester failures."""


class BackendIOError(TermRequesterError):
    """An adapter could not talk to its backing system.

    ``operation`` and ``identity`` are filled in by the phenotype manager so
    operators can tell which call failed for which request.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        identity: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.identity = identity

    def with_context(self, *, operation: str, identity: str) -> BackendIOError:
        """Return a copy of this error carrying the calling operation."""

        message = f"{operation} failed for {identity!r}: {self}"
        return type(self)(message, operation=operation, identity=identity)


class StoreIOError(BackendIOError):
    """The local phenotype store is unreachable or failed."""


class TrackerIOError(BackendIOError):
    """The remote issue tracker is unreachable or failed."""


class ConsistencyViolation(TermRequesterError):  # noqa: N818
    """An issue exists on the tracker with no local record behind it.

    Local data was lost after the issue was opened (or the process died between
    opening the issue and saving the record). Not retryable.
    """

    def __init__(self, issue_number: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Issue #{issue_number} exists on the tracker but not in the local store"
        )
        self.issue_number = issue_number


class StatusTransitionError(ValueError):
    """The observed status cannot follow the current one."""

    def __init__(self, current: Status, observed: Status) -> None:
        super().__init__(f"cannot move a phenotype from {current} to {observed}")
        self.current = current
        self.observed = observed
