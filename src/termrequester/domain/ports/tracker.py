"""Port for the remote issue tracker used for human review."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from termrequester.domain.model import Phenotype, Status


@runtime_checkable
class IssueTracker(Protocol):
    """Contract for the collaborative issue tracker.

    Every method raises ``TrackerIOError`` on transport or API failure.
    """

    def open_issue(self, phenotype: Phenotype) -> None:
        """Open a new issue for ``phenotype`` and attach its number to it."""
        ...

    def patch_issue(self, phenotype: Phenotype) -> None:
        """Rewrite the issue of ``phenotype`` to reflect its current state."""
        ...

    def has_issue(self, phenotype: Phenotype) -> bool: ...

    def search_for_issue(self, phenotype: Phenotype) -> str | None:
        """Return the number of an open issue equivalent to ``phenotype``."""
        ...

    def get_status(self, phenotype: Phenotype) -> Status: ...
