"""Ports for persisting phenotype requests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from termrequester.domain.model import Phenotype


@runtime_checkable
class PhenotypeRepository(Protocol):
    """Persistence contract for phenotype requests.

    Lookups return ``None`` when nothing matches; absence is never an error.
    I/O failures are raised as ``StoreIOError``.
    """

    def save(self, phenotype: Phenotype) -> Phenotype:
        """Insert or update; assigns ``local_id`` and timestamps."""
        ...

    def delete(self, phenotype: Phenotype) -> bool: ...

    def get_by_id(self, local_id: str) -> Phenotype | None: ...

    def get_matching(self, candidate: Phenotype) -> Phenotype | None:
        """Return a stored phenotype matching ``candidate`` under the identity invariant."""
        ...

    def get_by_issue_number(self, issue_number: str) -> Phenotype | None: ...

    def search(self, text: str) -> Sequence[Phenotype]: ...
