"""Transaction boundary around the phenotype repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from termrequester.domain.ports.persistence import PhenotypeRepository


@dataclass(slots=True)
class PhenotypeRepositories:
    """Repositories reachable from one unit of work."""

    phenotypes: PhenotypeRepository


@runtime_checkable
class PhenotypeUnitOfWork(Protocol):
    """Context manager owning one store transaction.

    Nothing is persisted until ``commit``. Leaving the block with an exception
    rolls back; a failing ``commit`` raises ``StoreIOError``.
    """

    @property
    def repositories(self) -> PhenotypeRepositories: ...

    def __enter__(self) -> PhenotypeUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
