"""Reconciliation engine for phenotype requests.

Every request has to exist consistently in the local store and on the review
tracker. ``PhenotypeManager`` decides, for each incoming or looked-up request,
whether it already exists on either side, merges duplicates into the stored
record, opens an issue only for genuinely new requests and refreshes review
status from the tracker.

The local store is consulted first and owns identity; the tracker owns review
status once an issue exists.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from termrequester.domain.errors import (
    BackendIOError,
    ConsistencyViolation,
    StatusTransitionError,
    StoreIOError,
)
from termrequester.domain.locking import IdentityLocks
from termrequester.domain.model import Phenotype
from termrequester.domain.ports.unit_of_work import PhenotypeUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from termrequester.domain.ports.persistence import PhenotypeRepository
    from termrequester.domain.ports.tracker import IssueTracker

UnitOfWorkFactory = Callable[[], PhenotypeUnitOfWork]

log = getLogger(__name__)


class PhenotypeManager:
    """Tie the phenotype store and the issue tracker together."""

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        tracker: IssueTracker,
        locks: IdentityLocks | None = None,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._tracker = tracker
        self._locks = locks or IdentityLocks()

    def create_request(
        self,
        name: str,
        synonyms: Iterable[str] = (),
        parent_id: str | None = None,
        description: str | None = None,
    ) -> Phenotype:
        """Record a request for a new term, reusing any equivalent request.

        Raises ``ConsistencyViolation`` when the tracker holds an equivalent issue
        that no local record refers to.
        """

        candidate = Phenotype.new(
            name,
            description or "",
            synonyms=synonyms,
            parent_ids=(parent_id,) if parent_id else (),
        )
        # Matching is not transitive: two candidates without a common name can
        # still match one stored record. Every name of that record must be held
        # before it is touched, so the lock set grows until it covers the match.
        keys = frozenset(candidate.names)
        while True:
            with (
                self._locks.hold(keys),
                self._backend_errors("create_request", candidate.name),
                self._unit_of_work_factory() as uow,
            ):
                repository = uow.repositories.phenotypes
                existing = repository.get_matching(candidate)
                if existing is None:
                    existing = self._check_tracker(candidate, repository)
                if existing is None:
                    return self._submit(candidate, uow)
                if not existing.names <= keys:
                    keys = keys | existing.names
                    log.debug("Widening locks for %r to %s", candidate.name, sorted(keys))
                    continue
                self._absorb(existing, candidate, repository)
                uow.commit()
                return existing

    def get_phenotype_by_id(self, local_id: str) -> Phenotype | None:
        """Load a request and bring its review status up to date.

        Returns ``None`` when no request has this id.
        """

        with (
            self._backend_errors("get_phenotype_by_id", local_id),
            self._unit_of_work_factory() as uow,
        ):
            repository = uow.repositories.phenotypes
            phenotype = repository.get_by_id(local_id)
            if phenotype is None or phenotype.issue_number is None:
                return phenotype

            observed = self._tracker.get_status(phenotype)
            previous = phenotype.status
            try:
                changed = phenotype.observe_status(observed)
            except StatusTransitionError:
                log.warning(
                    "Ignoring tracker status %s for %s (issue #%s): stored status is %s",
                    observed,
                    local_id,
                    phenotype.issue_number,
                    previous,
                )
                return phenotype
            if changed:
                log.info("Phenotype %s moved from %s to %s", local_id, previous, observed)
                repository.save(phenotype)
                uow.commit()
            return phenotype

    def search(self, text: str) -> list[Phenotype]:
        with (
            self._backend_errors("search", text),
            self._unit_of_work_factory() as uow,
        ):
            return list(uow.repositories.phenotypes.search(text))

    def _absorb(
        self,
        existing: Phenotype,
        candidate: Phenotype,
        repository: PhenotypeRepository,
    ) -> None:
        existing.merge_with(candidate)
        if existing.submittable and not self._tracker.has_issue(existing):
            # An unsubmitted record must have an issue: the two stores drifted apart.
            log.warning(
                "Phenotype %s (%s) has no issue on the tracker; opening one",
                existing.local_id,
                existing.name,
            )
            self._tracker.open_issue(existing)
        elif existing.issue_number is not None:
            self._tracker.patch_issue(existing)
        repository.save(existing)

    def _check_tracker(
        self,
        candidate: Phenotype,
        repository: PhenotypeRepository,
    ) -> Phenotype | None:
        issue_number = self._tracker.search_for_issue(candidate)
        if issue_number is None:
            return None

        existing = repository.get_by_issue_number(issue_number)
        if existing is None:
            log.critical(
                "Issue #%s matches %r but no local record refers to it. Local data was lost "
                "or a previous request died between opening the issue and saving it; "
                "reconcile manually",
                issue_number,
                candidate.name,
            )
            raise ConsistencyViolation(issue_number)
        return existing

    def _submit(self, candidate: Phenotype, uow: PhenotypeUnitOfWork) -> Phenotype:
        self._tracker.open_issue(candidate)
        log.info("Opened issue #%s for %r", candidate.issue_number, candidate.name)
        try:
            saved = uow.repositories.phenotypes.save(candidate)
            uow.commit()
        except StoreIOError:
            log.error(  # noqa: TRY400
                "Issue #%s was opened for %r but the local record could not be saved; "
                "the issue must be reconciled manually",
                candidate.issue_number,
                candidate.name,
            )
            raise
        return saved

    @contextmanager
    def _backend_errors(self, operation: str, identity: str) -> Iterator[None]:
        try:
            yield
        except BackendIOError as exc:
            log.error("%s failed for %r: %s", operation, identity, exc)  # noqa: TRY400
            raise exc.with_context(operation=operation, identity=identity) from exc
