"""Application wiring for the phenotype request engine."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import find_dotenv, load_dotenv

from termrequester.adapters.github import GitHubIssueTracker
from termrequester.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    is_started,
    startup,
)
from termrequester.config import configure_logging, get_github_config
from termrequester.domain.phenotype_manager import PhenotypeManager

if TYPE_CHECKING:
    from termrequester.domain.locking import IdentityLocks
    from termrequester.domain.phenotype_manager import UnitOfWorkFactory
    from termrequester.domain.ports.tracker import IssueTracker


log = getLogger(__name__)


def bootstrap(*, dotenv_path: str | None = None) -> None:
    """Load ``.env`` settings and configure logging for an embedding process.

    Without ``dotenv_path`` the nearest ``.env`` above the working directory is
    used. Variables already set in the environment win.
    """

    load_dotenv(dotenv_path or find_dotenv(usecwd=True))
    configure_logging()


def build_phenotype_manager(
    *,
    tracker: IssueTracker | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    locks: IdentityLocks | None = None,
) -> PhenotypeManager:
    """Build a manager over the configured store and GitHub repository."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork
    if tracker is None:
        config = get_github_config()
        log.info("Using GitHub repository %s for term requests", config.full_name)
        tracker = GitHubIssueTracker(config=config)

    return PhenotypeManager(
        unit_of_work_factory=unit_of_work_factory,
        tracker=tracker,
        locks=locks,
    )
