"""Session lifecycle for the SQLAlchemy phenotype store.

``startup()`` binds the adapter to one engine per process and brings its
schema to the latest migration. Units of work then each own one session.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from termrequester.adapters.sqlalchemy.mappings import start_mappers
from termrequester.adapters.sqlalchemy.migrations import upgrade_head
from termrequester.adapters.sqlalchemy.repositories import SqlAlchemyPhenotypeRepository
from termrequester.config.storage import get_database_config
from termrequester.domain.errors import StoreIOError
from termrequester.domain.ports.unit_of_work import PhenotypeRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The adapter was used before ``startup()`` or configured twice."""


class _Binding:
    """Engine and session factory shared by every unit of work."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def clear(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None


_BINDING = _Binding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or a new one) and migrate its schema."""

    if _BINDING.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    engine = engine or create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    upgrade_head(engine=engine)
    _BINDING.bind(engine)
    log.info("Phenotype store ready at %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _BINDING.engine


def is_started() -> bool:
    return _BINDING.engine is not None


def shutdown() -> None:
    """Dispose the bound engine, if any."""

    _BINDING.clear()


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; leaving it on an exception rolls back."""

    def __init__(self) -> None:
        if _BINDING.sessions is None:
            raise StartupError(
                "SQLAlchemy adapter not started. Call "
                "termrequester.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        self._sessions = _BINDING.sessions
        self._session: Session | None = None
        self._repositories: PhenotypeRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = PhenotypeRepositories(
            phenotypes=SqlAlchemyPhenotypeRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not open")
        return self._session

    @property
    def repositories(self) -> PhenotypeRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not open")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreIOError(f"Phenotype store commit failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from termrequester.domain.ports.unit_of_work import PhenotypeUnitOfWork

    _uow_check: PhenotypeUnitOfWork = SqlAlchemyUnitOfWork()
