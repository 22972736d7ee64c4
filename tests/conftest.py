from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from termrequester.adapters.sqlalchemy import start_mappers
from termrequester.adapters.sqlalchemy.migrations import upgrade_head
from termrequester.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from tests.helpers.phenotypes import FakeIssueTracker, InMemoryPhenotypeStore, InMemoryUnitOfWork

# never touch a developer's real store
os.environ["DATABASE_URI"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("GITHUB_HTTP_CACHE", None)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture
def store_engine() -> Iterator[Engine]:
    """A migrated in-memory SQLite database, private to one test."""

    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store_session(store_engine: Engine) -> Iterator[Session]:
    with Session(store_engine) as session:
        yield session


@pytest.fixture
def store_unit_of_work(store_engine: Engine) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=store_engine, force=True)
    yield SqlAlchemyUnitOfWork
    shutdown()


@pytest.fixture
def phenotype_store() -> InMemoryPhenotypeStore:
    return InMemoryPhenotypeStore()


@pytest.fixture
def memory_unit_of_work(
    phenotype_store: InMemoryPhenotypeStore,
) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(phenotype_store)


@pytest.fixture
def tracker() -> FakeIssueTracker:
    return FakeIssueTracker()
