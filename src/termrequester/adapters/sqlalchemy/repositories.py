"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import case, delete, func, insert, inspect, or_, select
from sqlalchemy.exc import SQLAlchemyError

from termrequester.adapters.sqlalchemy.mappings import phenotype_name_table, phenotype_table
from termrequester.domain.errors import StoreIOError
from termrequester.domain.model import Phenotype, canonical_name

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy.orm import InstanceState, Session

LOCAL_ID_PREFIX = "NONHPO_"


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex.upper()}"


class SqlAlchemyPhenotypeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, phenotype: Phenotype) -> Phenotype:
        now = datetime.now(tz=UTC)
        with _store_errors("save", phenotype.name):
            if phenotype.local_id is None:
                phenotype.local_id = new_local_id()
                phenotype.created_at = now
            phenotype.modified_at = now

            state = cast("InstanceState[Phenotype]", inspect(phenotype))
            stored = self.session.get(Phenotype, phenotype.local_id) if state.transient else None
            if stored is not None:
                # a fresh object standing in for a stored record
                phenotype.created_at = phenotype.created_at or stored.created_at
                phenotype = self.session.merge(phenotype)
            else:
                self.session.add(phenotype)
            self.session.flush()
            self._write_names(phenotype)
        return phenotype

    def delete(self, phenotype: Phenotype) -> bool:
        if phenotype.local_id is None:
            return False
        with _store_errors("delete", phenotype.name):
            stored = self.session.get(Phenotype, phenotype.local_id)
            if stored is None:
                return False
            self._delete_names(phenotype.local_id)
            self.session.delete(stored)
            self.session.flush()
        return True

    def get_by_id(self, local_id: str) -> Phenotype | None:
        with _store_errors("get_by_id", local_id):
            return self.session.get(Phenotype, local_id)

    def get_matching(self, candidate: Phenotype) -> Phenotype | None:
        with _store_errors("get_matching", candidate.name):
            if candidate.local_id is not None:
                stored = self.session.get(Phenotype, candidate.local_id)
                if stored is not None:
                    return stored
            stmt = (
                select(Phenotype)
                .join(
                    phenotype_name_table,
                    phenotype_name_table.c.phenotype_id == phenotype_table.c.local_id,
                )
                .where(phenotype_name_table.c.name.in_(sorted(candidate.names)))
                .order_by(phenotype_table.c.created_at, phenotype_table.c.local_id)
                .limit(1)
            )
            return self.session.execute(stmt).scalars().first()

    def get_by_issue_number(self, issue_number: str) -> Phenotype | None:
        with _store_errors("get_by_issue_number", issue_number):
            stmt = (
                select(Phenotype)
                .where(phenotype_table.c.issue_number == issue_number)
                .order_by(phenotype_table.c.created_at)
                .limit(1)
            )
            return self.session.execute(stmt).scalars().first()

    def search(self, text: str) -> Sequence[Phenotype]:
        query = canonical_name(text)
        if not query:
            return []
        pattern = f"%{_escape_like(query)}%"
        name_hits = select(phenotype_name_table.c.phenotype_id).where(
            phenotype_name_table.c.name.like(pattern, escape="\\")
        )
        stmt = (
            select(Phenotype)
            .where(
                or_(
                    phenotype_table.c.local_id.in_(name_hits),
                    func.lower(phenotype_table.c.description).like(pattern, escape="\\"),
                )
            )
            .order_by(
                case((phenotype_table.c.name == query, 0), else_=1),
                phenotype_table.c.name,
            )
        )
        with _store_errors("search", text):
            return list(self.session.execute(stmt).scalars().all())

    def _write_names(self, phenotype: Phenotype) -> None:
        local_id = cast(str, phenotype.local_id)
        self._delete_names(local_id)
        rows = [{"phenotype_id": local_id, "name": name} for name in sorted(phenotype.names)]
        self.session.execute(insert(phenotype_name_table), rows)

    def _delete_names(self, local_id: str) -> None:
        self.session.execute(
            delete(phenotype_name_table).where(phenotype_name_table.c.phenotype_id == local_id)
        )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def _store_errors(operation: str, identity: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreIOError(f"Phenotype store {operation} failed for {identity!r}: {exc}") from exc


if TYPE_CHECKING:
    from termrequester.domain.ports.persistence import PhenotypeRepository

    _session_stub = cast("Session", object())
    _repo_check: PhenotypeRepository = SqlAlchemyPhenotypeRepository(_session_stub)
