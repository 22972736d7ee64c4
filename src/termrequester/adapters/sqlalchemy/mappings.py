"""Tables for the phenotype store and the imperative mapping onto ``Phenotype``."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)
from sqlalchemy.ext.mutable import MutableSet
from sqlalchemy.orm import configure_mappers

from termrequester.domain.model import Phenotype, Status

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamps; SQLite hands them back naive, so UTC is re-attached."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is not None and value.tzinfo is None:
            raise ValueError(f"refusing to store naive timestamp {value!r}")
        return value.astimezone(UTC) if value is not None else None

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=UTC)


class StringSetType(TypeDecorator[set[str]]):
    """Set of strings stored as a sorted JSON array, so equal sets store equal text."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: set[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(sorted(value or ()))

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[str]:
        _ = dialect
        decoded: object = json.loads(value) if value else []
        if not isinstance(decoded, list):
            log.warning("Discarding malformed string set %r", value)
            return set()
        return {item for item in decoded if isinstance(item, str)}  # pyright: ignore[reportUnknownVariableType]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

phenotype_table = Table(
    "phenotype",
    mapper_registry.metadata,
    Column("local_id", String, primary_key=True),
    Column("issue_number", String, nullable=True),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column(
        "synonyms",
        MutableSet.as_mutable(StringSetType()),
        key="_synonyms",
        nullable=False,
        default=set,
    ),
    Column(
        "parent_ids",
        MutableSet.as_mutable(StringSetType()),
        key="_parent_ids",
        nullable=False,
        default=set,
    ),
    Column("hpo_id", String, nullable=True),
    Column(
        "status",
        Enum(
            Status,
            native_enum=False,
            length=16,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
    ),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("modified_at", UTCDateTime(), nullable=True),
    Index("ix_phenotype_issue_number", "issue_number"),
)

# One row per canonical name or synonym; backs identity lookups and search.
phenotype_name_table = Table(
    "phenotype_name",
    mapper_registry.metadata,
    Column(
        "phenotype_id",
        String,
        ForeignKey("phenotype.local_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("name", String, primary_key=True),
    Index("ix_phenotype_name_name", "name"),
)


@cache
def start_mappers() -> orm.registry:
    """Map ``Phenotype`` onto ``phenotype_table``; safe to call repeatedly."""

    log.debug("Mapping Phenotype onto %s", phenotype_table.name)
    mapper_registry.map_imperatively(Phenotype, phenotype_table)
    configure_mappers()
    return mapper_registry
