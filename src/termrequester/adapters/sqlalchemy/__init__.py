"""SQLAlchemy adapter package for the phenotype store."""

from __future__ import annotations

from .mappings import (
    mapper_registry,
    phenotype_name_table,
    phenotype_table,
    start_mappers,
)
from .repositories import SqlAlchemyPhenotypeRepository
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyPhenotypeRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "mapper_registry",
    "phenotype_name_table",
    "phenotype_table",
    "shutdown",
    "start_mappers",
    "startup",
]
