"""Contracts the phenotype manager expects from its adapters."""

from __future__ import annotations

from .persistence import PhenotypeRepository
from .tracker import IssueTracker
from .unit_of_work import PhenotypeRepositories, PhenotypeUnitOfWork

__all__ = [
    "IssueTracker",
    "PhenotypeRepositories",
    "PhenotypeRepository",
    "PhenotypeUnitOfWork",
]
