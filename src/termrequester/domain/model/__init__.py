"""Domain model for phenotype requests."""

from __future__ import annotations

from .enums import NEXT_STATUSES, Status
from .phenotype import (
    DESCRIPTION_SEPARATOR,
    Phenotype,
    canonical_name,
    parse_issue_body,
)

__all__ = [
    "DESCRIPTION_SEPARATOR",
    "NEXT_STATUSES",
    "Phenotype",
    "Status",
    "canonical_name",
    "parse_issue_body",
]
