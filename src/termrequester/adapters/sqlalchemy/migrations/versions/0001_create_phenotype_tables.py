"""create phenotype tables

Revision ID: 0001
Revises:
Create Date: 2026-10-12 09:14:00

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "phenotype",
        sa.Column("local_id", sa.String(), nullable=False),
        sa.Column("issue_number", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("synonyms", sa.Text(), nullable=False),
        sa.Column("parent_ids", sa.Text(), nullable=False),
        sa.Column("hpo_id", sa.String(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "unsubmitted",
                "submitted",
                "accepted",
                "synonym",
                "rejected",
                "published",
                name="status",
                native_enum=False,
                length=16,
            ),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("local_id", name=op.f("pk_phenotype")),
    )
    op.create_index("ix_phenotype_issue_number", "phenotype", ["issue_number"])

    op.create_table(
        "phenotype_name",
        sa.Column("phenotype_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["phenotype_id"],
            ["phenotype.local_id"],
            name=op.f("fk_phenotype_name_phenotype_id_phenotype"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("phenotype_id", "name", name=op.f("pk_phenotype_name")),
    )
    op.create_index("ix_phenotype_name_name", "phenotype_name", ["name"])


def downgrade() -> None:
    op.drop_index("ix_phenotype_name_name", table_name="phenotype_name")
    op.drop_table("phenotype_name")
    op.drop_index("ix_phenotype_issue_number", table_name="phenotype")
    op.drop_table("phenotype")
