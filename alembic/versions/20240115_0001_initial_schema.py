"""initial schema: suppliers, articles, procurement records and lines

Revision ID: 0001
Revises:
Create Date: 2024-01-15 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "fournisseurs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
    )
    op.create_index("ix_fournisseurs_name", "fournisseurs", ["name"])

    op.create_table(
        "articles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_price", sa.Numeric(14, 2, asdecimal=False), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
    )
    op.create_index("ix_articles_name", "articles", ["name"])

    op.create_table(
        "approvisionnements",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reference", sa.String(50), nullable=False),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("supplier_id", sa.String(36), nullable=False),
        sa.Column("supplier_name", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2, asdecimal=False), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index(
        "ix_approvisionnements_reference", "approvisionnements", ["reference"], unique=True
    )
    op.create_index("ix_approvisionnements_date", "approvisionnements", ["date"])
    op.create_index("ix_approvisionnements_supplier_id", "approvisionnements", ["supplier_id"])
    op.create_index("ix_approvisionnements_status", "approvisionnements", ["status"])

    op.create_table(
        "approvisionnement_lignes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "record_id",
            sa.String(36),
            sa.ForeignKey("approvisionnements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("article_id", sa.String(36), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3, asdecimal=False), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2, asdecimal=False), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2, asdecimal=False), nullable=False),
    )
    op.create_index(
        "ix_approvisionnement_lignes_record_id", "approvisionnement_lignes", ["record_id"]
    )


def downgrade() -> None:
    op.drop_table("approvisionnement_lignes")
    op.drop_table("approvisionnements")
    op.drop_table("articles")
    op.drop_table("fournisseurs")
