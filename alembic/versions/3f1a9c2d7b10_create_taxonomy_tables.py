"""Create term, term meta, content and content meta tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "terms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("taxonomy", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("taxonomy", "slug", name="uq_term_taxonomy_slug"),
        sa.UniqueConstraint("taxonomy", "name", name="uq_term_taxonomy_name"),
    )
    op.create_index(op.f("ix_terms_id"), "terms", ["id"], unique=False)
    op.create_index(op.f("ix_terms_taxonomy"), "terms", ["taxonomy"], unique=False)

    op.create_table(
        "term_meta",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("term_id", sa.Integer(), nullable=False),
        sa.Column("taxonomy", sa.String(length=64), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["term_id"], ["terms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("term_id"),
    )
    op.create_index(op.f("ix_term_meta_id"), "term_meta", ["id"], unique=False)
    op.create_index(op.f("ix_term_meta_taxonomy"), "term_meta", ["taxonomy"], unique=False)

    op.create_table(
        "content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("content_type", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_content_id"), "content", ["id"], unique=False)
    op.create_index(op.f("ix_content_title"), "content", ["title"], unique=False)
    op.create_index(op.f("ix_content_slug"), "content", ["slug"], unique=True)
    op.create_index("idx_content_type", "content", ["content_type"], unique=False)

    op.create_table(
        "content_meta",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("meta_key", sa.String(length=255), nullable=False),
        sa.Column("meta_value", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("content_id", "meta_key", name="uq_content_meta_key"),
    )
    op.create_index(op.f("ix_content_meta_id"), "content_meta", ["id"], unique=False)
    op.create_index(op.f("ix_content_meta_content_id"), "content_meta", ["content_id"], unique=False)
    op.create_index(op.f("ix_content_meta_meta_key"), "content_meta", ["meta_key"], unique=False)


def downgrade() -> None:
    op.drop_table("content_meta")
    op.drop_table("content")
    op.drop_table("term_meta")
    op.drop_table("terms")
