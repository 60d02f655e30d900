"""create_news_and_categories

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_categories_name"), "categories", ["name"], unique=True)

    op.create_table(
        "news",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("slug", sa.String(length=320), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("author", sa.String(length=200), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("hero_slot", sa.Integer(), nullable=True),
        sa.Column("is_vertical_list", sa.Boolean(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "hero_slot IS NULL OR hero_slot BETWEEN 1 AND 3",
            name="ck_news_hero_slot_range",
        ),
        sa.PrimaryKeyConstraint("id"),
        # At most one article per hero slot; NULLs do not collide.
        sa.UniqueConstraint("hero_slot", name="uq_news_hero_slot"),
    )
    op.create_index(op.f("ix_news_slug"), "news", ["slug"], unique=True)
    op.create_index(op.f("ix_news_category"), "news", ["category"], unique=False)
    op.create_index(op.f("ix_news_is_published"), "news", ["is_published"], unique=False)
    op.create_index(op.f("ix_news_created_at"), "news", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_news_created_at"), table_name="news")
    op.drop_index(op.f("ix_news_is_published"), table_name="news")
    op.drop_index(op.f("ix_news_category"), table_name="news")
    op.drop_index(op.f("ix_news_slug"), table_name="news")
    op.drop_table("news")
    op.drop_index(op.f("ix_categories_name"), table_name="categories")
    op.drop_table("categories")
