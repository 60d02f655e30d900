"""Article model.

Represents a news article managed through the admin API.
Hero slots (1-3) are featured positions on the home page; at most one
article may hold each slot.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.stores.postgres import Base

HERO_SLOTS = (1, 2, 3)


def generate_article_id() -> str:
    """Generate unique article ID."""
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    """News article."""

    __tablename__ = "news"
    __table_args__ = (
        CheckConstraint("hero_slot IS NULL OR hero_slot BETWEEN 1 AND 3", name="ck_news_hero_slot_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_article_id)

    # Content
    title: Mapped[str] = mapped_column(String(300))
    slug: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    summary: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    category: Mapped[str] = mapped_column(String(100), index=True)
    author: Mapped[str] = mapped_column(String(200))

    # Placement flags
    is_featured: Mapped[bool] = mapped_column(default=False)
    is_published: Mapped[bool] = mapped_column(default=False, index=True)
    hero_slot: Mapped[int | None] = mapped_column(unique=True)  # 1-3, NULLs not unique
    is_vertical_list: Mapped[bool] = mapped_column(default=False)

    views: Mapped[int] = mapped_column(default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Article {self.id} slug={self.slug} hero_slot={self.hero_slot}>"
