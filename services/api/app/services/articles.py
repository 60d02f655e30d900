"""Article management and public listings.

Write path (admin):
- create / update / delete with required-field validation
- slugs derived from titles and kept unique with numeric suffixes
- hero slot changes go through the hero slot service so eviction applies

Read path (public):
- only published articles, newest first
- listing by category, home page list (non-hero), related, search
"""

from dataclasses import dataclass
import logging
import math
import re
from typing import Any, Sequence
import unicodedata

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Article, Category
from app.services.errors import InvalidArgument, NotFound, StorageFailure
from app.services.hero_slots import assign_hero_slot, validate_hero_slot
from app.settings import get_settings

logger = logging.getLogger("uvicorn.error")

MIN_SEARCH_LENGTH = 2
MAX_PAGE_SIZE = 100
ADMIN_FILTERS = ("all", "published", "draft", "hero", "featured")


@dataclass
class Page:
    """One page of articles plus pagination info."""

    items: list[Article]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


# ============================================================
# Slugs
# ============================================================


def generate_slug(title: str) -> str:
    """Build a URL slug from a title.

    "Câmbio: dólar sobe 2%!" -> "cambio-dolar-sobe-2"
    """
    slug = unicodedata.normalize("NFD", title.lower())
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


async def _slug_taken(session: AsyncSession, slug: str, exclude_id: str | None) -> bool:
    query = select(Article.id).where(Article.slug == slug)
    if exclude_id is not None:
        query = query.where(Article.id != exclude_id)
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def ensure_unique_slug(
    session: AsyncSession,
    base_slug: str,
    exclude_id: str | None = None,
) -> str:
    """Return `base_slug`, or `base_slug-N` with the first free N."""
    slug = base_slug
    counter = 1
    while await _slug_taken(session, slug, exclude_id):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


# ============================================================
# Writes
# ============================================================


def _clean_optional(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_required(data: dict[str, Any]) -> None:
    missing = [f for f in ("title", "content", "category") if not str(data.get(f) or "").strip()]
    if missing:
        raise InvalidArgument(
            "Title, content and category are required",
            detail={"missing": missing},
        )


def _apply_fields(article: Article, data: dict[str, Any]) -> None:
    article.title = data["title"].strip()
    article.summary = _clean_optional(data.get("summary"))
    article.content = data["content"].strip()
    article.image_url = _clean_optional(data.get("image_url"))
    article.images = list(data.get("images") or [])
    article.category = data["category"].strip()
    article.author = _clean_optional(data.get("author")) or get_settings().default_author
    article.is_featured = bool(data.get("is_featured"))
    article.is_published = bool(data.get("is_published"))
    article.is_vertical_list = bool(data.get("is_vertical_list"))


async def create_article(session: AsyncSession, data: dict[str, Any]) -> Article:
    """Create an article.

    Args:
        session: Active session (caller commits).
        data: Article fields (snake_case). title, content and category are required.

    Returns:
        The persisted article.
    """
    _validate_required(data)
    hero_slot = validate_hero_slot(data.get("hero_slot"))

    base_slug = _clean_optional(data.get("slug")) or generate_slug(data["title"])
    if not base_slug:
        raise InvalidArgument("Could not derive a slug from the title", detail={"title": data["title"]})

    article = Article(slug=await ensure_unique_slug(session, base_slug), views=0, hero_slot=None)
    _apply_fields(article, data)
    session.add(article)

    try:
        await session.flush()
        await assign_hero_slot(session, article, hero_slot)
    except IntegrityError as e:
        raise StorageFailure(f"Could not save article: {e.orig}") from e

    logger.info(f"[articles] created id={article.id} slug={article.slug}")
    return article


async def update_article(session: AsyncSession, article_id: str, data: dict[str, Any]) -> Article:
    """Update an article in place.

    The slug is only re-suffixed when it collides with another article.
    """
    _validate_required(data)
    hero_slot = validate_hero_slot(data.get("hero_slot"))

    article = await get_article(session, article_id)

    requested_slug = _clean_optional(data.get("slug"))
    if requested_slug and requested_slug != article.slug:
        article.slug = await ensure_unique_slug(session, requested_slug, exclude_id=article.id)
    _apply_fields(article, data)

    try:
        await session.flush()
        await assign_hero_slot(session, article, hero_slot)
    except IntegrityError as e:
        raise StorageFailure(f"Could not update article: {e.orig}") from e

    logger.info(f"[articles] updated id={article.id} slug={article.slug}")
    return article


async def delete_article(session: AsyncSession, article_id: str) -> None:
    """Delete an article (frees its hero slot, if any)."""
    article = await get_article(session, article_id)
    await session.delete(article)
    await session.flush()
    logger.info(f"[articles] deleted id={article_id}")


# ============================================================
# Reads
# ============================================================


async def get_article(session: AsyncSession, article_id: str) -> Article:
    """Get any article by ID (admin view)."""
    article = await session.get(Article, article_id)
    if article is None:
        raise NotFound(f"Article not found: {article_id}", detail={"article_id": article_id})
    return article


async def get_published_by_slug(session: AsyncSession, slug: str) -> Article:
    """Get a published article by slug."""
    result = await session.execute(
        select(Article).where(Article.slug == slug, Article.is_published.is_(True))
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFound(f"Article not found: {slug}", detail={"slug": slug})
    return article


def _published() -> Select[tuple[Article]]:
    return select(Article).where(Article.is_published.is_(True))


def _normalize_page(page: int, limit: int) -> tuple[int, int]:
    return max(1, int(page)), max(1, min(int(limit), MAX_PAGE_SIZE))


async def _paginate(session: AsyncSession, query: Select[tuple[Article]], page: int, limit: int) -> Page:
    page, limit = _normalize_page(page, limit)

    total_result = await session.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    total = int(total_result.scalar_one())

    result = await session.execute(
        query.order_by(Article.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return Page(items=list(result.scalars().all()), page=page, limit=limit, total=total)


def _category_filter(query: Select[tuple[Article]], category: str | None) -> Select[tuple[Article]]:
    if category and category != "all":
        query = query.where(Article.category == category)
    return query


async def list_published(
    session: AsyncSession,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
) -> Page:
    """List published articles, newest first, optionally by category."""
    return await _paginate(session, _category_filter(_published(), category), page, limit)


async def list_latest_non_hero(session: AsyncSession, page: int = 1, limit: int = 10) -> Page:
    """Home page list: published articles not occupying a hero slot."""
    return await _paginate(session, _published().where(Article.hero_slot.is_(None)), page, limit)


async def list_related(session: AsyncSession, article: Article, limit: int = 4) -> list[Article]:
    """Other published articles in the same category."""
    result = await session.execute(
        _published()
        .where(Article.category == article.category, Article.id != article.id)
        .order_by(Article.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def search_published(
    session: AsyncSession,
    query: str | None,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
) -> Page:
    """Case-insensitive search over title, summary and content."""
    term = (query or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise InvalidArgument(
            f"Query must have at least {MIN_SEARCH_LENGTH} characters",
            detail={"q": query},
        )

    pattern = _like_pattern(term)
    stmt = _published().where(
        or_(
            Article.title.ilike(pattern, escape="\\"),
            Article.summary.ilike(pattern, escape="\\"),
            Article.content.ilike(pattern, escape="\\"),
        )
    )
    return await _paginate(session, _category_filter(stmt, category), page, limit)


async def list_admin(session: AsyncSession, filter_: str = "all") -> Sequence[Article]:
    """All articles for the admin dashboard, newest first."""
    if filter_ not in ADMIN_FILTERS:
        raise InvalidArgument(f"Unknown filter: {filter_}", detail={"allowed": list(ADMIN_FILTERS)})

    stmt = select(Article)
    if filter_ == "published":
        stmt = stmt.where(Article.is_published.is_(True))
    elif filter_ == "draft":
        stmt = stmt.where(Article.is_published.is_(False))
    elif filter_ == "hero":
        stmt = stmt.where(Article.hero_slot.is_not(None))
    elif filter_ == "featured":
        stmt = stmt.where(Article.is_featured.is_(True))

    result = await session.execute(stmt.order_by(Article.created_at.desc()))
    return result.scalars().all()


async def list_categories(session: AsyncSession) -> Sequence[Category]:
    """Categories ordered by name."""
    result = await session.execute(select(Category).order_by(Category.name))
    return result.scalars().all()
