"""Public portal endpoints.

GET /v1/news            - Published articles (paged, optional category)
GET /v1/news/home       - Hero slots + latest non-hero articles
GET /v1/news/search     - Search published articles
GET /v1/news/{slug}     - Article page with related articles
GET /v1/categories      - Categories for navigation

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Path, Query

from app.schemas import (
    ArticleDetailResponse,
    ArticleListResponse,
    ArticleOut,
    CategoryListResponse,
    CategoryOut,
    HomeResponse,
    Pagination,
    SearchQuery,
    SearchResponse,
)
from app.services.articles import (
    Page,
    get_published_by_slug,
    list_categories,
    list_latest_non_hero,
    list_published,
    list_related,
    search_published,
)
from app.services.hero_slots import list_hero_articles
from app.stores.postgres import get_session

router = APIRouter()


def _pagination(page: Page) -> Pagination:
    return Pagination(
        page=page.page,
        limit=page.limit,
        total=page.total,
        total_pages=page.total_pages,
        has_next=page.has_next,
        has_prev=page.has_prev,
    )


def _articles(items: list) -> list[ArticleOut]:
    return [ArticleOut.model_validate(article) for article in items]


@router.get("/news", response_model=ArticleListResponse)
async def get_news(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = Query(default=None, description="Category name, or 'all'"),
) -> ArticleListResponse:
    """List published articles, newest first."""
    async with get_session() as session:
        result = await list_published(session, page=page, limit=limit, category=category)
        return ArticleListResponse(data=_articles(result.items), pagination=_pagination(result))


@router.get("/news/home", response_model=HomeResponse)
async def get_home(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> HomeResponse:
    """Get home page data.

    Returns:
        HomeResponse with hero slots ("1".."3", empty slots omitted) and the
        latest published articles that are not in a hero slot.
    """
    async with get_session() as session:
        heroes = await list_hero_articles(session)
        latest = await list_latest_non_hero(session, page=page, limit=limit)
        return HomeResponse(
            hero={str(slot): ArticleOut.model_validate(article) for slot, article in heroes.items()},
            latest=_articles(latest.items),
            pagination=_pagination(latest),
        )


@router.get("/news/search", response_model=SearchResponse)
async def search_news(
    q: str | None = Query(default=None, description="Search text (min 2 characters)"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = Query(default=None),
) -> SearchResponse:
    """Search published articles by title, summary and content."""
    async with get_session() as session:
        result = await search_published(session, q, page=page, limit=limit, category=category)
        return SearchResponse(
            data=_articles(result.items),
            pagination=_pagination(result),
            query=SearchQuery(search=q or "", category=category or "all"),
        )


@router.get("/news/{slug}", response_model=ArticleDetailResponse)
async def get_news_by_slug(
    slug: str = Path(min_length=1, max_length=320),
) -> ArticleDetailResponse:
    """Get a published article by slug, plus up to 4 related articles."""
    async with get_session() as session:
        article = await get_published_by_slug(session, slug)
        related = await list_related(session, article)
        return ArticleDetailResponse(
            data=ArticleOut.model_validate(article),
            related=_articles(related),
        )


@router.get("/categories", response_model=CategoryListResponse)
async def get_categories() -> CategoryListResponse:
    """List categories ordered by name."""
    async with get_session() as session:
        categories = await list_categories(session)
        return CategoryListResponse(data=[CategoryOut.model_validate(c) for c in categories])
