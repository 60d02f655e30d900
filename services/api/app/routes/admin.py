"""Admin endpoints for article management and hero slot placement.

All routes require the X-Admin-Token header (see `require_admin`).
"""

import logging

from fastapi import APIRouter, Depends, Path, Query

from app.dependencies import get_hero_slot_manager, get_quote_cache, require_admin
from app.schemas import (
    AdminArticleListResponse,
    ArticleIn,
    ArticleMutationResponse,
    ArticleOut,
    ErrorResponse,
    HeroSlotData,
    HeroSlotRequest,
    HeroSlotResponse,
    QuotesResponse,
)
from app.services.articles import (
    create_article,
    delete_article,
    get_article,
    list_admin,
    update_article,
)
from app.services.hero_slots import HeroSlotManager
from app.services.quotes import QuoteCache
from app.stores.postgres import get_session

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger("uvicorn.error")


# ============================================================
# Articles
# ============================================================


@router.get("/news", response_model=AdminArticleListResponse)
async def list_articles(
    filter_: str = Query(default="all", alias="filter", description="all | published | draft | hero | featured"),
) -> AdminArticleListResponse:
    """List all articles (including drafts) for the dashboard."""
    async with get_session() as session:
        articles = await list_admin(session, filter_)
        return AdminArticleListResponse(
            count=len(articles),
            data=[ArticleOut.model_validate(a) for a in articles],
        )


# Declared before /news/{article_id} so "hero" is not captured as an ID.
@router.put(
    "/news/hero",
    response_model=HeroSlotResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def set_hero_slot(
    request: HeroSlotRequest,
    hero_slots: HeroSlotManager = Depends(get_hero_slot_manager),
) -> HeroSlotResponse:
    """Place an article in hero slot 1-3 (evicting the current holder) or clear it with null."""
    article = await hero_slots.set_hero_slot(request.article_id, request.hero_slot)
    return HeroSlotResponse(data=HeroSlotData(id=article.id, hero_slot=article.hero_slot))


@router.get("/news/{article_id}", response_model=ArticleOut)
async def get_article_by_id(article_id: str = Path(min_length=1, max_length=36)) -> ArticleOut:
    """Get any article (published or draft) by ID."""
    async with get_session() as session:
        article = await get_article(session, article_id)
        return ArticleOut.model_validate(article)


@router.post("/news", response_model=ArticleMutationResponse)
async def create_news(
    request: ArticleIn,
    hero_slots: HeroSlotManager = Depends(get_hero_slot_manager),
) -> ArticleMutationResponse:
    """Create an article. Slug is derived from the title when omitted."""
    async with hero_slots.transaction() as session:
        article = await create_article(session, request.model_dump())
        data = ArticleOut.model_validate(article)

    return ArticleMutationResponse(message="Article created", data=data)


@router.put("/news/{article_id}", response_model=ArticleMutationResponse)
async def update_news(
    request: ArticleIn,
    article_id: str = Path(min_length=1, max_length=36),
    hero_slots: HeroSlotManager = Depends(get_hero_slot_manager),
) -> ArticleMutationResponse:
    """Update an article."""
    async with hero_slots.transaction() as session:
        article = await update_article(session, article_id, request.model_dump())
        data = ArticleOut.model_validate(article)

    return ArticleMutationResponse(message="Article updated", data=data)


@router.delete("/news/{article_id}")
async def delete_news(article_id: str = Path(min_length=1, max_length=36)) -> dict:
    """Delete an article."""
    async with get_session() as session:
        await delete_article(session, article_id)

    return {"success": True, "id": article_id}


# ============================================================
# Quotes
# ============================================================


@router.post("/quotes/refresh", response_model=QuotesResponse, response_model_exclude_none=True)
async def refresh_quotes(cache: QuoteCache = Depends(get_quote_cache)) -> QuotesResponse:
    """Force an immediate quotes refresh (bypasses the TTL)."""
    snapshot = await cache.refresh()
    logger.info(f"[quotes] manual refresh failed_sources={list(snapshot.failed_sources)}")
    return QuotesResponse.model_validate(snapshot.to_response())
