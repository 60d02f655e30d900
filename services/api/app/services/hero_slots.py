"""Hero slot placement for home page featured articles.

Invariant: each slot in {1, 2, 3} is held by at most one article.

Assigning a slot evicts the current holder first, then assigns the target.
Both writes happen inside the caller's transaction, so a failure on either
rolls back both (no window with zero or two holders is ever committed).
The `news.hero_slot` unique constraint backs this up at the storage layer,
and `HeroSlotManager` serializes slot changes within the process.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import HERO_SLOTS, Article
from app.services.errors import InvalidArgument, NotFound, StorageFailure
from app.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


def validate_hero_slot(slot: object) -> int | None:
    """Return `slot` if it is None or one of HERO_SLOTS, else raise InvalidArgument."""
    if slot is None:
        return None
    # bool is an int subclass; True must not mean slot 1.
    if isinstance(slot, bool) or not isinstance(slot, int) or slot not in HERO_SLOTS:
        raise InvalidArgument(
            f"Invalid hero slot: {slot!r}. Expected one of {list(HERO_SLOTS)} or null",
            detail={"hero_slot": slot},
        )
    return slot


async def assign_hero_slot(session: AsyncSession, article: Article, slot: int | None) -> None:
    """Move `article` into `slot` (or out of any slot when None).

    Shared by every write path that touches hero_slot (slot endpoint,
    article create/update). `article` must be attached to `session`.
    """
    if slot is not None:
        await session.execute(
            update(Article)
            .where(Article.hero_slot == slot, Article.id != article.id)
            .values(hero_slot=None)
            .execution_options(synchronize_session="fetch")
        )
    article.hero_slot = slot
    await session.flush()


async def set_hero_slot(session: AsyncSession, article_id: object, slot: object) -> Article:
    """Set (or clear) the hero slot of an article within an open session.

    Args:
        session: Active session; the caller owns commit/rollback.
        article_id: Target article ID.
        slot: 1, 2, 3 or None to remove the article from any slot.

    Returns:
        The updated article.

    Raises:
        InvalidArgument: Bad article_id or slot (nothing written).
        NotFound: No article with that ID.
        StorageFailure: The database rejected one of the writes.
    """
    if not isinstance(article_id, str) or not article_id.strip():
        raise InvalidArgument("articleId is required", detail={"article_id": article_id})
    hero_slot = validate_hero_slot(slot)

    try:
        article = await session.get(Article, article_id)
        if article is None:
            raise NotFound(f"Article not found: {article_id}", detail={"article_id": article_id})
        await assign_hero_slot(session, article, hero_slot)
    except SQLAlchemyError as e:
        raise StorageFailure(str(e)) from e

    return article


class HeroSlotManager:
    """Serializes hero slot changes and commits each one atomically.

    Every write that can move an article into a slot (the slot endpoint and
    article create/update) must run inside `transaction()`.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Hold the slot lock for the lifetime of one committed session."""
        async with self._lock:
            try:
                async with get_session() as session:
                    yield session
            except SQLAlchemyError as e:
                # Commit failures surface here, after get_session rolled back.
                logger.error(f"[hero] transaction failed: {e}")
                raise StorageFailure(str(e)) from e

    async def set_hero_slot(self, article_id: object, slot: object) -> Article:
        """Set (or clear) an article's hero slot in its own transaction."""
        async with self.transaction() as session:
            article = await set_hero_slot(session, article_id, slot)

        logger.info(f"[hero] article_id={article.id} hero_slot={article.hero_slot}")
        return article


async def list_hero_articles(session: AsyncSession) -> dict[int, Article]:
    """Get published hero articles keyed by slot.

    Slots whose holder is unpublished (or that are empty) are absent.
    """
    result = await session.execute(
        select(Article)
        .where(Article.is_published.is_(True), Article.hero_slot.is_not(None))
        .order_by(Article.hero_slot)
    )
    return {article.hero_slot: article for article in result.scalars().all()}
