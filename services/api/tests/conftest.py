"""Shared fixtures.

Storage-backed tests run against an in-memory SQLite database (aiosqlite)
bound to the same session factory the app uses.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (register tables on Base.metadata)
from app.dependencies import get_hero_slot_manager, require_admin
from app.main import app as fastapi_app
from app.models import Article
from app.services.hero_slots import HeroSlotManager
from app.stores import postgres

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def db():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    postgres.bind_engine(engine)
    await postgres.create_tables()
    yield engine
    await postgres.close_db()


@pytest.fixture
def make_article(db):
    """Insert an article directly (bypassing services) and return its ID."""
    counter = {"n": 0}

    async def _make(
        article_id: str,
        *,
        title: str | None = None,
        category: str = "Mercado",
        is_published: bool = True,
        hero_slot: int | None = None,
        is_featured: bool = False,
        summary: str | None = None,
        content: str = "Conteúdo da notícia.",
    ) -> str:
        counter["n"] += 1
        async with postgres.get_session() as session:
            session.add(
                Article(
                    id=article_id,
                    title=title or f"Notícia {article_id}",
                    slug=article_id,
                    summary=summary,
                    content=content,
                    images=[],
                    category=category,
                    author="Redação",
                    is_published=is_published,
                    hero_slot=hero_slot,
                    is_featured=is_featured,
                    created_at=BASE_TIME + timedelta(minutes=counter["n"]),
                )
            )
        return article_id

    return _make


@pytest.fixture
async def hero_slots() -> HeroSlotManager:
    """One manager per test, created on the test's event loop."""
    return HeroSlotManager()


@pytest.fixture
async def client(db, hero_slots: HeroSlotManager):
    """API client with admin auth bypassed, sharing the test's hero slot manager."""
    fastapi_app.dependency_overrides[require_admin] = lambda: None
    fastapi_app.dependency_overrides[get_hero_slot_manager] = lambda: hero_slots
    async with AsyncClient(
        transport=ASGITransport(app=fastapi_app),
        base_url="http://test",
    ) as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
