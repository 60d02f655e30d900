#!/usr/bin/env python3
"""Seed database with initial data.

Creates:
- Editorial categories
- A handful of published sample articles, three of them in hero slots

The script is idempotent: categories are matched by name and articles by slug.
Hero slots go through the hero slot service so re-running never leaves two
articles in the same slot.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Article, Category
from app.services.articles import create_article, generate_slug
from app.services.hero_slots import set_hero_slot
from app.stores.postgres import close_db, get_session, init_db

load_dotenv()

CATEGORIES = [
    {"name": "Economia", "color": "#16a34a"},
    {"name": "Mercado", "color": "#2563eb"},
    {"name": "Criptomoedas", "color": "#f59e0b"},
    {"name": "Investimentos", "color": "#7c3aed"},
    {"name": "Tecnologia", "color": "#0891b2"},
]

SAMPLE_ARTICLES = [
    {
        "title": "Dólar fecha em queda com entrada de capital estrangeiro",
        "summary": "Moeda americana recua pelo terceiro pregão seguido.",
        "content": "O dólar encerrou a sessão em queda, acompanhando o fluxo estrangeiro para a bolsa.",
        "category": "Mercado",
        "hero_slot": 1,
    },
    {
        "title": "Ibovespa renova máxima histórica",
        "summary": "Índice é puxado por bancos e commodities.",
        "content": "O principal índice da bolsa brasileira renovou sua máxima histórica nesta sessão.",
        "category": "Mercado",
        "hero_slot": 2,
    },
    {
        "title": "Bitcoin volta a subir após decisão do Fed",
        "summary": "Criptomoeda reage à manutenção dos juros americanos.",
        "content": "O bitcoin voltou a subir depois que o Federal Reserve manteve a taxa de juros.",
        "category": "Criptomoedas",
        "hero_slot": 3,
    },
    {
        "title": "Copom mantém Selic e sinaliza cautela",
        "summary": "Comitê destaca incertezas no cenário fiscal.",
        "content": "O Comitê de Política Monetária manteve a taxa Selic inalterada.",
        "category": "Economia",
    },
    {
        "title": "Fintechs ampliam oferta de crédito para pequenas empresas",
        "summary": None,
        "content": "Empresas de tecnologia financeira ampliaram linhas de crédito para PMEs.",
        "category": "Tecnologia",
    },
]


async def seed_database() -> None:
    """Seed database with initial data."""
    await init_db()
    try:
        async with get_session() as session:
            print("Seeding database...")

            print("\nCreating categories...")
            await seed_categories(session)

            print("\nCreating articles...")
            await seed_articles(session)

        print("\nDatabase seeded successfully!")
    finally:
        await close_db()


async def seed_categories(session: AsyncSession) -> None:
    for c in CATEGORIES:
        result = await session.execute(select(Category).where(Category.name == c["name"]))
        if result.scalar_one_or_none():
            print(f"  {c['name']} (exists)")
            continue
        session.add(Category(name=c["name"], color=c["color"]))
        await session.flush()
        print(f"  + {c['name']}")


async def seed_articles(session: AsyncSession) -> None:
    for a in SAMPLE_ARTICLES:
        slug = generate_slug(a["title"])
        result = await session.execute(select(Article).where(Article.slug == slug))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  {slug} (exists)")
            if a.get("hero_slot") and existing.hero_slot != a["hero_slot"]:
                await set_hero_slot(session, existing.id, a["hero_slot"])
                print(f"    -> hero slot {a['hero_slot']}")
            continue

        article = await create_article(session, {**a, "slug": slug, "is_published": True})
        suffix = f" [hero {article.hero_slot}]" if article.hero_slot else ""
        print(f"  + {article.slug}{suffix}")


if __name__ == "__main__":
    asyncio.run(seed_database())
