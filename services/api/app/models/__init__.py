"""SQLAlchemy ORM models.

Models represent database tables:
- news: Articles, including hero slot placement
- categories: Editorial categories
"""

from app.models.article import HERO_SLOTS, Article
from app.models.category import Category

__all__ = ["HERO_SLOTS", "Article", "Category"]
