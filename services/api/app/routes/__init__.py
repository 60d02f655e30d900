"""API routes."""

from fastapi import APIRouter

from app.routes import admin, news, quotes

api_router = APIRouter()

# Public portal endpoints (home, listings, article pages, search)
api_router.include_router(news.router, prefix="/v1", tags=["news"])

# Market quotes widget
api_router.include_router(quotes.router, prefix="/v1/quotes", tags=["quotes"])

# Admin endpoints (article CRUD, hero slots)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
