"""Dependency wiring for routes.

Long-lived objects (quote cache, hero slot manager) are created by the
application factory and stored on `app.state`; routes receive them through
these dependencies so tests can swap them via `app.dependency_overrides`.
"""

import hmac

from fastapi import Header, Request

from app.services.errors import Unauthorized
from app.services.hero_slots import HeroSlotManager
from app.services.quotes import QuoteCache
from app.settings import get_settings


def get_quote_cache(request: Request) -> QuoteCache:
    return request.app.state.quote_cache


def get_hero_slot_manager(request: Request) -> HeroSlotManager:
    return request.app.state.hero_slots


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """Reject admin calls without the shared admin token."""
    expected = get_settings().admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise Unauthorized("Missing or invalid admin token")
