"""Tests for health endpoint and error formatting."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app


@pytest.fixture
async def bare_client():
    """Client without dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(bare_client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await bare_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_admin_requires_token(bare_client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    """Admin routes reject requests without the shared token."""
    from app import dependencies

    class _Settings:
        admin_token = "s3cret"

    monkeypatch.setattr(dependencies, "get_settings", lambda: _Settings())

    response = await bare_client.put("/v1/admin/news/hero", json={"articleId": "x", "heroSlot": 1})
    assert response.status_code == 401
    assert response.json() == {
        "error": {"code": "UNAUTHORIZED", "message": "Missing or invalid admin token", "detail": None}
    }

    response = await bare_client.put(
        "/v1/admin/news/hero",
        json={"articleId": "x", "heroSlot": 1},
        headers={"X-Admin-Token": "wrong"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_rejects_everything_when_token_unset(bare_client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from app import dependencies

    class _Settings:
        admin_token = ""

    monkeypatch.setattr(dependencies, "get_settings", lambda: _Settings())

    response = await bare_client.get("/v1/admin/news", headers={"X-Admin-Token": ""})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"
