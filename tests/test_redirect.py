"""Redirect endpoint behavior tests."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.dependencies import get_db
from shortlink.main import app


@pytest.mark.asyncio
async def test_redirect_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.google.com"})
    short_id = create_resp.json()["short_id"]

    # httpx won't follow by default
    response = await client.get(f"/{short_id}", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "https://www.google.com"


@pytest.mark.asyncio
async def test_redirect_invalid_code(client: AsyncClient) -> None:
    response = await client.get("/zzz999", follow_redirects=False)
    assert response.status_code == 404
    assert response.json()["detail"] == "Short URL not found"


@pytest.mark.asyncio
async def test_redirect_increments_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.python.org"})
    short_id = create_resp.json()["short_id"]

    for _ in range(3):
        await client.get(f"/{short_id}", follow_redirects=False)

    stats_resp = await client.get(f"/api/stats/{short_id}")
    assert stats_resp.status_code == 200
    assert stats_resp.json()["clicks"] == 3
    assert stats_resp.json()["last_accessed"] is not None


@pytest.mark.asyncio
async def test_redirect_store_failure_returns_server_error(client: AsyncClient) -> None:
    broken = AsyncMock(spec=AsyncSession)
    broken.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield broken

    app.dependency_overrides[get_db] = override_get_db

    response = await client.get("/abc123", follow_redirects=False)
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
