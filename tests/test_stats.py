"""Stats endpoint behavior tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_stats_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.google.com"})
    short_id = create_resp.json()["short_id"]

    response = await client.get(f"/api/stats/{short_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["short_id"] == short_id
    assert data["original_url"] == "https://www.google.com"
    assert data["clicks"] == 0
    assert data["last_accessed"] is None
    assert "short_url" in data
    assert "created_at" in data


@pytest.mark.asyncio
async def test_stats_invalid_code(client: AsyncClient) -> None:
    response = await client.get("/api/stats/nonexistent")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_do_not_count_as_clicks(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.example.com"})
    short_id = create_resp.json()["short_id"]

    for _ in range(5):
        await client.get(f"/{short_id}", follow_redirects=False)
    await client.get(f"/api/stats/{short_id}")

    response = await client.get(f"/api/stats/{short_id}")
    assert response.status_code == 200
    assert response.json()["clicks"] == 5
