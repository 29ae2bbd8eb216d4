import pytest
import redis.asyncio as redis
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from anonmsg import main
from anonmsg.config import Settings
from anonmsg.database import get_db
from anonmsg.main import create_app
from anonmsg.redis import RedisClient
from anonmsg.services.rate_limiter import MemoryWindowStore
from conftest import create_link


@pytest.mark.asyncio
async def test_welcome(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.text == "Welcome to the Anonymous Messages API! Use /api/links/create to create a link."


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient):
    await create_link(client)

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "links_created_total" in response.text
    assert 'path="/api/links/create"' in response.text


@pytest.mark.asyncio
async def test_link_creation_rate_limit(client: AsyncClient):
    # Limit is 5 per hour per IP
    for _ in range(5):
        await create_link(client)

    response = await client.post("/api/links/create", json={"key": "secret123"})
    assert response.status_code == 429
    assert response.json() == {"error": "Too many links created, try again later."}
    assert int(response.headers["retry-after"]) > 0


@pytest.mark.asyncio
async def test_message_rate_limit_counts_rejected_requests(client: AsyncClient):
    link_id = (await create_link(client))["linkId"]

    # Limit is 10 per 15 minutes per IP; validation failures still count
    for i in range(10):
        payload = {"content": f"message {i}"} if i % 2 else {"content": ""}
        response = await client.post(f"/api/messages/{link_id}/send", json=payload)
        assert response.status_code in (201, 400)

    response = await client.post(f"/api/messages/{link_id}/send", json={"content": "one too many"})
    assert response.status_code == 429
    assert response.json() == {"error": "Too many messages sent, try again later."}


@pytest.mark.asyncio
async def test_rate_limits_are_per_route(client: AsyncClient):
    for _ in range(5):
        await create_link(client)

    # Link creation is exhausted but reads are not limited
    response = await client.get("/api/links", params={"key": "secret123"})
    assert response.status_code == 200
    assert response.json()["totalLinks"] == 5


class _BrokenSession:
    async def execute(self, *args, **kwargs):
        raise RuntimeError("connection reset by peer")


async def _broken_db():
    yield _BrokenSession()


@pytest.mark.asyncio
async def test_store_failure_returns_generic_error(app: FastAPI, client: AsyncClient):
    app.dependency_overrides[get_db] = _broken_db

    response = await client.get("/api/links/abcd1234/info", headers={"Origin": "http://example.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "connection reset" not in response.text
    assert response.headers["access-control-allow-origin"] == "*"

    metrics = (await client.get("/metrics")).text
    assert 'path="/api/links/{linkId}/info",status="500"' in metrics


@pytest.mark.asyncio
async def test_unreachable_redis_falls_back_to_memory(settings: Settings, monkeypatch):
    async def refuse(self):
        raise redis.ConnectionError("Error 111 connecting to 127.0.0.1:1")

    monkeypatch.setattr(RedisClient, "connect", refuse)
    app = create_app(settings.model_copy(update={"REDIS_URL": "redis://127.0.0.1:1/0"}))

    async with app.router.lifespan_context(app):
        assert isinstance(app.state.rate_limit_store, MemoryWindowStore)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await create_link(client)


@pytest.mark.asyncio
async def test_unreachable_database_exits(settings: Settings, tmp_path, monkeypatch):
    critical = []
    monkeypatch.setattr(main.logger, "critical", critical.append)
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'messages.db'}"
    app = create_app(settings.model_copy(update={"DATABASE_URL": url}))

    with pytest.raises(SystemExit) as exc_info:
        async with app.router.lifespan_context(app):
            pass

    assert exc_info.value.code == 1
    assert critical and critical[0].startswith("Database connection error")
