import random
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from anonmsg.config import Settings
from anonmsg.main import create_app
from anonmsg.utils import IdentifierFactory

SEED = 1234


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'messages.db'}",
        REDIS_URL=None,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings, identifiers=IdentifierFactory(random.Random(SEED)))


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run lifespan events, so enter it explicitly
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c


async def create_link(client: AsyncClient, key: str = "secret123", **fields) -> dict:
    response = await client.post("/api/links/create", json={"key": key, **fields})
    assert response.status_code == 201, response.text
    return response.json()


async def send_message(client: AsyncClient, link_id: str, content: str = "hello") -> dict:
    response = await client.post(f"/api/messages/{link_id}/send", json={"content": content})
    assert response.status_code == 201, response.text
    return response.json()
