import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from microblog.core import db as db_module
from microblog.main import app


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database for tests that call the services directly."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.fixture
def identity():
    return app.state.identity


@pytest.fixture
def content():
    return app.state.content


@pytest.fixture
def gate():
    return app.state.gate


@pytest_asyncio.fixture
async def make_user(db, identity):
    """
    Factory fixture registering users through the identity store.
    Returns (user, token).
    """

    async def _make_user(username: str | None = None, password: str = "UserPass!23"):
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        return await identity.register(username, password, f"{username}@mail.com")

    return _make_user


@pytest_asyncio.fixture
async def register(client):
    """
    Helper fixture registering over HTTP.
    Returns (user view, Authorization headers).
    """

    async def _register(username: str | None = None, password: str = "StrongPass!23"):
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        resp = await client.post(
            "/users",
            json={"username": username, "password": password, "email": f"{username}@mail.com"},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register
