"""Test configuration: an in-memory database per test, plus an API client."""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from database import Database
from main import create_app
from services.accounts import AccountService
from services.catalog import CatalogService
from services.security import issue_token_pair


@pytest.fixture
def config():
    return Config(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        JWT_SECRET="test-secret",
        SEED_DATA=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def db(config) -> AsyncGenerator[Database, None]:
    database = Database(config.DATABASE_URL)
    await database.init_schema()
    yield database
    await database.dispose()


@pytest.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
def catalog(session):
    return CatalogService(session)


@pytest.fixture
async def authors(catalog):
    """Three authors with fixed ids."""
    return [
        await catalog.create_author({"id": "AUT001", "name": "Alice Author"}),
        await catalog.create_author({"id": "AUT002", "name": "Bob Writer"}),
        await catalog.create_author({"id": "AUT003", "name": "Carol Editor"}),
    ]


@pytest.fixture
async def accounts(db, config):
    """Admin and regular user, with a token pair for each."""
    async with db.session() as s:
        service = AccountService(s, config)
        admin = await service.register("admin", "admin@bookstore.com", "admin123", "Administrator", "admin")
        user = await service.register("reader", "reader@bookstore.com", "reader123", "Regular Reader")
    return {
        "admin": issue_token_pair(admin, config),
        "user": issue_token_pair(user, config),
    }


@pytest.fixture
async def app_client(config, db) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(config, database=db)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers(accounts):
    return {"Authorization": f"Bearer {accounts['admin']['accessToken']}"}


@pytest.fixture
def user_headers(accounts):
    return {"Authorization": f"Bearer {accounts['user']['accessToken']}"}
