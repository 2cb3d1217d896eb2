"""
Shared fixtures for the feedback backend tests.

MongoDB is replaced with mongomock-motor; the env vars must be set before
studyfeedback.core.config is imported.
"""

import os

os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB_NAME", "studytracker_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from studyfeedback.core.security import create_access_token
from studyfeedback.crud import users as users_crud
from studyfeedback.db import mongo


@pytest.fixture
def db(monkeypatch):
    """Fresh in-memory database assigned to the module-level Mongo handle."""
    test_db = AsyncMongoMockClient()["studytracker_test"]
    monkeypatch.setattr(mongo, "db", test_db)
    return test_db


@pytest_asyncio.fixture
async def alice(db):
    return await users_crud.create_user(
        name="Alice",
        email="alice@example.com",
        profile_image="https://img.example.com/alice.png",
        is_verified=True,
    )


@pytest_asyncio.fixture
async def bob(db):
    return await users_crud.create_user(name="Bob", email="bob@example.com")


@pytest_asyncio.fixture
async def admin(db):
    return await users_crud.create_user(name="Admin", email="admin@example.com", is_admin=True)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def client(db):
    """In-process HTTP client for the FastAPI app (lifespan is not run)."""
    from studyfeedback.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def headers_for():
    """Bearer headers for a given user."""
    return auth_headers


def make_draft(**overrides) -> dict:
    draft = {
        "text": "The timer keeps running after I pause it",
        "category": "general",
    }
    draft.update(overrides)
    return draft


@pytest.fixture
def draft():
    return make_draft
