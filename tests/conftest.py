"""
Shared fixtures. Mongo is never contacted: tests patch the module-level
collection names with mocks and use ``make_cursor`` for ``find`` results.
"""
import os

# must be set before meditation_api.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-not-real")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport


def make_cursor(docs):
    """A Motor-like cursor: chainable sort/skip/limit, async iteration and to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__aiter__.return_value = list(docs)
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def insert_result(oid=None):
    return MagicMock(inserted_id=oid or ObjectId())


@pytest.fixture
def user():
    return {
        "_id": ObjectId(),
        "email": "calm@example.com",
        "username": "calm",
        "is_admin": False,
        "login_count": 3,
        "login_streak": 1,
        "stress_preferences": {"preferred_techniques": [], "avoided_techniques": [], "preferred_duration": 5},
    }


@pytest.fixture
def admin_user(user):
    return {**user, "_id": ObjectId(), "is_admin": True}


@pytest.fixture
def app():
    from meditation_api.main import app as asgi_app
    yield asgi_app
    asgi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app, user):
    """HTTP client authenticated as ``user``."""
    from meditation_api.utils.auth_utils import get_current_user

    app.dependency_overrides[get_current_user] = lambda: user
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def anon_client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
