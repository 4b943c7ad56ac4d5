"""Pytest configuration and fixtures."""

import json
import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment before importing the package
os.environ["TESTING"] = "1"

from social_login.config import ResolverConfig
from social_login.db.base import Base
from social_login.identity import (
    AccountFieldResolver,
    AvatarResolver,
    CredentialService,
    OAuthReconciler,
)
from social_login.models import User

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def resolver_config() -> ResolverConfig:
    return ResolverConfig(default_email_domain="example.test", max_disambiguation_attempts=10)


@pytest.fixture
def notifier():
    """Stand-in for the webhook notifier."""
    mock = AsyncMock()
    mock.notify_credential_created = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def reconciler(resolver_config, notifier) -> OAuthReconciler:
    return OAuthReconciler(
        resolver=AccountFieldResolver(resolver_config),
        avatars=AvatarResolver(timeout=1.0),
        credentials=CredentialService(notifier),
        timeout=5.0,
    )


@pytest.fixture
def make_user():
    """Build an unsaved user with all required columns filled."""

    def _make_user(login: str, email: str | None = None, **kwargs) -> User:
        return User(
            login=login,
            email=email or f"{login}@example.test",
            password="placeholder",
            **kwargs,
        )

    return _make_user


@pytest.fixture
def vk_payload() -> dict:
    return {
        "provider": "vkontakte",
        "uid": "42",
        "info": {
            "name": "Ivan Petrov",
            "nickname": "vk_nick",
            "image": "https://vk.com/images/camera_50.png",
            "urls": {"Vkontakte": "https://vk.com/vk_nick"},
        },
        "extra": {"raw_info": {"photo_200_orig": "https://pp.userapi.com/vk_nick_200.jpg"}},
        "credentials": {"token": "tok"},
    }


@pytest.fixture
def facebook_payload() -> dict:
    return {
        "provider": "facebook",
        "uid": "10001",
        "info": {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "image": "https://graph.facebook.com/10001/picture",
            "urls": {"Facebook": "https://www.facebook.com/jane.doe"},
        },
        "extra": {"raw_info": {"id": "10001"}},
        "credentials": {"token": "fb-token", "expires_at": 5183999},
    }


@pytest.fixture
def twitter_payload() -> dict:
    return {
        "provider": "twitter",
        "uid": 777,
        "info": {
            "name": "Tweety Bird",
            "nickname": "tweety",
            "image": "https://pbs.twimg.com/profile_images/1/avatar_normal.jpg",
            "urls": {"Twitter": "https://twitter.com/tweety", "Website": "https://tweety.example"},
        },
        "credentials": {"token": "tw-token", "secret": "tw-secret"},
    }


@pytest.fixture
def google_payload() -> dict:
    return {
        "provider": "google_oauth2",
        "uid": "g-123",
        "info": {
            "name": "Alice Smith",
            "email": "alice@gmail.com",
            "image": "https://lh3.googleusercontent.com/photo.jpg?sz=50",
            "urls": {"Google": "https://plus.google.com/g-123"},
        },
        "credentials": {"token": "g-token", "expires_at": 3600},
    }


@pytest.fixture
def odnoklassniki_payload() -> dict:
    return {
        "provider": "odnoklassniki",
        "uid": "ok-9",
        "info": {
            "name": "Olga Ivanova",
            "urls": {"Odnoklassniki": "https://ok.ru/profile/9"},
        },
        "extra": {"raw_info": {"pic_2": "https://i.mycdn.me/pic_2.jpg"}},
        "credentials": {"token": "ok-token"},
    }


@pytest.fixture
def as_json():
    return json.dumps
