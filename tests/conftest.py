"""Shared fixtures: settings, a throwaway SQLite database and wired services.

Store and service tests run against an aiosqlite engine per test so that
transactions, unique constraints and date-range queries behave like a real
relational store.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from argon2 import PasswordHasher as Argon2Hasher
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import Settings
from creditgate.saas.auth import AuthService
from creditgate.saas.keys import KeyManager
from creditgate.saas.passwords import PasswordHasher
from creditgate.saas.quota import QuotaService
from creditgate.saas.tokens import SessionTokenManager
from creditgate.store.credentials import CredentialStore
from creditgate.store.db import create_engine, init_schema

TEST_SECRET = "test-secret-key-with-enough-length-0123456789"


def make_settings(db_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "jwt_secret": SecretStr(TEST_SECRET),
        "database_url": SecretStr(f"sqlite+aiosqlite:///{db_path}"),
        "auto_create_schema": True,
        "pricing_feed_url": "http://feed.test/crypto/listing/local",
        "default_plan_limit": 5,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path / "creditgate.db")


@pytest.fixture()
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    eng = create_engine(settings)
    await init_schema(eng)
    yield eng
    await eng.dispose()


@pytest.fixture()
def store(engine: AsyncEngine) -> CredentialStore:
    return CredentialStore(engine)


@pytest.fixture()
def hasher() -> PasswordHasher:
    """Cheap argon2 parameters; the algorithm is the same as production."""
    return PasswordHasher(Argon2Hasher(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture()
def tokens() -> SessionTokenManager:
    return SessionTokenManager(secret=TEST_SECRET, expiry_minutes=60)


@pytest.fixture()
def auth(store: CredentialStore, hasher: PasswordHasher, tokens: SessionTokenManager) -> AuthService:
    return AuthService(store, hasher, tokens, default_plan_name="free", default_plan_limit=5)


@pytest.fixture()
def key_manager(store: CredentialStore, tokens: SessionTokenManager) -> KeyManager:
    return KeyManager(store, tokens)


@pytest.fixture()
def quota(store: CredentialStore) -> QuotaService:
    return QuotaService(store)
