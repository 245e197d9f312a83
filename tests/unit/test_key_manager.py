"""Tests for KeyManager: rotation and the stale-token guard."""

from __future__ import annotations

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine

from creditgate.core.exceptions import StaleCredentialError
from creditgate.core.types import SessionClaims
from creditgate.saas.auth import AuthService
from creditgate.saas.keys import KeyManager, generate_api_key
from creditgate.store.credentials import CredentialStore
from creditgate.store.db import api_plans


class TestGenerateApiKey:
    def test_prefix_and_length(self) -> None:
        key = generate_api_key()
        assert key.startswith("cg_")
        assert len(key) > 40

    def test_unique(self) -> None:
        assert len({generate_api_key() for _ in range(50)}) == 50


class TestRegenerateKey:
    @pytest.mark.asyncio
    async def test_rotation_returns_new_key_and_token(
        self, auth: AuthService, key_manager: KeyManager
    ) -> None:
        signup = await auth.signup("Ann", "ann@x.com", "password1")
        claims = auth.verify_session(signup.token)

        result = await key_manager.regenerate_key(claims)
        assert result.api_key.api_key_val != signup.bundle.api_key.api_key_val
        assert result.api_key.api_key_id == signup.bundle.api_key.api_key_id

        new_claims = auth.verify_session(result.token)
        assert new_claims.api_key_val == result.api_key.api_key_val
        assert new_claims.user_id == claims.user_id

    @pytest.mark.asyncio
    async def test_old_key_value_invalid_after_rotation(
        self, auth: AuthService, key_manager: KeyManager, store: CredentialStore
    ) -> None:
        signup = await auth.signup("Ann", "ann@x.com", "password1")
        old = signup.bundle.api_key.api_key_val
        await key_manager.regenerate_key(auth.verify_session(signup.token))
        assert await store.find_key_with_plan(old) is None

    @pytest.mark.asyncio
    async def test_stale_token_cannot_rotate(
        self, auth: AuthService, key_manager: KeyManager
    ) -> None:
        signup = await auth.signup("Ann", "ann@x.com", "password1")
        stale = auth.verify_session(signup.token)
        await key_manager.regenerate_key(stale)

        with pytest.raises(StaleCredentialError) as exc_info:
            await key_manager.regenerate_key(stale)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_account(self, key_manager: KeyManager) -> None:
        ghost = SessionClaims(
            user_id="u-x",
            name="Ghost",
            email="ghost@x.com",
            api_key_val="cg_ghost",
            plan_name="free",
            plan_limit=5,
        )
        with pytest.raises(StaleCredentialError):
            await key_manager.regenerate_key(ghost)

    @pytest.mark.asyncio
    async def test_plan_fields_reread_from_storage(
        self, auth: AuthService, key_manager: KeyManager, engine: AsyncEngine
    ) -> None:
        signup = await auth.signup("Ann", "ann@x.com", "password1")
        claims = auth.verify_session(signup.token)

        async with engine.begin() as conn:
            await conn.execute(
                update(api_plans).values(plan_name="pro", plan_limit=10_000)
            )

        result = await key_manager.regenerate_key(claims)
        new_claims = auth.verify_session(result.token)
        assert new_claims.plan_name == "pro"
        assert new_claims.plan_limit == 10_000
        assert result.plan.plan_name == "pro"

    @pytest.mark.asyncio
    async def test_lost_race_is_stale(
        self, auth: AuthService, store: CredentialStore, key_manager: KeyManager
    ) -> None:
        signup = await auth.signup("Ann", "ann@x.com", "password1")
        claims = auth.verify_session(signup.token)

        original_rotate = store.rotate_key

        async def _rotate_after_competitor(old: str, new: str):  # type: ignore[no-untyped-def]
            await original_rotate(old, "cg_competitor")
            return await original_rotate(old, new)

        store.rotate_key = _rotate_after_competitor  # type: ignore[method-assign]
        with pytest.raises(StaleCredentialError):
            await key_manager.regenerate_key(claims)
