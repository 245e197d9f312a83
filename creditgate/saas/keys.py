"""API key generation and rotation."""

from __future__ import annotations

import secrets

from creditgate.core.constants import API_KEY_PREFIX, API_KEY_RANDOM_BYTES
from creditgate.core.exceptions import StaleCredentialError
from creditgate.core.logging import get_logger
from creditgate.core.types import RotationResult, SessionClaims
from creditgate.saas.tokens import SessionTokenManager
from creditgate.store.credentials import CredentialStore

log = get_logger(__name__)


def generate_api_key() -> str:
    """New random key value from the OS CSPRNG."""
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(API_KEY_RANDOM_BYTES)}"


class KeyManager:
    """Rotates an account's api key on behalf of a verified session."""

    def __init__(self, store: CredentialStore, tokens: SessionTokenManager) -> None:
        self._store = store
        self._tokens = tokens

    async def regenerate_key(self, claims: SessionClaims) -> RotationResult:
        """Replace the account's key and issue a token embedding the new value.

        The token must embed the key currently stored for the account; a
        token issued before an earlier rotation is refused. Plan fields in the
        new token are re-read from storage, not copied from ``claims``.
        """
        bundle = await self._store.find_bundle_by_email(claims.email)
        if bundle is None:
            log.warning("api_key_rotation_unknown_account", user_id=claims.user_id)
            raise StaleCredentialError("Token not matching with database")

        if bundle.api_key.api_key_val != claims.api_key_val:
            log.warning("api_key_rotation_stale_token", user_id=bundle.account.user_id)
            raise StaleCredentialError("Token not matching with database")

        new_key = await self._store.rotate_key(claims.api_key_val, generate_api_key())
        if new_key is None:
            # Another rotation replaced the value between our read and update.
            log.warning("api_key_rotation_lost_race", user_id=bundle.account.user_id)
            raise StaleCredentialError("Token not matching with database")

        bundle.api_key = new_key
        token = self._tokens.issue(SessionClaims.from_bundle(bundle))

        log.info(
            "api_key_rotated",
            user_id=bundle.account.user_id,
            api_key_id=new_key.api_key_id,
        )
        return RotationResult(token=token, api_key=new_key, plan=bundle.plan)
