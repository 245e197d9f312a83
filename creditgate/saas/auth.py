"""Account signup, login and session verification."""

from __future__ import annotations

from creditgate.core.exceptions import (
    AccountNotFoundError,
    BadCredentialsError,
    DuplicateAccountError,
)
from creditgate.core.logging import get_logger
from creditgate.core.types import AuthResult, SessionClaims
from creditgate.saas.keys import generate_api_key
from creditgate.saas.passwords import PasswordHasher
from creditgate.saas.tokens import SessionTokenManager
from creditgate.store.credentials import CredentialStore

log = get_logger(__name__)


class AuthService:
    """Creates accounts and issues/verifies Session Tokens.

    Input shape (non-empty name, email format, password length) is checked
    at the API boundary before these methods are called.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        tokens: SessionTokenManager,
        *,
        default_plan_name: str = "free",
        default_plan_limit: int = 1000,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._default_plan_name = default_plan_name
        self._default_plan_limit = default_plan_limit

    async def signup(self, name: str, email: str, password: str) -> AuthResult:
        """Register an account with a fresh api key and the default plan."""
        if await self._store.email_exists(email):
            log.info("signup_rejected_duplicate_email")
            raise DuplicateAccountError("email already exist")

        bundle = await self._store.create_bundle(
            name=name,
            email=email,
            password_hash=self._hasher.hash(password),
            api_key_val=generate_api_key(),
            plan_name=self._default_plan_name,
            plan_limit=self._default_plan_limit,
        )
        token = self._tokens.issue(SessionClaims.from_bundle(bundle))

        log.info("account_created", user_id=bundle.account.user_id)
        return AuthResult(token=token, bundle=bundle)

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a token for the account's current key."""
        bundle = await self._store.find_bundle_by_email(email)
        if bundle is None:
            log.info("login_failed_unknown_email")
            raise AccountNotFoundError("invalid email")

        if not self._hasher.verify(bundle.account.password_hash, password):
            log.info("login_failed_bad_password", user_id=bundle.account.user_id)
            raise BadCredentialsError("invalid password")

        if self._hasher.needs_rehash(bundle.account.password_hash):
            new_hash = self._hasher.hash(password)
            await self._store.update_password_hash(bundle.account.user_id, new_hash)
            bundle.account.password_hash = new_hash
            log.info("password_rehashed", user_id=bundle.account.user_id)

        token = self._tokens.issue(SessionClaims.from_bundle(bundle))
        log.info("login_success", user_id=bundle.account.user_id)
        return AuthResult(token=token, bundle=bundle)

    def verify_session(self, token: str | None) -> SessionClaims:
        return self._tokens.verify(token)

    @staticmethod
    def get_profile(claims: SessionClaims) -> SessionClaims:
        return claims
