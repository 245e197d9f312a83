"""Session Token signing and verification (HS256 JWT via PyJWT).

Tokens are stateless: the signed claims are the only authority, nothing is
stored server-side.
"""

from __future__ import annotations

import time

import jwt

from creditgate.core.exceptions import InvalidTokenError, UnauthenticatedError
from creditgate.core.logging import get_logger
from creditgate.core.types import SessionClaims

log = get_logger(__name__)

_REQUIRED_CLAIMS = ["exp", "iat", "sub"]


class SessionTokenManager:
    """Issue and verify Session Tokens."""

    def __init__(
        self,
        secret: str,
        expiry_minutes: int = 60,
        algorithm: str = "HS256",
    ) -> None:
        if not secret:
            msg = "Session token secret must not be empty"
            raise ValueError(msg)
        self._secret: str = secret
        self._expiry_seconds: int = expiry_minutes * 60
        self._algorithm: str = algorithm

    def issue(self, claims: SessionClaims, now: float | None = None) -> str:
        """Sign ``claims`` with an expiry ``expiry_minutes`` after ``now``."""
        issued_at = int(now if now is not None else time.time())
        payload = claims.to_payload()
        payload["iat"] = issued_at
        payload["exp"] = issued_at + self._expiry_seconds
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> SessionClaims:
        """Return the claims of a valid token.

        Raises UnauthenticatedError when no token is given and
        InvalidTokenError when it is malformed, tampered with or expired.
        """
        if not token:
            raise UnauthenticatedError("Unauthorized")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            log.debug("session_token_expired")
            raise InvalidTokenError("Forbidden", context={"reason": "expired"}) from exc
        except jwt.InvalidTokenError as exc:
            log.warning("session_token_invalid", reason=type(exc).__name__)
            raise InvalidTokenError("Forbidden", context={"reason": "invalid"}) from exc

        try:
            return SessionClaims.from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("session_token_missing_claims")
            raise InvalidTokenError("Forbidden", context={"reason": "claims"}) from exc
