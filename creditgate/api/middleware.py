"""Bearer-token extraction for FastAPI routes."""

from __future__ import annotations

from fastapi import Request

from creditgate.core.exceptions import InvalidTokenError, UnauthenticatedError


def extract_bearer_token(request: Request) -> str:
    """Return the token from ``Authorization: Bearer <token>``.

    A missing header raises UnauthenticatedError (401); a header that is
    present but not of the form ``Bearer <token>`` raises InvalidTokenError
    (403).
    """
    auth_header = request.headers.get("authorization", "")
    if not auth_header:
        raise UnauthenticatedError("Unauthorized")

    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise InvalidTokenError("Forbidden", context={"reason": "malformed_header"})
    return token
