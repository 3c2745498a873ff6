"""Centralised JWT helpers for access tokens.

Tokens are HS256-signed with the application's secret key. The user id travels
as `id`, `userId` or `sub` depending on which service issued the token.
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt
from jwt import InvalidTokenError

from agora.settings import settings


USER_ID_CLAIMS = ("id", "userId", "sub")


def encode_access(payload: dict[str, object], *, expires_in: int = 3600) -> str:
    """Encode an access token with iat/exp defaults."""
    now = int(time.time())
    body: Dict[str, Any] = {"iat": now, "exp": now + expires_in}
    body.update(payload)
    return jwt.encode(body, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access(token: str) -> dict[str, object]:
    """Decode and validate an access token.

    Raises jwt.InvalidTokenError subclasses on failure.
    """
    payload = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
        leeway=5,
    )
    if not any(payload.get(claim) not in (None, "") for claim in USER_ID_CLAIMS):
        raise InvalidTokenError("missing_claim:id")
    return payload  # type: ignore[return-value]
