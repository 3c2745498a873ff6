"""Authentication helpers for Socket.IO handshakes.

- Bearer JWTs are verified (HS256) against settings.secret_key.
- Tokens are read from the handshake `auth.token` first, then the Authorization header.
- The `auth.userId` fallback is only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from jwt import InvalidTokenError

from agora.infra import jwt as jwt_helper
from agora.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: int
	name: Optional[str] = None
	role: Optional[str] = None


def _coerce_user_id(value: Any) -> Optional[int]:
	if isinstance(value, bool):
		return None
	try:
		user_id = int(str(value).strip())
	except (TypeError, ValueError):
		return None
	return user_id if user_id > 0 else None


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	All decode failures are normalised to InvalidTokenError("invalid_token").
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except InvalidTokenError as exc:
		raise InvalidTokenError("invalid_token") from exc

	user_id = None
	for claim in jwt_helper.USER_ID_CLAIMS:
		user_id = _coerce_user_id(payload.get(claim))
		if user_id is not None:
			break
	if user_id is None:
		raise InvalidTokenError("invalid_token")

	name = payload.get("name") or payload.get("display_name")
	role = payload.get("role")
	return AuthenticatedUser(
		id=user_id,
		name=str(name) if name is not None else None,
		role=str(role) if role is not None else None,
	)


def _header(scope: Mapping[str, Any], name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def extract_token(environ: Mapping[str, Any], auth: Optional[Mapping[str, Any]] = None) -> Optional[str]:
	scope = environ.get("asgi.scope", environ)
	payload = auth or environ.get("auth") or scope.get("auth") or {}
	token = payload.get("token") if isinstance(payload, Mapping) else None
	if token:
		return str(token)
	header = _header(scope, "authorization")
	if header and header.lower().startswith("bearer "):
		return header[7:].strip() or None
	return None


def resolve_socket_user(environ: Mapping[str, Any], auth: Optional[Mapping[str, Any]] = None) -> AuthenticatedUser:
	"""Resolve the connecting user or raise InvalidTokenError."""
	token = extract_token(environ, auth)
	if token:
		return verify_access_jwt(token)

	# In dev only, allow a plain userId for local tools
	if settings.is_dev():
		scope = environ.get("asgi.scope", environ)
		payload = auth or environ.get("auth") or scope.get("auth") or {}
		user_id = _coerce_user_id(payload.get("userId")) if isinstance(payload, Mapping) else None
		if user_id is not None:
			return AuthenticatedUser(id=user_id, name=payload.get("name"))

	raise InvalidTokenError("missing_token")
