"""Typed errors raised by community services and translated by the gateway."""

from __future__ import annotations

from typing import Iterable, Mapping

from fastapi import status


class CommunityError(Exception):
	"""Base class for community related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	code: str = "community_error"
	detail: str = "Something went wrong"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail

	def to_payload(self) -> dict:
		return {"status": self.status_code, "code": self.code, "message": self.detail}


class UnauthenticatedError(CommunityError):
	"""Raised when the connection carries no verified actor."""

	status_code = status.HTTP_401_UNAUTHORIZED
	code = "unauthenticated"
	detail = "You are not authenticated. Please log in first."


class ForbiddenError(CommunityError):
	"""Raised when authorization fails."""

	status_code = status.HTTP_403_FORBIDDEN
	code = "forbidden"
	detail = "Forbidden"


class NotFoundError(CommunityError):
	"""Thrown when a resource is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	code = "not_found"
	detail = "Not found"


class InvalidStateError(CommunityError):
	"""Conflicts, duplicates, self-targeting and invalid transitions."""

	status_code = status.HTTP_400_BAD_REQUEST
	code = "invalid_state"
	detail = "Invalid state"


class ValidationError(CommunityError):
	"""Payload failed validation; carries one message per offending field."""

	status_code = status.HTTP_400_BAD_REQUEST
	code = "validation_error"
	detail = "Invalid payload"

	def __init__(self, errors: Iterable[Mapping[str, str]] = (), detail: str | None = None) -> None:
		unique: dict[str, str] = {}
		for item in errors:
			field = str(item.get("field", ""))
			if field not in unique:
				unique[field] = str(item.get("message", ""))
		self.errors = [{"field": field, "message": message} for field, message in unique.items()]
		if detail is None and self.errors:
			detail = ", ".join(error["message"] for error in self.errors)
		super().__init__(detail)

	def to_payload(self) -> dict:
		payload = super().to_payload()
		payload["errors"] = self.errors
		return payload


_BY_STATUS = {
	status.HTTP_401_UNAUTHORIZED: UnauthenticatedError,
	status.HTTP_403_FORBIDDEN: ForbiddenError,
	status.HTTP_404_NOT_FOUND: NotFoundError,
}


def from_status(status_code: int, detail: str) -> CommunityError:
	"""Map a rule's numeric code onto the typed error family."""
	return _BY_STATUS.get(status_code, InvalidStateError)(detail)
