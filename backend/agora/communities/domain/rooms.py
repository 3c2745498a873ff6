"""Room naming shared by services and the socket layer."""

from __future__ import annotations

from agora.communities.domain import models


def user_room(user_id: int) -> str:
	return f"user:{user_id}"


def community_room(community_id: int) -> str:
	return f"community:{community_id}"


def admin_room(community_id: int, area: str) -> str:
	if area not in models.ADMIN_AREAS:
		raise ValueError(f"unknown admin area: {area}")
	return f"community-admin:{community_id}:{area}"
