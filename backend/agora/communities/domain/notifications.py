"""Notification templates and persistence."""

from __future__ import annotations

import logging

from agora.communities.domain import models, repo as repo_module

logger = logging.getLogger(__name__)

TEMPLATES = {
	"join_community": "You joined the community {community} 🎉",
	"reject_community": "Your request to join {community} was rejected ❌",
	"your_admin": "You are now an admin in {community} 👑",
	"update_admin": "Your admin permissions in {community} have been updated 🔧",
	"remove_admin": "You are no longer an admin in {community} ⚠️",
	"like": "{actor} liked your post ❤️",
	"comment": "{actor} commented on your post 💬",
	"mention": "{actor} mentioned you 🔔",
}


def render(kind: str, **context: object) -> str:
	try:
		template = TEMPLATES[kind]
	except KeyError as exc:
		raise ValueError(f"unknown notification type: {kind}") from exc
	return template.format(**{key: "" if value is None else value for key, value in context.items()})


class NotificationService:
	"""Renders a notification for a user and stores it."""

	def __init__(self, repository: repo_module.NotificationsRepository | None = None) -> None:
		self.repo = repository or repo_module.NotificationsRepository()

	async def create(self, user_id: int, kind: str, **context: object) -> models.Notification:
		message = render(kind, **context)
		notification = await self.repo.create(user_id=user_id, message=message, kind=kind)
		logger.debug("notification stored", extra={"notification_type": kind, "recipient": user_id})
		return notification
