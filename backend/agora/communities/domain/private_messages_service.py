"""One-to-one chat messages."""

from __future__ import annotations

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import Broadcast, ServiceResult, dump
from agora.communities.domain.exceptions import NotFoundError
from agora.communities.domain.rooms import user_room
from agora.infra.auth import AuthenticatedUser
from agora.settings import settings


class PrivateMessagesService:
	def __init__(
		self,
		*,
		repository: repo_module.MessagesRepository | None = None,
		users: repo_module.CommunitiesRepository | None = None,
		fanout: bool | None = None,
	) -> None:
		self.repo = repository or repo_module.MessagesRepository()
		self.users = users or repo_module.CommunitiesRepository()
		self.fanout = settings.private_message_fanout if fanout is None else fanout

	async def _message(self, message_id: int) -> models.PrivateMessage:
		message = await self.repo.get_private(message_id)
		if message is None or message.deleted_at is not None:
			raise NotFoundError("Message not found")
		return message

	async def send(self, actor: AuthenticatedUser | None, receiver_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		if await self.users.get_user(receiver_id) is None:
			raise NotFoundError("User not found to receive this message")
		policies.SEND_PRIVATE_MESSAGE.enforce(policies.AuthContext(actor_id=actor_id, target_id=receiver_id))

		message = await self.repo.create_private(actor_id, receiver_id, content)
		payload = dump(message)
		effects = []
		if self.fanout:
			effects.append(Broadcast(room=user_room(receiver_id), event="receive-message", payload=payload))
		return ServiceResult(message="Message sent", data=payload, effects=effects)

	async def update(self, actor: AuthenticatedUser | None, message_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		message = await self._message(message_id)
		policies.UPDATE_PRIVATE_MESSAGE.enforce(
			policies.AuthContext(actor_id=actor_id, owner_id=message.sender_id, is_read=message.is_read)
		)
		updated = await self.repo.update_private(message.id, content)
		return ServiceResult(message="Message updated", data=dump(updated))

	async def delete(self, actor: AuthenticatedUser | None, message_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		message = await self._message(message_id)
		policies.DELETE_PRIVATE_MESSAGE.enforce(policies.AuthContext(actor_id=actor_id, owner_id=message.sender_id))
		deleted = await self.repo.soft_delete_private(message.id)
		return ServiceResult(message="Message deleted", data=dump(deleted))
