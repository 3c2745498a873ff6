"""Community chat: every active member (and the owner) may post to the community room."""

from __future__ import annotations

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import Broadcast, ServiceResult, dump
from agora.communities.domain.exceptions import NotFoundError
from agora.communities.domain.rooms import community_room
from agora.infra.auth import AuthenticatedUser


class CommunityMessagesService:
	def __init__(
		self,
		*,
		repository: repo_module.MessagesRepository | None = None,
		communities: repo_module.CommunitiesRepository | None = None,
	) -> None:
		self.repo = repository or repo_module.MessagesRepository()
		self.communities = communities or repo_module.CommunitiesRepository()

	async def _community(self, community_id: int) -> models.Community:
		community = await self.communities.get_community(community_id)
		if community is None:
			raise NotFoundError("Community not found")
		return community

	async def _moderation_context(
		self,
		actor_id: int,
		message_id: int,
	) -> tuple[models.CommunityMessage, models.Community, policies.AuthContext]:
		message = await self.repo.get_community_message(message_id)
		if message is None or message.deleted_at is not None:
			raise NotFoundError("Message not found")
		community = await self._community(message.community_id)
		grant = await self.communities.get_admin(community.id, actor_id)
		ctx = policies.AuthContext(
			actor_id=actor_id,
			community=community,
			grant=grant,
			owner_id=message.sender_id,
		)
		return message, community, ctx

	async def send(self, actor: AuthenticatedUser | None, community_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		community = await self._community(community_id)
		membership = await self.communities.get_membership(actor_id, community.id)
		policies.SEND_COMMUNITY_MESSAGE.enforce(
			policies.AuthContext(actor_id=actor_id, community=community, membership=membership),
			any_of=True,
		)

		message = await self.repo.create_community_message(community.id, actor_id, content)
		payload = dump(message)
		return ServiceResult(
			message="Message sent",
			data=payload,
			effects=[Broadcast(room=community_room(community.id), event="receive-community-message", payload=payload)],
		)

	async def update(self, actor: AuthenticatedUser | None, message_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		message, community, ctx = await self._moderation_context(actor_id, message_id)
		policies.UPDATE_COMMUNITY_MESSAGE.enforce(ctx, any_of=True)

		updated = await self.repo.update_community_message(message.id, content)
		payload = dump(updated)
		return ServiceResult(
			message="Message updated",
			data=payload,
			effects=[Broadcast(room=community_room(community.id), event="update-message-community", payload=payload)],
		)

	async def delete(self, actor: AuthenticatedUser | None, message_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		message, community, ctx = await self._moderation_context(actor_id, message_id)
		policies.DELETE_COMMUNITY_MESSAGE.enforce(ctx, any_of=True)

		deleted = await self.repo.soft_delete_community_message(message.id)
		payload = dump(deleted)
		return ServiceResult(
			message="Message deleted",
			data=payload,
			effects=[Broadcast(room=community_room(community.id), event="delete-message-community", payload=payload)],
		)
