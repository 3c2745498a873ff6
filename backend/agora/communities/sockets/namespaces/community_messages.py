"""Community chat events."""

from __future__ import annotations

from agora.communities.domain.community_messages_service import CommunityMessagesService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class CommunityMessageHandlers(HandlerGroup):
	events = {
		"send-community-message": "send",
		"update-community-message": "update",
		"delete-community-message": "delete",
	}

	def __init__(self, gateway, service: CommunityMessagesService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or CommunityMessagesService()

	async def send(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.SendCommunityMessagePayload, data)
		await self.finish(sid, await self.service.send(actor, payload.community_id, payload.content))

	async def update(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.UpdateMessagePayload, data)
		await self.finish(sid, await self.service.update(actor, payload.message_id, payload.content))

	async def delete(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.MessageRef, data)
		await self.finish(sid, await self.service.delete(actor, payload.message_id))
