"""Private chat events. Results are echoed to the caller on the event's own name."""

from __future__ import annotations

from agora.communities.domain.private_messages_service import PrivateMessagesService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class PrivateMessageHandlers(HandlerGroup):
	events = {
		"send-message": "send",
		"update-message": "update",
		"delete-message": "delete",
	}

	def __init__(self, gateway, service: PrivateMessagesService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or PrivateMessagesService()

	async def send(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.SendPrivateMessagePayload, data)
		result = await self.service.send(actor, payload.receiver_id, payload.content)
		await self.finish(sid, result, event="send-message")

	async def update(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.UpdateMessagePayload, data)
		result = await self.service.update(actor, payload.message_id, payload.content)
		await self.finish(sid, result, event="update-message")

	async def delete(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.MessageRef, data)
		await self.finish(sid, await self.service.delete(actor, payload.message_id), event="delete-message")
