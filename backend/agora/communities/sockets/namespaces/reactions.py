"""Reaction events."""

from __future__ import annotations

from agora.communities.domain.reactions_service import ReactionsService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class ReactionHandlers(HandlerGroup):
	events = {
		"add-reaction": "add_reaction",
		"update-reaction": "update_reaction",
		"remove-reaction": "remove_reaction",
	}

	def __init__(self, gateway, service: ReactionsService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or ReactionsService()

	async def add_reaction(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AddReactionPayload, data)
		await self.finish(sid, await self.service.react(actor, payload.post_id, payload.reaction))

	async def update_reaction(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.UpdateReactionPayload, data)
		await self.finish(sid, await self.service.change(actor, payload.like_id, payload.reaction))

	async def remove_reaction(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.ReactionRef, data)
		await self.finish(sid, await self.service.remove(actor, payload.like_id))
