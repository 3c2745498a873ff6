"""Community admin events."""

from __future__ import annotations

from agora.communities.domain.admins_service import AdminsService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class AdminHandlers(HandlerGroup):
	events = {
		"add-admin": "add_admin",
		"update-admin": "update_admin",
		"delete-admin": "delete_admin",
	}

	def __init__(self, gateway, service: AdminsService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or AdminsService()

	async def add_admin(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AdminPayload, data)
		result = await self.service.add(actor, payload.community_id, payload.user_admin, payload.permissions)
		await self.finish(sid, result)

	async def update_admin(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AdminPayload, data)
		result = await self.service.update(actor, payload.community_id, payload.user_admin, payload.permissions)
		await self.finish(sid, result)

	async def delete_admin(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AdminPayload, data)
		await self.finish(sid, await self.service.revoke(actor, payload.community_id, payload.user_admin))
