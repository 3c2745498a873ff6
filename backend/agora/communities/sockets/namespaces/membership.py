"""Membership events."""

from __future__ import annotations

from agora.communities.domain.membership_service import MembershipService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class MembershipHandlers(HandlerGroup):
	events = {
		"add-member": "add_member",
		"leave-member": "leave_member",
		"delete-member": "delete_member",
		"handle-request": "handle_request",
	}

	def __init__(self, gateway, service: MembershipService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or MembershipService()

	async def add_member(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.CommunityRef, data)
		await self.finish(sid, await self.service.join(actor, payload.community_id))

	async def leave_member(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.CommunityRef, data)
		await self.finish(sid, await self.service.leave(actor, payload.community_id))

	async def delete_member(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.RemoveMemberPayload, data)
		await self.finish(sid, await self.service.remove(actor, payload.community_id, payload.member_id))

	async def handle_request(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.HandleRequestPayload, data)
		result = await self.service.resolve_request(actor, payload.community_id, payload.request_id, payload.action)
		await self.finish(sid, result)
