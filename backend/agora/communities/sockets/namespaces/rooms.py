"""Room events: community rooms, admin areas and session re-registration."""

from __future__ import annotations

from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class RoomHandlers(HandlerGroup):
	events = {
		"join-community": "join_community",
		"register": "register",
		"join-admin-room": "join_admin_room",
		"leave-admin-room": "leave_admin_room",
	}

	async def join_community(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.CommunityRef, data)
		await self.gateway.rooms.join_community_room(sid, payload.community_id)

	async def register(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.RegisterPayload, data)
		await self.gateway.rooms.register(sid, payload.user_id)

	async def join_admin_room(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AdminRoomPayload, data)
		room = await self.gateway.rooms.join_admin_room(sid, payload.community_id, payload.area)
		await self.gateway.send(sid, "joined-room", {"room": room})

	async def leave_admin_room(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.AdminRoomPayload, data)
		room = await self.gateway.rooms.leave_admin_room(sid, payload.community_id, payload.area)
		await self.gateway.send(sid, "left-room", {"room": room})
