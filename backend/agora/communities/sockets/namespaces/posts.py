"""Post announcement events."""

from __future__ import annotations

from agora.communities.domain.posts_service import PostsService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class PostHandlers(HandlerGroup):
	events = {
		"new-post": "new_post",
		"update-post": "update_post",
		"delete-post": "delete_post",
	}

	def __init__(self, gateway, service: PostsService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or PostsService()

	async def new_post(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.NewPostPayload, data)
		result = await self.service.announce(
			actor,
			payload.community_id,
			payload.post.id,
			payload.model_dump(mode="json", by_alias=True),
		)
		await self.finish(sid, result)

	async def update_post(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.UpdatePostPayload, data)
		await self.finish(sid, await self.service.update(actor, payload.post_id, payload.content))

	async def delete_post(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.PostRef, data)
		await self.finish(sid, await self.service.delete(actor, payload.post_id))
