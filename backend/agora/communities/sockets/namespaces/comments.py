"""Comment events."""

from __future__ import annotations

from agora.communities.domain.comments_service import CommentsService
from agora.communities.schemas import dto
from agora.communities.sockets.namespaces.base import Actor, HandlerGroup, Payload


class CommentHandlers(HandlerGroup):
	events = {
		"new-comment": "new_comment",
		"update-comment": "update_comment",
		"delete-comment": "delete_comment",
	}

	def __init__(self, gateway, service: CommentsService | None = None) -> None:
		super().__init__(gateway)
		self.service = service or CommentsService()

	async def new_comment(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.NewCommentPayload, data)
		await self.finish(sid, await self.service.create(actor, payload.post_id, payload.content))

	async def update_comment(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.UpdateCommentPayload, data)
		await self.finish(sid, await self.service.update(actor, payload.comment_id, payload.content))

	async def delete_comment(self, sid: str, actor: Actor, data: Payload) -> None:
		payload = dto.parse(dto.CommentRef, data)
		await self.finish(sid, await self.service.delete(actor, payload.comment_id))
