"""Comments on posts."""

from __future__ import annotations

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import Broadcast, SendNotification, ServiceResult, dump
from agora.communities.domain.exceptions import NotFoundError
from agora.communities.domain.rooms import user_room
from agora.infra.auth import AuthenticatedUser


class CommentsService:
	def __init__(self, *, repository: repo_module.PostsRepository | None = None) -> None:
		self.repo = repository or repo_module.PostsRepository()

	async def _comment(self, comment_id: int) -> models.Comment:
		comment = await self.repo.get_comment(comment_id)
		if comment is None:
			raise NotFoundError("Comment not found")
		return comment

	async def create(self, actor: AuthenticatedUser | None, post_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		post = await self.repo.get_post(post_id)
		if post is None or post.deleted_at is not None:
			raise NotFoundError("Post not found")

		comment = await self.repo.create_comment(post.id, actor_id, content)
		payload = dump(comment)
		effects = []
		if post.user_id != actor_id:
			effects.append(
				SendNotification(user_id=post.user_id, kind="comment", context={"actor": actor.name or f"User {actor_id}"})
			)
			effects.append(Broadcast(room=user_room(post.user_id), event="new_comment", payload=payload))
		return ServiceResult(message="Comment added successfully", data=payload, effects=effects)

	async def update(self, actor: AuthenticatedUser | None, comment_id: int, content: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		comment = await self._comment(comment_id)
		policies.UPDATE_COMMENT.enforce(policies.AuthContext(actor_id=actor_id, owner_id=comment.user_id), any_of=True)
		updated = await self.repo.update_comment(comment.id, content)
		return ServiceResult(message="Update comment successfully", data=dump(updated))

	async def delete(self, actor: AuthenticatedUser | None, comment_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		comment = await self._comment(comment_id)
		policies.DELETE_COMMENT.enforce(policies.AuthContext(actor_id=actor_id, owner_id=comment.user_id), any_of=True)
		await self.repo.delete_comment(comment.id)
		return ServiceResult(message="Deleted comment successfully", data=dump(comment))
