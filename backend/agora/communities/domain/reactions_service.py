"""Reactions (likes) on posts."""

from __future__ import annotations

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import SendNotification, ServiceResult, dump
from agora.communities.domain.exceptions import NotFoundError
from agora.infra.auth import AuthenticatedUser


class ReactionsService:
	def __init__(self, *, repository: repo_module.PostsRepository | None = None) -> None:
		self.repo = repository or repo_module.PostsRepository()

	async def _own_reaction(self, actor_id: int, like_id: int) -> models.Reaction:
		reaction = await self.repo.get_reaction(like_id)
		if reaction is None or reaction.user_id != actor_id:
			raise NotFoundError("Like not found")
		return reaction

	def _notify_author(self, actor: AuthenticatedUser, post: models.Post | None) -> list:
		if post is None or post.user_id == actor.id:
			return []
		return [SendNotification(user_id=post.user_id, kind="like", context={"actor": actor.name or f"User {actor.id}"})]

	async def react(self, actor: AuthenticatedUser | None, post_id: int, reaction: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		post = await self.repo.get_post(post_id)
		if post is None or post.deleted_at is not None:
			raise NotFoundError("Post not found")
		created = await self.repo.create_reaction(post.id, actor_id, reaction)
		return ServiceResult(
			message="Reaction added successfully",
			data=dump(created),
			effects=self._notify_author(actor, post),
		)

	async def change(self, actor: AuthenticatedUser | None, like_id: int, reaction: str) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		existing = await self._own_reaction(actor_id, like_id)
		updated = await self.repo.update_reaction(existing.id, reaction)
		post = await self.repo.get_post(existing.post_id)
		return ServiceResult(
			message="Reaction updated successfully",
			data=dump(updated),
			effects=self._notify_author(actor, post),
		)

	async def remove(self, actor: AuthenticatedUser | None, like_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		existing = await self._own_reaction(actor_id, like_id)
		await self.repo.delete_reaction(existing.id)
		return ServiceResult(message="Reaction removed successfully", data=dump(existing))
