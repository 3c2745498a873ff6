"""Realtime announcements for posts created, edited or removed through the REST layer."""

from __future__ import annotations

from typing import Any, Optional

from agora.communities.domain import models, policies, repo as repo_module
from agora.communities.domain.effects import Broadcast, Effect, SendNotification, ServiceResult, dump
from agora.communities.domain.exceptions import InvalidStateError, NotFoundError
from agora.communities.domain.rooms import community_room
from agora.infra.auth import AuthenticatedUser


def _mentioned_users(payload: dict[str, Any], author_id: int) -> list[int]:
	seen: list[int] = []
	for mention in payload.get("mentions") or []:
		user_id = mention.get("userId") if isinstance(mention, dict) else None
		if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
			continue
		if user_id != author_id and user_id not in seen:
			seen.append(user_id)
	return seen


class PostsService:
	def __init__(self, *, repository: repo_module.PostsRepository | None = None) -> None:
		self.repo = repository or repo_module.PostsRepository()

	async def _post(self, post_id: int) -> models.Post:
		post = await self.repo.get_post(post_id)
		if post is None or post.deleted_at is not None:
			raise NotFoundError("Post not found")
		return post

	async def announce(
		self,
		actor: AuthenticatedUser | None,
		community_id: int,
		post_id: int,
		payload: dict[str, Any],
	) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		post = await self._post(post_id)
		policies.ANNOUNCE_POST.enforce(policies.AuthContext(actor_id=actor_id, owner_id=post.user_id), any_of=True)
		if post.community_id != community_id:
			raise InvalidStateError("Post does not belong to this community")
		effects: list[Effect] = [Broadcast(room=community_room(community_id), event="new_post", payload=payload)]
		for user_id in _mentioned_users(payload, actor_id):
			effects.append(
				SendNotification(user_id=user_id, kind="mention", context={"actor": actor.name or f"User {actor_id}"})
			)
		return ServiceResult(message="Post announced", data=dump(post), effects=effects)

	async def update(self, actor: AuthenticatedUser | None, post_id: int, content: Optional[str]) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		post = await self._post(post_id)
		policies.UPDATE_POST.enforce(policies.AuthContext(actor_id=actor_id, owner_id=post.user_id), any_of=True)

		updated = await self.repo.update_post(post.id, content)
		data = dump(updated)
		return ServiceResult(
			message="Post updated successfully",
			data=data,
			effects=[
				Broadcast(
					room=community_room(post.community_id),
					event="update_post",
					payload={"status": "success", "message": "Post updated successfully", "data": data},
				)
			],
		)

	async def delete(self, actor: AuthenticatedUser | None, post_id: int) -> ServiceResult:
		actor_id = policies.require_actor(actor)
		post = await self._post(post_id)
		policies.DELETE_POST.enforce(policies.AuthContext(actor_id=actor_id, owner_id=post.user_id), any_of=True)

		deleted = await self.repo.soft_delete_post(post.id)
		return ServiceResult(
			message="Post deleted successfully",
			data=dump(deleted),
			effects=[
				Broadcast(
					room=community_room(post.community_id),
					event="delete_post",
					payload={"status": "success", "message": "Post deleted successfully", "data": {"postId": post.id}},
				)
			],
		)
