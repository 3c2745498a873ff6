"""Async repository helpers for the communities domain."""

from __future__ import annotations

from typing import Optional, Sequence

import asyncpg

from agora.communities.domain import models
from agora.communities.domain.exceptions import InvalidStateError, NotFoundError
from agora.infra.postgres import get_pool
from agora.infra.soft_delete import soft_delete

_LIKE_COLUMNS = "id, post_id, user_id, reactions AS reaction, created_at"


class CommunitiesRepository:
	"""Communities, memberships, join requests, audit log and admin grants."""

	# --- Lookups -----------------------------------------------------------

	async def get_community(self, community_id: int) -> models.Community | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM communities WHERE id=$1", community_id)
		return models.Community.model_validate(dict(record)) if record else None

	async def get_user(self, user_id: int) -> models.User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT id, name FROM users WHERE id=$1", user_id)
		return models.User.model_validate(dict(record)) if record else None

	# --- Memberships -------------------------------------------------------

	async def get_membership(self, user_id: int, community_id: int) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT * FROM community_memberships
				WHERE user_id=$1 AND community_id=$2
				ORDER BY (removed_at IS NULL) DESC, id DESC
				LIMIT 1
				""",
				user_id,
				community_id,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	async def create_membership(self, user_id: int, community_id: int) -> models.Membership:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO community_memberships (user_id, community_id)
					VALUES ($1, $2)
					RETURNING *
					""",
					user_id,
					community_id,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise InvalidStateError("You are already a member in this community") from exc
		return models.Membership.model_validate(dict(record))

	async def reactivate_membership(self, membership_id: int) -> models.Membership:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE community_memberships
				SET removed_at = NULL, removed_by = NULL
				WHERE id=$1
				RETURNING *
				""",
				membership_id,
			)
		if record is None:
			raise NotFoundError("Membership no longer exists")
		return models.Membership.model_validate(dict(record))

	async def remove_membership(self, membership_id: int, *, removed_by: Optional[int]) -> models.Membership:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE community_memberships
				SET removed_at = NOW(), removed_by = $2
				WHERE id=$1 AND removed_at IS NULL
				RETURNING *
				""",
				membership_id,
				removed_by,
			)
		if record is None:
			raise InvalidStateError("Membership is no longer active")
		return models.Membership.model_validate(dict(record))

	# --- Join requests -----------------------------------------------------

	async def get_pending_request(self, user_id: int, community_id: int) -> models.JoinRequest | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT * FROM join_requests
				WHERE user_id=$1 AND community_id=$2 AND status='pending'
				""",
				user_id,
				community_id,
			)
		return models.JoinRequest.model_validate(dict(record)) if record else None

	async def create_join_request(self, community_id: int, user_id: int) -> models.JoinRequest:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO join_requests (community_id, user_id, status)
					VALUES ($1, $2, 'pending')
					RETURNING *
					""",
					community_id,
					user_id,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise InvalidStateError("You already have a pending request") from exc
		return models.JoinRequest.model_validate(dict(record))

	async def get_join_request(self, request_id: int) -> models.JoinRequest | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM join_requests WHERE id=$1", request_id)
		return models.JoinRequest.model_validate(dict(record)) if record else None

	async def resolve_join_request(
		self,
		request: models.JoinRequest,
		status: str,
		*,
		removed_membership_id: Optional[int] = None,
	) -> models.Membership | None:
		"""Record the decision, admit the user on accept, then drop the request row."""
		pool = await get_pool()
		membership = None
		async with pool.acquire() as conn:
			async with conn.transaction():
				updated = await conn.execute(
					"""
					UPDATE join_requests SET status=$3
					WHERE id=$1 AND community_id=$2 AND status='pending'
					""",
					request.id,
					request.community_id,
					status,
				)
				if updated.endswith(" 0"):
					raise InvalidStateError("This request has already been handled")
				if status == "accepted":
					if removed_membership_id is not None:
						record = await conn.fetchrow(
							"""
							UPDATE community_memberships
							SET removed_at = NULL, removed_by = NULL
							WHERE id=$1
							RETURNING *
							""",
							removed_membership_id,
						)
					else:
						try:
							record = await conn.fetchrow(
								"""
								INSERT INTO community_memberships (user_id, community_id)
								VALUES ($1, $2)
								RETURNING *
								""",
								request.user_id,
								request.community_id,
							)
						except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
							raise InvalidStateError("User is already a member of the community") from exc
					membership = models.Membership.model_validate(dict(record))
				await conn.execute("DELETE FROM join_requests WHERE id=$1", request.id)
		return membership

	# --- Audit log ---------------------------------------------------------

	async def create_audit(
		self,
		*,
		community_id: int,
		actor_id: int,
		target_id: int,
		action: str,
		visibility: str = "public",
	) -> models.AuditLogEntry:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO audit_logs (community_id, actor_id, target_id, action, visibility)
				VALUES ($1, $2, $3, $4, $5)
				RETURNING *
				""",
				community_id,
				actor_id,
				target_id,
				action,
				visibility,
			)
		return models.AuditLogEntry.model_validate(dict(record))

	# --- Admin grants ------------------------------------------------------

	async def get_admin(self, community_id: int, user_id: int) -> models.CommunityAdmin | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				SELECT community_id, user_id, permissions::text[] AS permissions, created_at
				FROM community_admins
				WHERE community_id=$1 AND user_id=$2
				""",
				community_id,
				user_id,
			)
		return models.CommunityAdmin.model_validate(dict(record)) if record else None

	async def create_admin(self, community_id: int, user_id: int, permissions: Sequence[str]) -> models.CommunityAdmin:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO community_admins (community_id, user_id, permissions)
					VALUES ($1, $2, $3::text[]::permissions[])
					RETURNING community_id, user_id, permissions::text[] AS permissions, created_at
					""",
					community_id,
					user_id,
					list(permissions),
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise InvalidStateError("User is already an admin") from exc
		return models.CommunityAdmin.model_validate(dict(record))

	async def update_admin(self, community_id: int, user_id: int, permissions: Sequence[str]) -> models.CommunityAdmin:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE community_admins SET permissions=$3::text[]::permissions[]
				WHERE community_id=$1 AND user_id=$2
				RETURNING community_id, user_id, permissions::text[] AS permissions, created_at
				""",
				community_id,
				user_id,
				list(permissions),
			)
		if record is None:
			raise InvalidStateError("This user is not an admin in this community")
		return models.CommunityAdmin.model_validate(dict(record))

	async def delete_admin(self, community_id: int, user_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"DELETE FROM community_admins WHERE community_id=$1 AND user_id=$2",
				community_id,
				user_id,
			)


class MessagesRepository:
	"""Private and community chat messages."""

	async def create_private(self, sender_id: int, receiver_id: int, content: str) -> models.PrivateMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO message_private (sender_id, receiver_id, content)
				VALUES ($1, $2, $3)
				RETURNING *
				""",
				sender_id,
				receiver_id,
				content,
			)
		return models.PrivateMessage.model_validate(dict(record))

	async def get_private(self, message_id: int) -> models.PrivateMessage | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM message_private WHERE id=$1", message_id)
		return models.PrivateMessage.model_validate(dict(record)) if record else None

	async def update_private(self, message_id: int, content: str) -> models.PrivateMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE message_private
				SET content=$2, is_edited=TRUE, updated_at=NOW()
				WHERE id=$1 AND deleted_at IS NULL
				RETURNING *
				""",
				message_id,
				content,
			)
		if record is None:
			raise InvalidStateError("Message can no longer be edited")
		return models.PrivateMessage.model_validate(dict(record))

	async def soft_delete_private(self, message_id: int) -> models.PrivateMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await soft_delete(conn, "message_private", "id", message_id)
		if record is None:
			raise InvalidStateError("Message is already deleted")
		return models.PrivateMessage.model_validate(dict(record))

	async def create_community_message(self, community_id: int, sender_id: int, content: str) -> models.CommunityMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO message_community (community_id, sender_id, content)
				VALUES ($1, $2, $3)
				RETURNING *
				""",
				community_id,
				sender_id,
				content,
			)
		return models.CommunityMessage.model_validate(dict(record))

	async def get_community_message(self, message_id: int) -> models.CommunityMessage | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM message_community WHERE id=$1", message_id)
		return models.CommunityMessage.model_validate(dict(record)) if record else None

	async def update_community_message(self, message_id: int, content: str) -> models.CommunityMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE message_community
				SET content=$2, is_edited=TRUE, updated_at=NOW()
				WHERE id=$1 AND deleted_at IS NULL
				RETURNING *
				""",
				message_id,
				content,
			)
		if record is None:
			raise InvalidStateError("Message can no longer be edited")
		return models.CommunityMessage.model_validate(dict(record))

	async def soft_delete_community_message(self, message_id: int) -> models.CommunityMessage:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await soft_delete(conn, "message_community", "id", message_id)
		if record is None:
			raise InvalidStateError("Message is already deleted")
		return models.CommunityMessage.model_validate(dict(record))


class PostsRepository:
	"""Posts together with their comments and reactions."""

	async def get_post(self, post_id: int) -> models.Post | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM posts WHERE id=$1", post_id)
		return models.Post.model_validate(dict(record)) if record else None

	async def update_post(self, post_id: int, content: Optional[str]) -> models.Post:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE posts SET content=COALESCE($2, content)
				WHERE id=$1 AND deleted_at IS NULL
				RETURNING *
				""",
				post_id,
				content,
			)
		if record is None:
			raise InvalidStateError("Post can no longer be edited")
		return models.Post.model_validate(dict(record))

	async def soft_delete_post(self, post_id: int) -> models.Post:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await soft_delete(conn, "posts", "id", post_id)
		if record is None:
			raise InvalidStateError("Post is already deleted")
		return models.Post.model_validate(dict(record))

	async def create_comment(self, post_id: int, user_id: int, content: str) -> models.Comment:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO comments (post_id, user_id, content)
				VALUES ($1, $2, $3)
				RETURNING *
				""",
				post_id,
				user_id,
				content,
			)
		return models.Comment.model_validate(dict(record))

	async def get_comment(self, comment_id: int) -> models.Comment | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM comments WHERE id=$1", comment_id)
		return models.Comment.model_validate(dict(record)) if record else None

	async def update_comment(self, comment_id: int, content: str) -> models.Comment:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE comments SET content=$2 WHERE id=$1 RETURNING *",
				comment_id,
				content,
			)
		if record is None:
			raise NotFoundError("Comment not found")
		return models.Comment.model_validate(dict(record))

	async def delete_comment(self, comment_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("DELETE FROM comments WHERE id=$1", comment_id)

	async def create_reaction(self, post_id: int, user_id: int, reaction: str) -> models.Reaction:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					f"""
					INSERT INTO likes (post_id, user_id, reactions)
					VALUES ($1, $2, $3)
					RETURNING {_LIKE_COLUMNS}
					""",
					post_id,
					user_id,
					reaction,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise InvalidStateError("You already reacted to this post") from exc
		return models.Reaction.model_validate(dict(record))

	async def get_reaction(self, like_id: int) -> models.Reaction | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"SELECT {_LIKE_COLUMNS} FROM likes WHERE id=$1", like_id)
		return models.Reaction.model_validate(dict(record)) if record else None

	async def update_reaction(self, like_id: int, reaction: str) -> models.Reaction:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				f"UPDATE likes SET reactions=$2 WHERE id=$1 RETURNING {_LIKE_COLUMNS}",
				like_id,
				reaction,
			)
		if record is None:
			raise NotFoundError("Like not found")
		return models.Reaction.model_validate(dict(record))

	async def delete_reaction(self, like_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("DELETE FROM likes WHERE id=$1", like_id)


class NotificationsRepository:
	async def create(self, *, user_id: int, message: str, kind: str) -> models.Notification:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO notification (user_id, message, type)
				VALUES ($1, $2, $3)
				RETURNING *
				""",
				user_id,
				message,
				kind,
			)
		return models.Notification.model_validate(dict(record))
