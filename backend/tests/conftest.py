import os
import sys
from datetime import datetime, timezone
from itertools import count
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("SESSION_STORE", "memory")

from agora.communities.domain import models  # noqa: E402
from agora.communities.domain.exceptions import InvalidStateError  # noqa: E402
from agora.settings import settings  # noqa: E402


def _now() -> datetime:
	return datetime.now(timezone.utc)


class FakeCommunitiesRepo:
	"""In-memory stand-in for CommunitiesRepository."""

	def __init__(self) -> None:
		self._ids = count(1)
		self.communities: dict[int, models.Community] = {}
		self.users: dict[int, models.User] = {}
		self.memberships: list[models.Membership] = []
		self.requests: dict[int, models.JoinRequest] = {}
		self.audits: list[models.AuditLogEntry] = []
		self.admins: dict[tuple[int, int], models.CommunityAdmin] = {}
		self.fail_audit = False

	# seeding helpers
	def add_user(self, user_id: int, name: str | None = None) -> models.User:
		user = models.User(id=user_id, name=name or f"user-{user_id}")
		self.users[user_id] = user
		return user

	def add_community(self, community_id: int, *, owner: int, privacy: str = "public", name: str = "Readers") -> models.Community:
		community = models.Community(id=community_id, name=name, privacy=privacy, created_by=owner)
		self.communities[community_id] = community
		return community

	def add_member(self, user_id: int, community_id: int, *, removed_by: int | None = None, removed: bool = False) -> models.Membership:
		membership = models.Membership(
			id=next(self._ids),
			user_id=user_id,
			community_id=community_id,
			created_at=_now(),
			removed_at=_now() if removed or removed_by is not None else None,
			removed_by=removed_by,
		)
		self.memberships.append(membership)
		return membership

	def add_request(self, user_id: int, community_id: int, status: str = "pending") -> models.JoinRequest:
		request = models.JoinRequest(
			id=next(self._ids),
			community_id=community_id,
			user_id=user_id,
			status=status,
			created_at=_now(),
		)
		self.requests[request.id] = request
		return request

	def add_admin(self, community_id: int, user_id: int, permissions: list[str]) -> models.CommunityAdmin:
		admin = models.CommunityAdmin(community_id=community_id, user_id=user_id, permissions=permissions)
		self.admins[(community_id, user_id)] = admin
		return admin

	def active_memberships(self, user_id: int, community_id: int) -> list[models.Membership]:
		return [
			m for m in self.memberships
			if m.user_id == user_id and m.community_id == community_id and m.removed_at is None
		]

	def pending_requests(self, user_id: int, community_id: int) -> list[models.JoinRequest]:
		return [
			r for r in self.requests.values()
			if r.user_id == user_id and r.community_id == community_id and r.status == "pending"
		]

	def _replace(self, updated: models.Membership) -> models.Membership:
		self.memberships = [updated if m.id == updated.id else m for m in self.memberships]
		return updated

	# repository interface
	async def get_community(self, community_id):
		return self.communities.get(community_id)

	async def get_user(self, user_id):
		return self.users.get(user_id)

	async def get_membership(self, user_id, community_id):
		rows = [m for m in self.memberships if m.user_id == user_id and m.community_id == community_id]
		if not rows:
			return None
		rows.sort(key=lambda m: (m.removed_at is None, m.id), reverse=True)
		return rows[0]

	async def create_membership(self, user_id, community_id):
		if self.active_memberships(user_id, community_id):
			raise InvalidStateError("You are already a member in this community")
		return self.add_member(user_id, community_id)

	async def reactivate_membership(self, membership_id):
		current = next(m for m in self.memberships if m.id == membership_id)
		return self._replace(current.model_copy(update={"removed_at": None, "removed_by": None}))

	async def remove_membership(self, membership_id, *, removed_by):
		current = next(m for m in self.memberships if m.id == membership_id)
		return self._replace(current.model_copy(update={"removed_at": _now(), "removed_by": removed_by}))

	async def get_pending_request(self, user_id, community_id):
		pending = self.pending_requests(user_id, community_id)
		return pending[0] if pending else None

	async def create_join_request(self, community_id, user_id):
		if self.pending_requests(user_id, community_id):
			raise InvalidStateError("You already have a pending request")
		return self.add_request(user_id, community_id)

	async def get_join_request(self, request_id):
		return self.requests.get(request_id)

	async def resolve_join_request(self, request, status, *, removed_membership_id=None):
		membership = None
		if status == "accepted":
			if removed_membership_id is not None:
				membership = await self.reactivate_membership(removed_membership_id)
			else:
				membership = await self.create_membership(request.user_id, request.community_id)
		self.requests.pop(request.id, None)
		return membership

	async def create_audit(self, *, community_id, actor_id, target_id, action, visibility="public"):
		if self.fail_audit:
			raise RuntimeError("audit store unavailable")
		entry = models.AuditLogEntry(
			id=next(self._ids),
			community_id=community_id,
			actor_id=actor_id,
			target_id=target_id,
			action=action,
			visibility=visibility,
			created_at=_now(),
		)
		self.audits.append(entry)
		return entry

	async def get_admin(self, community_id, user_id):
		return self.admins.get((community_id, user_id))

	async def create_admin(self, community_id, user_id, permissions):
		return self.add_admin(community_id, user_id, list(permissions))

	async def update_admin(self, community_id, user_id, permissions):
		return self.add_admin(community_id, user_id, list(permissions))

	async def delete_admin(self, community_id, user_id):
		self.admins.pop((community_id, user_id), None)


class FakeMessagesRepo:
	def __init__(self) -> None:
		self._ids = count(100)
		self.private: dict[int, models.PrivateMessage] = {}
		self.community: dict[int, models.CommunityMessage] = {}

	async def create_private(self, sender_id, receiver_id, content):
		message = models.PrivateMessage(
			id=next(self._ids), sender_id=sender_id, receiver_id=receiver_id, content=content, created_at=_now()
		)
		self.private[message.id] = message
		return message

	async def get_private(self, message_id):
		return self.private.get(message_id)

	async def update_private(self, message_id, content):
		updated = self.private[message_id].model_copy(update={"content": content, "is_edited": True, "updated_at": _now()})
		self.private[message_id] = updated
		return updated

	async def soft_delete_private(self, message_id):
		deleted = self.private[message_id].model_copy(update={"deleted_at": _now()})
		self.private[message_id] = deleted
		return deleted

	async def create_community_message(self, community_id, sender_id, content):
		message = models.CommunityMessage(
			id=next(self._ids), sender_id=sender_id, community_id=community_id, content=content, created_at=_now()
		)
		self.community[message.id] = message
		return message

	async def get_community_message(self, message_id):
		return self.community.get(message_id)

	async def update_community_message(self, message_id, content):
		updated = self.community[message_id].model_copy(update={"content": content, "is_edited": True, "updated_at": _now()})
		self.community[message_id] = updated
		return updated

	async def soft_delete_community_message(self, message_id):
		deleted = self.community[message_id].model_copy(update={"deleted_at": _now()})
		self.community[message_id] = deleted
		return deleted


class FakePostsRepo:
	def __init__(self) -> None:
		self._ids = count(500)
		self.posts: dict[int, models.Post] = {}
		self.comments: dict[int, models.Comment] = {}
		self.reactions: dict[int, models.Reaction] = {}

	def add_post(self, post_id: int, *, community_id: int, author: int, content: str = "hello") -> models.Post:
		post = models.Post(id=post_id, community_id=community_id, user_id=author, content=content, created_at=_now())
		self.posts[post_id] = post
		return post

	async def get_post(self, post_id):
		return self.posts.get(post_id)

	async def update_post(self, post_id, content):
		current = self.posts[post_id]
		updated = current.model_copy(update={"content": content if content is not None else current.content})
		self.posts[post_id] = updated
		return updated

	async def soft_delete_post(self, post_id):
		deleted = self.posts[post_id].model_copy(update={"deleted_at": _now()})
		self.posts[post_id] = deleted
		return deleted

	async def create_comment(self, post_id, user_id, content):
		comment = models.Comment(id=next(self._ids), post_id=post_id, user_id=user_id, content=content, created_at=_now())
		self.comments[comment.id] = comment
		return comment

	async def get_comment(self, comment_id):
		return self.comments.get(comment_id)

	async def update_comment(self, comment_id, content):
		updated = self.comments[comment_id].model_copy(update={"content": content})
		self.comments[comment_id] = updated
		return updated

	async def delete_comment(self, comment_id):
		self.comments.pop(comment_id, None)

	async def create_reaction(self, post_id, user_id, reaction):
		created = models.Reaction(id=next(self._ids), post_id=post_id, user_id=user_id, reaction=reaction)
		self.reactions[created.id] = created
		return created

	async def get_reaction(self, like_id):
		return self.reactions.get(like_id)

	async def update_reaction(self, like_id, reaction):
		updated = self.reactions[like_id].model_copy(update={"reaction": reaction})
		self.reactions[like_id] = updated
		return updated

	async def delete_reaction(self, like_id):
		self.reactions.pop(like_id, None)


class FakeNotificationsRepo:
	def __init__(self) -> None:
		self._ids = count(900)
		self.rows: list[models.Notification] = []

	async def create(self, *, user_id, message, kind):
		row = models.Notification(id=next(self._ids), user_id=user_id, message=message, type=kind, created_at=_now())
		self.rows.append(row)
		return row


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from agora.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Production-like defaults; individual tests opt into dev behaviour."""
	original_env = settings.environment
	original_fanout = settings.private_message_fanout
	settings.environment = "test"
	settings.private_message_fanout = False
	try:
		yield
	finally:
		settings.environment = original_env
		settings.private_message_fanout = original_fanout


@pytest.fixture
def communities_repo() -> FakeCommunitiesRepo:
	return FakeCommunitiesRepo()


@pytest.fixture
def messages_repo() -> FakeMessagesRepo:
	return FakeMessagesRepo()


@pytest.fixture
def posts_repo() -> FakePostsRepo:
	return FakePostsRepo()


@pytest.fixture
def notifications_repo() -> FakeNotificationsRepo:
	return FakeNotificationsRepo()

