from unittest.mock import AsyncMock

import pytest
import socketio
from socketio import exceptions as sio_exceptions

from agora.communities.domain.comments_service import CommentsService
from agora.communities.domain.community_messages_service import CommunityMessagesService
from agora.communities.domain.membership_service import MembershipService
from agora.communities.domain.notifications import NotificationService
from agora.communities.domain.posts_service import PostsService
from agora.communities.domain.private_messages_service import PrivateMessagesService
from agora.communities.domain.reactions_service import ReactionsService
from agora.communities.infra import socketio as communities_socketio
from agora.communities.sockets.namespaces.gateway import GatewayNamespace
from agora.communities.sockets.session_store import InMemorySessionStore
from agora.infra.jwt import encode_access
from agora.settings import settings


def _scope_with_authorization(token: str) -> dict:
	return {
		"headers": [(b"authorization", f"Bearer {token}".encode())],
	}


def _environ(user_id: int, **claims) -> dict:
	return {"asgi.scope": _scope_with_authorization(encode_access({"id": user_id, **claims}))}


def _emitted(namespace, event: str) -> list:
	return [call for call in namespace.emit.await_args_list if call.args[0] == event]


@pytest.fixture
def store():
	return InMemorySessionStore()


@pytest.fixture
def gateway(store, communities_repo, messages_repo, posts_repo, notifications_repo):
	def build(**overrides) -> GatewayNamespace:
		options = dict(
			session_store=store,
			communities=communities_repo,
			notifications=NotificationService(notifications_repo),
			community_messages=CommunityMessagesService(repository=messages_repo, communities=communities_repo),
			private_messages=PrivateMessagesService(repository=messages_repo, users=communities_repo),
			posts=PostsService(repository=posts_repo),
			comments=CommentsService(repository=posts_repo),
			reactions=ReactionsService(repository=posts_repo),
		)
		options.update(overrides)
		server = socketio.AsyncServer(async_mode="asgi")
		namespace = communities_socketio.register(server, GatewayNamespace(**options))
		namespace.emit = AsyncMock()
		namespace.enter_room = AsyncMock()
		namespace.leave_room = AsyncMock()
		return namespace

	return build


@pytest.mark.asyncio
async def test_connect_requires_token(gateway):
	namespace = gateway()

	with pytest.raises(sio_exceptions.ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", {"asgi.scope": {"headers": []}})
	assert namespace.rooms.actor("sid-1") is None


@pytest.mark.asyncio
async def test_connect_rejects_bad_signature(gateway):
	namespace = gateway()

	with pytest.raises(sio_exceptions.ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", {"asgi.scope": _scope_with_authorization("not-a-jwt")})


@pytest.mark.asyncio
async def test_connect_joins_personal_room(gateway, store):
	namespace = gateway()

	await namespace.trigger_event("connect", "sid-1", _environ(7, name="Ada"))

	actor = namespace.rooms.actor("sid-1")
	assert actor.id == 7 and actor.name == "Ada"
	namespace.enter_room.assert_awaited_once_with("sid-1", "user:7")
	assert await store.connections_for(7) == {"sid-1"}


@pytest.mark.asyncio
async def test_connect_accepts_token_from_auth_payload(gateway):
	namespace = gateway()
	token = encode_access({"sub": "12"})

	await namespace.trigger_event("connect", "sid-1", {"asgi.scope": {"headers": []}}, {"token": token})

	assert namespace.rooms.actor("sid-1").id == 12


@pytest.mark.asyncio
async def test_dev_user_id_fallback_only_in_development(gateway):
	namespace = gateway()
	environ = {"asgi.scope": {"headers": []}}

	with pytest.raises(sio_exceptions.ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", environ, {"userId": 9})

	settings.environment = "development"
	await namespace.trigger_event("connect", "sid-2", environ, {"userId": 9})
	assert namespace.rooms.actor("sid-2").id == 9


@pytest.mark.asyncio
async def test_join_community_twice_enters_room_once(gateway):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("join-community", "sid-1", {"communityId": 10})
	await namespace.trigger_event("join-community", "sid-1", 10)

	community_joins = [call for call in namespace.enter_room.await_args_list if call.args[1] == "community:10"]
	assert len(community_joins) == 1
	assert "community:10" in namespace.rooms.rooms_of("sid-1")


@pytest.mark.asyncio
async def test_register_with_mismatched_id_is_rejected(gateway):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("register", "sid-1", {"userId": 8})

	(call,) = _emitted(namespace, "error-message")
	assert call.args[1] == {"status": 400, "code": "invalid_state", "message": "Invalid register"}
	assert call.kwargs["room"] == "sid-1"


@pytest.mark.asyncio
async def test_register_matching_id_tracks_again(gateway, store):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))
	await store.untrack(7, "sid-1")

	await namespace.trigger_event("register", "sid-1", 7)

	assert await store.connections_for(7) == {"sid-1"}
	assert _emitted(namespace, "error-message") == []


@pytest.mark.asyncio
async def test_admin_room_join_and_leave(gateway):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("join-admin-room", "sid-1", {"communityId": 10, "area": "users"})
	await namespace.trigger_event("leave-admin-room", "sid-1", {"communityId": 10, "area": "users"})

	(joined,) = _emitted(namespace, "joined-room")
	assert joined.args[1] == {"room": "community-admin:10:users"}
	(left,) = _emitted(namespace, "left-room")
	assert left.args[1] == {"room": "community-admin:10:users"}
	namespace.leave_room.assert_awaited_once_with("sid-1", "community-admin:10:users")


@pytest.mark.asyncio
async def test_admin_room_rejects_unknown_area(gateway):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("join-admin-room", "sid-1", {"communityId": 10, "area": "billing"})

	(call,) = _emitted(namespace, "error-message")
	payload = call.args[1]
	assert payload["status"] == 400
	assert payload["code"] == "validation_error"
	assert [error["field"] for error in payload["errors"]] == ["area"]


@pytest.mark.asyncio
async def test_event_without_handshake_identity_is_unauthenticated(gateway, communities_repo):
	communities_repo.add_community(10, owner=1)
	namespace = gateway()

	await namespace.trigger_event("add-member", "sid-ghost", {"communityId": 10})

	(call,) = _emitted(namespace, "error-message")
	assert call.args[1]["status"] == 401


@pytest.mark.asyncio
async def test_join_public_community_fans_out_effects(gateway, communities_repo, notifications_repo):
	communities_repo.add_community(10, owner=1, name="Readers")
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("add-member", "sid-1", {"communityId": 10})

	(audit,) = _emitted(namespace, "auditlogs:new")
	assert audit.kwargs["room"] == "community:10"
	assert audit.kwargs["skip_sid"] is None
	assert audit.args[1]["action"] == "join"
	(notification,) = _emitted(namespace, "notification:new")
	assert notification.kwargs["room"] == "user:7"
	assert notification.args[1]["message"] == "You joined the community Readers 🎉"
	(success,) = _emitted(namespace, "success-message")
	assert success.args[1]["status"] == "success"
	assert success.args[1]["message"] == "Added member successfully"
	assert success.kwargs["room"] == "sid-1"
	assert len(notifications_repo.rows) == 1


@pytest.mark.asyncio
async def test_leave_skips_origin_and_leaves_room(gateway, communities_repo):
	communities_repo.add_community(10, owner=1)
	communities_repo.add_member(7, 10)
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))
	await namespace.trigger_event("join-community", "sid-1", 10)

	await namespace.trigger_event("leave-member", "sid-1", {"communityId": 10})

	namespace.leave_room.assert_awaited_once_with("sid-1", "community:10")
	(audit,) = _emitted(namespace, "auditlogs:new")
	assert audit.kwargs["skip_sid"] == "sid-1"
	assert "community:10" not in namespace.rooms.rooms_of("sid-1")


@pytest.mark.asyncio
async def test_failed_effect_does_not_undo_primary_write(gateway, communities_repo):
	communities_repo.add_community(10, owner=1)
	communities_repo.fail_audit = True
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("add-member", "sid-1", {"communityId": 10})

	assert len(communities_repo.active_memberships(7, 10)) == 1
	assert _emitted(namespace, "auditlogs:new") == []
	assert len(_emitted(namespace, "notification:new")) == 1
	assert len(_emitted(namespace, "success-message")) == 1
	assert _emitted(namespace, "error-message") == []


@pytest.mark.asyncio
async def test_unexpected_failure_becomes_internal_error(gateway, communities_repo):
	membership = MembershipService(repository=communities_repo)
	membership.join = AsyncMock(side_effect=RuntimeError("database exploded"))
	namespace = gateway(membership=membership)
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("add-member", "sid-1", {"communityId": 10})

	(call,) = _emitted(namespace, "error-message")
	assert call.args[1] == {"status": 500, "code": "internal_error", "message": "Something went wrong"}
	assert call.kwargs["room"] == "sid-1"


@pytest.mark.asyncio
async def test_private_message_is_echoed_on_its_own_event(gateway, communities_repo):
	communities_repo.add_user(8, "Lin")
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("send-message", "sid-1", {"receiverId": 8, "content": "hi"})

	(call,) = _emitted(namespace, "send-message")
	assert call.args[1]["content"] == "hi"
	assert call.args[1]["receiver_id"] == 8
	assert call.kwargs["room"] == "sid-1"
	assert _emitted(namespace, "receive-message") == []


@pytest.mark.asyncio
async def test_community_message_reaches_room(gateway, communities_repo):
	communities_repo.add_community(10, owner=1)
	communities_repo.add_member(7, 10)
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event("send-community-message", "sid-1", {"communityId": 10, "content": "hello"})

	(call,) = _emitted(namespace, "receive-community-message")
	assert call.kwargs["room"] == "community:10"
	assert call.args[1]["content"] == "hello"


@pytest.mark.asyncio
async def test_new_post_broadcasts_snapshot(gateway, posts_repo):
	posts_repo.add_post(50, community_id=10, author=7)
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))

	await namespace.trigger_event(
		"new-post",
		"sid-1",
		{"communityId": 10, "post": {"id": 50, "content": "hello"}, "media": [], "mentions": []},
	)

	(call,) = _emitted(namespace, "new_post")
	assert call.kwargs["room"] == "community:10"
	assert call.args[1]["post"] == {"id": 50, "content": "hello"}


@pytest.mark.asyncio
async def test_disconnect_untracks_session(gateway, store):
	namespace = gateway()
	await namespace.trigger_event("connect", "sid-1", _environ(7))
	await namespace.trigger_event("connect", "sid-2", _environ(7))

	await namespace.trigger_event("disconnect", "sid-1")

	assert await store.connections_for(7) == {"sid-2"}
	assert namespace.rooms.actor("sid-1") is None


@pytest.mark.asyncio
async def test_disconnect_without_actor_scans_sessions(gateway, store):
	namespace = gateway()
	await store.track(3, "sid-orphan")

	await namespace.trigger_event("disconnect", "sid-orphan")

	assert await store.connections_for(3) == set()


def test_routed_events_cover_every_group(gateway):
	namespace = gateway()
	assert {
		"join-community",
		"register",
		"join-admin-room",
		"leave-admin-room",
		"add-member",
		"leave-member",
		"delete-member",
		"handle-request",
		"add-admin",
		"update-admin",
		"delete-admin",
		"send-community-message",
		"update-community-message",
		"delete-community-message",
		"send-message",
		"update-message",
		"delete-message",
		"new-post",
		"update-post",
		"delete-post",
		"new-comment",
		"update-comment",
		"delete-comment",
		"add-reaction",
		"update-reaction",
		"remove-reaction",
	} <= namespace.routed_events
	assert communities_socketio.get_gateway() is namespace
