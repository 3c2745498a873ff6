"""Socket.IO gateway namespace: handshake auth, event routing, error translation and effects."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

import socketio
from jwt import InvalidTokenError
from socketio import exceptions as sio_exceptions

from agora.communities.domain import repo as repo_module
from agora.communities.domain.admins_service import AdminsService
from agora.communities.domain.comments_service import CommentsService
from agora.communities.domain.community_messages_service import CommunityMessagesService
from agora.communities.domain.effects import Broadcast, Effect, LeaveRoom, SendNotification, ServiceResult, WriteAudit, dump
from agora.communities.domain.exceptions import CommunityError
from agora.communities.domain.membership_service import MembershipService
from agora.communities.domain.notifications import NotificationService
from agora.communities.domain.posts_service import PostsService
from agora.communities.domain.private_messages_service import PrivateMessagesService
from agora.communities.domain.reactions_service import ReactionsService
from agora.communities.domain.rooms import community_room, user_room
from agora.communities.sockets.namespaces.admins import AdminHandlers
from agora.communities.sockets.namespaces.base import HandlerGroup
from agora.communities.sockets.namespaces.comments import CommentHandlers
from agora.communities.sockets.namespaces.community_messages import CommunityMessageHandlers
from agora.communities.sockets.namespaces.membership import MembershipHandlers
from agora.communities.sockets.namespaces.posts import PostHandlers
from agora.communities.sockets.namespaces.private_messages import PrivateMessageHandlers
from agora.communities.sockets.namespaces.reactions import ReactionHandlers
from agora.communities.sockets.namespaces.rooms import RoomHandlers
from agora.communities.sockets.rooms import RoomManager
from agora.communities.sockets.session_store import SessionStore, build_session_store
from agora.infra.auth import AuthenticatedUser, resolve_socket_user
from agora.obs import logging as obs_logging
from agora.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

INTERNAL_ERROR = {"status": 500, "code": "internal_error", "message": "Something went wrong"}

Handler = Callable[[str, Optional[AuthenticatedUser], Any], Awaitable[None]]


class GatewayNamespace(socketio.AsyncNamespace):
	"""The single `/` namespace every client connects to."""

	def __init__(
		self,
		*,
		session_store: SessionStore | None = None,
		communities: repo_module.CommunitiesRepository | None = None,
		notifications: NotificationService | None = None,
		membership: MembershipService | None = None,
		admins: AdminsService | None = None,
		community_messages: CommunityMessagesService | None = None,
		private_messages: PrivateMessagesService | None = None,
		posts: PostsService | None = None,
		comments: CommentsService | None = None,
		reactions: ReactionsService | None = None,
	) -> None:
		super().__init__("/")
		self.rooms = RoomManager(self, session_store or build_session_store())
		self.communities = communities or repo_module.CommunitiesRepository()
		self.notifications = notifications or NotificationService()
		self._handlers: Dict[str, Handler] = {}
		self.register_groups(
			[
				RoomHandlers(self),
				MembershipHandlers(self, membership or MembershipService(repository=self.communities)),
				AdminHandlers(self, admins or AdminsService(repository=self.communities)),
				CommunityMessageHandlers(
					self,
					community_messages or CommunityMessagesService(communities=self.communities),
				),
				PrivateMessageHandlers(self, private_messages or PrivateMessagesService(users=self.communities)),
				PostHandlers(self, posts or PostsService()),
				CommentHandlers(self, comments or CommentsService()),
				ReactionHandlers(self, reactions or ReactionsService()),
			]
		)

	def register_groups(self, groups: Iterable[HandlerGroup]) -> None:
		for group in groups:
			for event, method_name in group.events.items():
				if event in self._handlers:
					raise ValueError(f"duplicate socket event: {event}")
				self._handlers[event] = getattr(group, method_name)

	@property
	def routed_events(self) -> set[str]:
		return set(self._handlers)

	# --- Connection lifecycle ----------------------------------------------

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		try:
			user = resolve_socket_user(environ, auth)
		except InvalidTokenError as exc:
			obs_metrics.socket_disconnected(self.namespace)
			obs_metrics.socket_auth_rejected(str(exc) or "invalid_token")
			logger.info("socket handshake refused", extra={"sid": sid, "reason": str(exc)})
			raise sio_exceptions.ConnectionRefusedError("unauthorized") from exc
		self.rooms.bind(sid, user)
		await self.rooms.join_personal_room(sid)
		logger.info("socket connected", extra={"sid": sid, "user_id": user.id})

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		await self.rooms.disconnect(sid)
		logger.info("socket disconnected", extra={"sid": sid, "reason": str(reason) if reason else None})

	# --- Event routing ------------------------------------------------------

	async def trigger_event(self, event: str, *args):
		handler = self._handlers.get(event)
		if handler is None:
			return await super().trigger_event(event, *args)
		sid = args[0]
		data = args[1] if len(args) > 1 else None
		await self.dispatch(event, sid, handler, data)
		return None

	async def dispatch(self, event: str, sid: str, handler: Handler, data: Any) -> None:
		"""Run a handler, translating every failure into one error-message to the caller."""
		actor = self.rooms.actor(sid)
		tokens = obs_logging.bind_context(
			sid=sid,
			event=event,
			user_id=str(actor.id) if actor is not None else None,
		)
		obs_metrics.socket_event(self.namespace, event)
		try:
			await handler(sid, actor, data)
		except CommunityError as exc:
			obs_metrics.gateway_error(event, exc.code)
			logger.info("socket event rejected", extra={"status": exc.status_code, "reason": exc.detail})
			await self.send(sid, "error-message", exc.to_payload())
		except Exception:
			obs_metrics.gateway_error(event, "internal_error")
			logger.exception("socket event failed")
			await self.send(sid, "error-message", dict(INTERNAL_ERROR))
		finally:
			obs_logging.reset_context(tokens)

	# --- Emission -----------------------------------------------------------

	async def send(self, sid: str, event: str, payload: Any) -> None:
		await self.emit(event, payload, room=sid)

	async def broadcast(self, room: str, event: str, payload: Any, *, skip_sid: Optional[str] = None) -> None:
		obs_metrics.socket_event(self.namespace, event)
		await self.emit(event, payload, room=room, skip_sid=skip_sid)

	async def reply(self, sid: str, result: ServiceResult, *, event: str = "success-message") -> None:
		if event == "success-message":
			payload = {"status": "success", "message": result.message, "data": result.data}
		else:
			payload = result.data
		await self.send(sid, event, payload)

	async def apply(self, sid: str, result: ServiceResult) -> None:
		"""Carry out secondary effects after the primary write; failures are logged and skipped."""
		for effect in result.effects:
			try:
				await self._apply_one(sid, effect)
			except Exception:
				kind = type(effect).__name__
				obs_metrics.effect_failed(kind)
				logger.exception("side effect failed", extra={"effect": kind})

	async def _apply_one(self, sid: str, effect: Effect) -> None:
		if isinstance(effect, WriteAudit):
			entry = await self.communities.create_audit(
				community_id=effect.community_id,
				actor_id=effect.actor_id,
				target_id=effect.target_id,
				action=effect.action,
				visibility=effect.visibility,
			)
			if effect.broadcast:
				await self.broadcast(
					community_room(effect.community_id),
					"auditlogs:new",
					dump(entry),
					skip_sid=sid if effect.exclude_origin else None,
				)
		elif isinstance(effect, SendNotification):
			notification = await self.notifications.create(effect.user_id, effect.kind, **effect.context)
			await self.broadcast(user_room(effect.user_id), "notification:new", dump(notification))
		elif isinstance(effect, Broadcast):
			await self.broadcast(
				effect.room,
				effect.event,
				effect.payload,
				skip_sid=sid if effect.exclude_origin else None,
			)
		elif isinstance(effect, LeaveRoom):
			await self.rooms.leave(sid, effect.room)
		else:
			raise TypeError(f"unsupported effect: {effect!r}")
