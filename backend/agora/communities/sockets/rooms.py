"""Room membership for connections on the gateway namespace."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Set

import socketio

from agora.communities.domain.exceptions import InvalidStateError, UnauthenticatedError, ValidationError
from agora.communities.domain.rooms import admin_room, community_room, user_room
from agora.communities.sockets.session_store import SessionStore
from agora.infra.auth import AuthenticatedUser

logger = logging.getLogger(__name__)


class RoomManager:
	"""Tracks the actor and joined rooms of every connection.

	Entering a room the connection already holds is a no-op, so repeated
	`join-community` or `register` calls never double up.
	"""

	def __init__(self, namespace: socketio.AsyncNamespace, store: SessionStore) -> None:
		self.namespace = namespace
		self.store = store
		self._actors: Dict[str, AuthenticatedUser] = {}
		self._rooms: Dict[str, Set[str]] = {}

	def bind(self, sid: str, actor: AuthenticatedUser) -> None:
		self._actors[sid] = actor

	def actor(self, sid: str) -> Optional[AuthenticatedUser]:
		return self._actors.get(sid)

	def rooms_of(self, sid: str) -> Set[str]:
		return set(self._rooms.get(sid, ()))

	def _require_actor(self, sid: str) -> AuthenticatedUser:
		actor = self._actors.get(sid)
		if actor is None:
			raise UnauthenticatedError("Unauthorized")
		return actor

	async def enter(self, sid: str, room: str) -> bool:
		joined = self._rooms.setdefault(sid, set())
		if room in joined:
			return False
		await self.namespace.enter_room(sid, room)
		joined.add(room)
		return True

	async def leave(self, sid: str, room: str) -> bool:
		joined = self._rooms.get(sid)
		if not joined or room not in joined:
			return False
		await self.namespace.leave_room(sid, room)
		joined.discard(room)
		return True

	async def join_personal_room(self, sid: str) -> str:
		actor = self._require_actor(sid)
		room = user_room(actor.id)
		await self.enter(sid, room)
		await self.store.track(actor.id, sid)
		return room

	async def join_community_room(self, sid: str, community_id: int) -> str:
		self._require_actor(sid)
		room = community_room(community_id)
		await self.enter(sid, room)
		return room

	async def register(self, sid: str, claimed_user_id: int) -> None:
		actor = self._require_actor(sid)
		if actor.id != claimed_user_id:
			raise InvalidStateError("Invalid register")
		await self.store.track(actor.id, sid)

	def _admin_room(self, community_id: int, area: str) -> str:
		try:
			return admin_room(community_id, area)
		except ValueError as exc:
			raise ValidationError([{"field": "area", "message": "Unknown admin area"}]) from exc

	async def join_admin_room(self, sid: str, community_id: int, area: str) -> str:
		self._require_actor(sid)
		room = self._admin_room(community_id, area)
		await self.enter(sid, room)
		return room

	async def leave_admin_room(self, sid: str, community_id: int, area: str) -> str:
		self._require_actor(sid)
		room = self._admin_room(community_id, area)
		await self.leave(sid, room)
		return room

	async def disconnect(self, sid: str) -> None:
		actor = self._actors.pop(sid, None)
		self._rooms.pop(sid, None)
		if actor is not None:
			await self.store.untrack(actor.id, sid)
			return
		logger.debug("disconnect without actor, scanning session map", extra={"sid": sid})
		await self.store.untrack_everywhere(sid)
