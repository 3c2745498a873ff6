"""Live connection tracking: user id -> set of Socket.IO session ids.

Only the room manager talks to a session store. The in-memory store is enough for a
single process; the Redis store shares the map between workers.
"""

from __future__ import annotations

import abc
import logging
from typing import Dict, Set

from agora.infra.redis import redis_client
from agora.obs import metrics as obs_metrics
from agora.settings import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "sessions:user:"


class SessionStore(abc.ABC):
	@abc.abstractmethod
	async def track(self, user_id: int, sid: str) -> None: ...

	@abc.abstractmethod
	async def untrack(self, user_id: int, sid: str) -> None:
		"""Drop a connection; the user entry disappears with its last connection."""

	@abc.abstractmethod
	async def untrack_everywhere(self, sid: str) -> None:
		"""Remove a connection whose owner is unknown by scanning every tracked user."""

	@abc.abstractmethod
	async def connections_for(self, user_id: int) -> Set[str]: ...

	async def is_connected(self, user_id: int) -> bool:
		return await self.connection_count(user_id) > 0

	async def connection_count(self, user_id: int) -> int:
		return len(await self.connections_for(user_id))


class InMemorySessionStore(SessionStore):
	def __init__(self) -> None:
		self._connections: Dict[int, Set[str]] = {}

	async def track(self, user_id: int, sid: str) -> None:
		self._connections.setdefault(user_id, set()).add(sid)
		obs_metrics.tracked_users(len(self._connections))

	async def untrack(self, user_id: int, sid: str) -> None:
		sids = self._connections.get(user_id)
		if sids is None:
			return
		sids.discard(sid)
		if not sids:
			del self._connections[user_id]
		obs_metrics.tracked_users(len(self._connections))

	async def untrack_everywhere(self, sid: str) -> None:
		for user_id in list(self._connections):
			await self.untrack(user_id, sid)

	async def connections_for(self, user_id: int) -> Set[str]:
		return set(self._connections.get(user_id, ()))

	def tracked_users(self) -> Set[int]:
		return set(self._connections)


class RedisSessionStore(SessionStore):
	def __init__(self, client=None) -> None:
		self.redis = client if client is not None else redis_client

	@staticmethod
	def key(user_id: int) -> str:
		return f"{KEY_PREFIX}{user_id}"

	async def track(self, user_id: int, sid: str) -> None:
		await self.redis.sadd(self.key(user_id), sid)

	async def untrack(self, user_id: int, sid: str) -> None:
		key = self.key(user_id)
		await self.redis.srem(key, sid)
		# Redis drops empty sets on its own; the explicit check keeps fakes honest
		if not await self.redis.scard(key):
			await self.redis.delete(key)

	async def untrack_everywhere(self, sid: str) -> None:
		async for key in self.redis.scan_iter(match=f"{KEY_PREFIX}*"):
			if await self.redis.srem(key, sid):
				if not await self.redis.scard(key):
					await self.redis.delete(key)

	async def connections_for(self, user_id: int) -> Set[str]:
		members = await self.redis.smembers(self.key(user_id)) or set()
		return {member.decode() if isinstance(member, bytes) else str(member) for member in members}

	async def connection_count(self, user_id: int) -> int:
		return int(await self.redis.scard(self.key(user_id)) or 0)


def build_session_store() -> SessionStore:
	if settings.session_store == "redis":
		logger.info("using redis session store")
		return RedisSessionStore()
	return InMemorySessionStore()
