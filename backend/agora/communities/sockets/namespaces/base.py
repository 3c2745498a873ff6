"""Shared pieces for the gateway's event handler groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional

from agora.communities.domain.effects import ServiceResult
from agora.infra.auth import AuthenticatedUser

if TYPE_CHECKING:
	from agora.communities.sockets.namespaces.gateway import GatewayNamespace


class HandlerGroup:
	"""A set of related socket events routed to methods of this object.

	Subclasses declare ``events = {"event-name": "method_name"}``; each method is
	called as ``method(sid, actor, data)``.
	"""

	events: ClassVar[Dict[str, str]] = {}

	def __init__(self, gateway: "GatewayNamespace") -> None:
		self.gateway = gateway

	async def finish(self, sid: str, result: ServiceResult, *, event: str = "success-message") -> None:
		"""Run the result's effects, then acknowledge the caller."""
		await self.gateway.apply(sid, result)
		await self.gateway.reply(sid, result, event=event)


Actor = Optional[AuthenticatedUser]
Payload = Any
