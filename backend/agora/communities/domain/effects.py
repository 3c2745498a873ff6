"""Side effects returned by services and carried out by the gateway.

Services describe what should happen after their primary write; they never touch
the transport themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel


@dataclass(slots=True)
class WriteAudit:
	"""Append an audit entry and, when `broadcast` is set, fan it out to the community room."""

	community_id: int
	actor_id: int
	target_id: int
	action: str
	visibility: str = "public"
	broadcast: bool = True
	exclude_origin: bool = False


@dataclass(slots=True)
class SendNotification:
	"""Persist a notification and deliver it to the recipient's personal room."""

	user_id: int
	kind: str
	context: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Broadcast:
	room: str
	event: str
	payload: Any
	exclude_origin: bool = False


@dataclass(slots=True)
class LeaveRoom:
	"""Remove the originating connection from a room."""

	room: str


Effect = Union[WriteAudit, SendNotification, Broadcast, LeaveRoom]


@dataclass(slots=True)
class ServiceResult:
	message: Optional[str] = None
	data: Any = None
	effects: list[Effect] = field(default_factory=list)


def dump(value: Any) -> Any:
	"""Render models (or lists of them) into JSON-friendly payloads."""
	if isinstance(value, BaseModel):
		return value.model_dump(mode="json")
	if isinstance(value, (list, tuple)):
		return [dump(item) for item in value]
	if isinstance(value, dict):
		return {key: dump(item) for key, item in value.items()}
	return value
