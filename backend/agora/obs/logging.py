"""Structured JSON logging with per-event socket context."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from agora.settings import settings

_CONTEXT: Dict[str, ContextVar[Optional[str]]] = {
	"sid": ContextVar("obs_sid", default=None),
	"event": ContextVar("obs_event", default=None),
	"user_id": ContextVar("obs_user_id", default=None),
}

_SENSITIVE_KEYWORDS = ("token", "secret", "authorization", "password", "email", "content")

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {"message", "taskName"}


def bind_context(
	*,
	sid: Optional[str] = None,
	event: Optional[str] = None,
	user_id: Optional[str] = None,
) -> Dict[str, Token]:
	"""Bind socket fields for the current handler invocation and return reset tokens."""
	values = {"sid": sid, "event": event, "user_id": user_id}
	return {key: _CONTEXT[key].set(value) for key, value in values.items() if value is not None}


def reset_context(tokens: Dict[str, Token]) -> None:
	for key, token in tokens.items():
		_CONTEXT[key].reset(token)


def _sanitize(key: str, value: Any) -> Any:
	if any(keyword in key.lower() for keyword in _SENSITIVE_KEYWORDS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_STRING_LENGTH:
		return f"{value[:_MAX_STRING_LENGTH]}…"
	if isinstance(value, dict):
		items = list(value.items())
		result = {str(k): _sanitize(str(k), v) for k, v in items[:_MAX_COLLECTION_ITEMS]}
		if len(items) > _MAX_COLLECTION_ITEMS:
			result["…"] = f"+{len(items) - _MAX_COLLECTION_ITEMS} keys"
		return result
	if isinstance(value, (list, tuple, set)):
		items = [_sanitize(key, item) for item in list(value)[:_MAX_COLLECTION_ITEMS]]
		if len(value) > _MAX_COLLECTION_ITEMS:
			items.append("…")
		return items
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line: core fields, bound socket context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, object] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for key, var in _CONTEXT.items():
			value = var.get()
			if value:
				payload[key] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS and value is not None:
				payload[key] = _sanitize(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs, keep warnings/errors."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> None:
	"""Route the root logger through the JSON formatter and sampling filter."""
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
