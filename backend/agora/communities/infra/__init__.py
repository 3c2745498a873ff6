"""Infrastructure helpers scoped to the communities domain."""

from . import socketio  # noqa: F401

__all__ = [
	"socketio",
]
