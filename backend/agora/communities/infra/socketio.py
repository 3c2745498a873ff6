"""Factory helpers for the gateway Socket.IO namespace."""

from __future__ import annotations

from typing import Optional

import socketio

from agora.communities.sockets.namespaces.gateway import GatewayNamespace

_gateway: Optional[GatewayNamespace] = None


def register(server: socketio.AsyncServer, namespace: GatewayNamespace | None = None) -> GatewayNamespace:
	"""Register the gateway namespace on the Socket.IO server."""
	global _gateway
	gateway = namespace or GatewayNamespace()
	server.register_namespace(gateway)
	_gateway = gateway
	return gateway


def get_gateway() -> Optional[GatewayNamespace]:
	return _gateway
