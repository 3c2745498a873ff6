"""Central registry for Prometheus metrics used across the gateway."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

SOCKET_CLIENTS = Gauge(
	"agora_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"agora_socketio_events_total",
	"Socket.IO events handled or emitted per namespace",
	["namespace", "event"],
)

SOCKET_AUTH_REJECTS = Counter(
	"agora_socketio_auth_rejects_total",
	"Socket.IO handshakes refused",
	["reason"],
)

GATEWAY_ERRORS = Counter(
	"agora_gateway_errors_total",
	"Errors translated back to clients by the gateway",
	["event", "kind"],
)

MEMBERSHIP_TRANSITIONS = Counter(
	"agora_membership_transitions_total",
	"Membership state machine outcomes",
	["outcome"],
)

EFFECT_FAILURES = Counter(
	"agora_effect_failures_total",
	"Secondary effects that failed after the primary write",
	["kind"],
)

TRACKED_USERS = Gauge(
	"agora_sessions_tracked_users",
	"Users with at least one live connection in this process",
)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_auth_rejected(reason: str) -> None:
	SOCKET_AUTH_REJECTS.labels(reason=reason).inc()


def gateway_error(event: str, kind: str) -> None:
	GATEWAY_ERRORS.labels(event=event, kind=kind).inc()


def membership_transition(outcome: str) -> None:
	MEMBERSHIP_TRANSITIONS.labels(outcome=outcome).inc()


def effect_failed(kind: str) -> None:
	EFFECT_FAILURES.labels(kind=kind).inc()


def tracked_users(count: int) -> None:
	TRACKED_USERS.set(float(count))
