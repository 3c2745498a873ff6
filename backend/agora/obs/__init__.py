"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from agora.obs import logging as obs_logging
from agora.settings import settings

_initialised = False


def init(app: FastAPI) -> None:
	global _initialised
	if _initialised:
		return
	if not settings.obs_enabled:
		return
	obs_logging.configure_logging()
	app.mount("/metrics", make_asgi_app())
	_initialised = True


__all__ = ["init"]
