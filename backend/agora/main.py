"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agora.communities.infra import socketio as communities_socketio
from agora.infra import postgres
from agora.obs import init as obs_init
from agora.settings import settings

DEV_ORIGINS = [
	"http://localhost:3000",
	"http://127.0.0.1:3000",
	"http://localhost:5173",
	"http://127.0.0.1:5173",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(
	title="Agora Realtime Gateway",
	lifespan=lifespan,
	docs_url=None if settings.is_prod() else "/docs",
	redoc_url=None,
)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = list(DEV_ORIGINS) if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True. Replace '*' with explicit origins.
if "*" in allow_origins:
	allow_origins = list(DEV_ORIGINS) if settings.is_dev() else [origin for origin in allow_origins if origin != "*"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)


@app.get("/health/live")
async def live() -> dict:
	return {"status": "ok", "service": settings.service_name}


# Use the same allowed origins for Socket.IO as for the REST API
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
gateway = communities_socketio.register(sio)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)
