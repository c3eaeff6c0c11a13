"""
Relay — a stateless Socket.IO fan-out server.

Every ``message`` event is forwarded to all *other* connected clients. The
relay never stores or inspects content beyond checking that it is a JSON
object, so it can carry whatever the clients agree on (encoded chat
records, shared activities, typing pings).
"""

import json
import logging
from typing import Any, Optional

import socketio
from aiohttp import web

logger = logging.getLogger("bearboo.relay")

SOCKETIO_PATH = "/ws/socket.io/"
WELCOME = "Connected to BearBooLetters relay"


class Relay:
    def __init__(self, sio: Optional[socketio.AsyncServer] = None):
        self.sio = sio or socketio.AsyncServer(async_mode="aiohttp", cors_allowed_origins="*")
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on("message", self.on_message)
        self._clients: set[str] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        self._clients.add(sid)
        logger.info(f"Client connected: {sid} ({len(self._clients)} online)")
        await self.sio.emit("message", {"type": "connected", "message": WELCOME}, to=sid)

    async def on_disconnect(self, sid: str, *_args: Any) -> None:
        self._clients.discard(sid)
        logger.info(f"Client disconnected: {sid}")

    async def on_message(self, sid: str, data: Any) -> None:
        payload = _parse(data)
        if payload is None:
            logger.error(f"Dropping malformed message from {sid}")
            return
        await self.sio.emit("message", payload, skip_sid=sid)

    def attach(self, app: web.Application) -> web.Application:
        self.sio.attach(app, socketio_path=SOCKETIO_PATH)
        return app


def _parse(data: Any) -> Optional[dict[str, Any]]:
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError:
            return None
    return data if isinstance(data, dict) else None


def create_app(relay: Optional[Relay] = None) -> web.Application:
    return (relay or Relay()).attach(web.Application())


def run(host: str = "127.0.0.1", port: int = 5000) -> None:
    logger.info(f"Relay listening on http://{host}:{port}{SOCKETIO_PATH}")
    web.run_app(create_app(), host=host, port=port, print=None)
