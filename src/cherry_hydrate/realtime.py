"""Realtime websocket hub: which users have a live connection right now."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import WSMsgType, web

log = logging.getLogger(__name__)


class RealtimeHub:
    """Maps user id to the user's most recent open websocket."""

    def __init__(self) -> None:
        self._sockets: dict[str, web.WebSocketResponse] = {}

    def register(self, user_id: str, ws: web.WebSocketResponse) -> None:
        self._sockets[user_id] = ws
        log.info("User %s connected", user_id)

    def unregister(self, user_id: str, ws: web.WebSocketResponse) -> None:
        # A reconnect may already have replaced this socket
        if self._sockets.get(user_id) is ws:
            del self._sockets[user_id]
            log.info("User %s disconnected", user_id)

    def is_connected(self, user_id: str) -> bool:
        ws = self._sockets.get(user_id)
        return ws is not None and not ws.closed

    def connected_count(self) -> int:
        return sum(1 for ws in self._sockets.values() if not ws.closed)

    async def send(self, user_id: str, payload: dict[str, Any]) -> bool:
        """False when the user has no live connection."""
        ws = self._sockets.get(user_id)
        if ws is None or ws.closed:
            return False
        await ws.send_json(payload)
        return True

    async def serve(self, request: web.Request, user_id: str) -> web.WebSocketResponse:
        """Run one client connection until it closes."""
        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)
        self.register(user_id, ws)
        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    self._on_text(user_id, msg)
                elif msg.type == WSMsgType.ERROR:
                    log.warning("Websocket for %s closed with %s", user_id, ws.exception())
        finally:
            self.unregister(user_id, ws)
        return ws

    def _on_text(self, user_id: str, msg: Any) -> None:
        try:
            data = msg.json()
        except ValueError:
            log.warning("Ignoring non-JSON message from %s", user_id)
            return
        if isinstance(data, dict) and data.get("type") == "water-reminder-ack":
            log.info("Water reminder acknowledged by %s: %s", user_id, data)

    async def close_all(self) -> None:
        for ws in list(self._sockets.values()):
            await ws.close()
        self._sockets.clear()
