"""WebSocket fan-out of room events to subscribed sockets."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import json
import logging
import threading
from typing import Any

from app.rooms.events import ROOM_DELETED

logger = logging.getLogger(__name__)

WS_PROTOCOL_VERSION = 1


def ws_event(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"v": WS_PROTOCOL_VERSION, "type": event_type, "payload": payload}


async def ws_send_event(websocket: Any, event_type: str, payload: dict[str, Any]) -> None:
    message = ws_event(event_type, payload)
    if hasattr(websocket, "send_json"):
        await websocket.send_json(message)
        return
    if hasattr(websocket, "send_text"):
        await websocket.send_text(json.dumps(message))


def dispatch_async(coro: Coroutine[Any, Any, None], loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Schedule ``coro`` without blocking the caller.

    Room operations run in worker threads, so the send is handed to the
    server loop when one is bound; otherwise it runs to completion here.
    """
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if running is not None:
        running.create_task(coro)
        return
    if loop is not None and loop.is_running():
        asyncio.run_coroutine_threadsafe(coro, loop)
        return
    asyncio.run(coro)


class ConnectionBroadcaster:
    """RoomBroadcaster that pushes {v,type,payload} frames to room sockets."""

    def __init__(self) -> None:
        self._room_connections: dict[str, set[Any]] = {}
        self._guard = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        self._loop = loop

    def subscribe(self, room_id: str, websocket: Any) -> None:
        with self._guard:
            self._room_connections.setdefault(room_id, set()).add(websocket)

    def unsubscribe(self, room_id: str, websocket: Any) -> None:
        with self._guard:
            listeners = self._room_connections.get(room_id)
            if listeners is None:
                return
            listeners.discard(websocket)
            if not listeners:
                self._room_connections.pop(room_id, None)

    def listeners(self, room_id: str) -> list[Any]:
        with self._guard:
            return list(self._room_connections.get(room_id, ()))

    def notify(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        if not self.listeners(room_id):
            return
        dispatch_async(self.broadcast(room_id, event, payload), self._loop)

    async def broadcast(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        stale: list[Any] = []
        for websocket in self.listeners(room_id):
            try:
                await ws_send_event(websocket, event, payload)
            except Exception:
                stale.append(websocket)

        for websocket in stale:
            logger.warning("Dropping stale socket for room %s", room_id)
            self.unsubscribe(room_id, websocket)
        if event == ROOM_DELETED:
            with self._guard:
                self._room_connections.pop(room_id, None)
