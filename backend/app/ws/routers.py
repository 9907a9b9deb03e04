"""WebSocket route handlers for room channels."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter
from fastapi import WebSocket
from fastapi import WebSocketDisconnect

import app.runtime as runtime
from app.rooms.events import ROOM_UPDATE

from .broadcast import ws_send_event

router = APIRouter()


@router.websocket("/ws/rooms/{room_id}")
async def ws_room(websocket: WebSocket, room_id: str) -> None:
    """Room websocket: initial ROOM_UPDATE, then every event for the room."""
    room = await asyncio.to_thread(runtime.room_manager.get_room, room_id)
    if room is None:
        await websocket.accept()
        await websocket.close(code=4404, reason="ROOM_NOT_FOUND")
        return

    await websocket.accept()
    runtime.broadcaster.subscribe(room_id, websocket)
    try:
        await ws_send_event(websocket, ROOM_UPDATE, room.to_dict())
        while True:
            message = await websocket.receive_text()
            if message == "PING":
                await ws_send_event(websocket, "PONG", {})
    except WebSocketDisconnect:
        return
    finally:
        runtime.broadcaster.unsubscribe(room_id, websocket)
