"""Room REST routes."""

from __future__ import annotations

from fastapi import APIRouter

import app.runtime as runtime
from app.api.errors import raise_api_error
from app.api.errors import raise_for_result
from app.api.errors import raise_room_not_found
from app.api.room_views import room_detail
from app.api.room_views import room_summary
from app.rooms.models import CreateRoomRequest
from app.rooms.models import JoinRoomRequest
from app.rooms.models import LeaveRoomRequest
from app.rooms.models import SpectateRequest

router = APIRouter()


@router.post("/api/rooms", status_code=201)
def create_room(payload: CreateRoomRequest) -> dict[str, object]:
    """Create a room with the caller seated as player 1."""
    try:
        room = runtime.room_manager.create_room(
            payload.host_id,
            payload.host_name,
            payload.winning_length,
            max_players=payload.max_players,
            rows=payload.rows,
            cols=payload.cols,
            gravity=payload.gravity,
        )
    except ValueError as exc:
        raise_api_error(
            status_code=400,
            code="INVALID_ROOM_CONFIG",
            message=str(exc),
            detail={},
        )
    return room_detail(room)


@router.get("/api/rooms")
def list_rooms() -> list[dict[str, object]]:
    """Return lobby room summary list."""
    return [room_summary(room) for room in runtime.room_manager.list_rooms()]


@router.get("/api/rooms/by-key/{room_key}")
def get_room_by_key(room_key: str) -> dict[str, object]:
    room = runtime.room_manager.get_room_by_key(room_key)
    if room is None:
        raise_api_error(
            status_code=404,
            code="ROOM_NOT_FOUND",
            message="room not found",
            detail={"room_key": room_key},
        )
    return room_detail(room)


@router.get("/api/rooms/{room_id}")
def get_room(room_id: str) -> dict[str, object]:
    room = runtime.room_manager.get_room(room_id)
    if room is None:
        raise_room_not_found(room_id)
    return room_detail(room)


@router.post("/api/rooms/{room_id}/join")
def join_room(room_id: str, payload: JoinRoomRequest) -> dict[str, object]:
    result = runtime.room_manager.join_room_as_player(room_id, payload.player_id, payload.player_name)
    raise_for_result(result, room_id=room_id)
    return {"message": result.message, "room": room_detail(result.room)}


@router.post("/api/rooms/{room_id}/spectate")
def spectate_room(room_id: str, payload: SpectateRequest) -> dict[str, object]:
    result = runtime.room_manager.join_room_as_spectator(room_id, payload.spectator_id)
    raise_for_result(result, room_id=room_id)
    return {"message": result.message, "room": room_detail(result.room)}


@router.post("/api/rooms/{room_id}/leave")
def leave_room(room_id: str, payload: LeaveRoomRequest) -> dict[str, object]:
    result = runtime.room_manager.leave_room(room_id, payload.player_id)
    raise_for_result(result, room_id=room_id)
    room = room_detail(result.room) if result.room is not None else None
    return {"message": result.message, "room": room}


@router.delete("/api/rooms/{room_id}")
def delete_room(room_id: str) -> dict[str, bool]:
    if not runtime.room_manager.delete_room(room_id):
        raise_room_not_found(room_id)
    return {"ok": True}
