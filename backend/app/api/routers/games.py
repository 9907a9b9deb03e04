"""Gameplay REST routes: moves and resets."""

from __future__ import annotations

from fastapi import APIRouter

import app.runtime as runtime
from app.api.errors import raise_for_result
from app.api.room_views import room_detail
from app.rooms.models import MoveRequest

router = APIRouter()


@router.post("/api/games/{room_id}/move")
def make_move(room_id: str, payload: MoveRequest) -> dict[str, object]:
    """Drop one piece for the player whose turn it is."""
    result = runtime.room_manager.make_move(room_id, payload.player_id, payload.column, row=payload.row)
    raise_for_result(result, room_id=room_id)
    return {"success": True, "message": result.message, "room": room_detail(result.room)}


@router.post("/api/games/{room_id}/reset")
def reset_game(room_id: str) -> dict[str, object]:
    result = runtime.room_manager.reset_game(room_id)
    raise_for_result(result, room_id=room_id)
    return {"success": True, "message": result.message, "room": room_detail(result.room)}
