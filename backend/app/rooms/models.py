"""Pydantic models for room and game APIs."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import Field


class CreateRoomRequest(BaseModel):
    """POST /api/rooms request body."""

    host_id: str = Field(min_length=1)
    host_name: str = Field(min_length=1)
    winning_length: int | None = Field(default=None, ge=2)
    max_players: int | None = Field(default=None, ge=2, le=4)
    rows: int | None = Field(default=None, ge=1)
    cols: int | None = Field(default=None, ge=1)
    gravity: bool = True


class JoinRoomRequest(BaseModel):
    """POST /api/rooms/{room_id}/join request body."""

    player_id: str = Field(min_length=1)
    player_name: str = Field(min_length=1)


class SpectateRequest(BaseModel):
    """POST /api/rooms/{room_id}/spectate request body."""

    spectator_id: str = Field(min_length=1)


class LeaveRoomRequest(BaseModel):
    """POST /api/rooms/{room_id}/leave request body."""

    player_id: str = Field(min_length=1)


class MoveRequest(BaseModel):
    """POST /api/games/{room_id}/move request body."""

    player_id: str = Field(min_length=1)
    column: int
    row: int | None = None
