"""Room view builders used by REST and WS responses."""

from __future__ import annotations

from dataclasses import asdict

from app.rooms.registry import Player
from app.rooms.registry import Room
from engine.board import count_pieces


def room_summary(room: Room) -> dict[str, object]:
    return {
        "id": room.id,
        "room_key": room.room_key,
        "status": room.status,
        "player_count": len(room.players),
        "max_players": room.max_players,
        "spectator_count": len(room.spectators),
    }


def player_detail(player: Player) -> dict[str, object]:
    return asdict(player)


def room_detail(room: Room) -> dict[str, object]:
    return {
        "id": room.id,
        "room_key": room.room_key,
        "host": room.host,
        "players": [player_detail(player) for player in room.players],
        "spectators": list(room.spectators),
        "board": room.board,
        "current_player": room.current_player,
        "status": room.status,
        "winner": room.winner,
        "max_players": room.max_players,
        "winning_length": room.winning_length,
        "rows": room.rows,
        "cols": room.cols,
        "gravity": room.gravity,
        "move_count": len(room.moves),
        "piece_count": count_pieces(room.board),
        "created_at_ms": room.created_at_ms,
    }
