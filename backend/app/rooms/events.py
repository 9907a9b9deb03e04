"""Outbound collaborator contracts: room event broadcast and game archive sink."""

from __future__ import annotations

from typing import Any
from typing import Protocol

ROOM_UPDATE = "ROOM_UPDATE"
GAME_OVER = "GAME_OVER"
PLAYER_LEFT = "PLAYER_LEFT"
ROOM_DELETED = "ROOM_DELETED"


class RoomBroadcaster(Protocol):
    """Fire-and-forget notification of room state changes."""

    def notify(self, room_id: str, event: str, payload: dict[str, Any]) -> None: ...


class GameLogSink(Protocol):
    """Receives one archive record per finished game."""

    def record(self, entry: dict[str, Any]) -> None: ...


class NullBroadcaster:
    """Broadcaster that drops every notification; used when no sockets are wired."""

    def notify(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        return None


class RecordingBroadcaster:
    """Keeps every notification in memory; handy for tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def notify(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((room_id, event, payload))

    def names(self, room_id: str | None = None) -> list[str]:
        return [event for rid, event, _ in self.events if room_id is None or rid == room_id]


__all__ = [
    "GAME_OVER",
    "GameLogSink",
    "NullBroadcaster",
    "PLAYER_LEFT",
    "ROOM_DELETED",
    "ROOM_UPDATE",
    "RecordingBroadcaster",
    "RoomBroadcaster",
]
