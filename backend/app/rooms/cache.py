"""In-process read cache in front of the room store."""

from __future__ import annotations

import threading


class RoomCache:
    """Thread-safe map of room_id -> serialized room snapshot.

    Entries are advisory: the room manager only writes a snapshot after the
    store accepted it, and always holds the room lock while doing so.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, room_id: str) -> str | None:
        with self._lock:
            return self._entries.get(room_id)

    def set(self, room_id: str, snapshot: str) -> None:
        with self._lock:
            self._entries[room_id] = snapshot

    def evict(self, room_id: str) -> None:
        with self._lock:
            self._entries.pop(room_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["RoomCache"]
