"""Lightweight file logger for finished-game archive records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class GameLogger:
    """Persist one JSON archive per finished game plus an append-only index."""

    def __init__(self, log_path: str | Path) -> None:
        self._log_dir = Path(log_path)

    def reset(self) -> None:
        self._log_dir.mkdir(parents=True, exist_ok=True)

        for game_file in self._log_dir.glob("game_*.json"):
            if game_file.is_file():
                game_file.unlink()

        index_file = self._log_dir / "index.json"
        if index_file.is_file():
            index_file.unlink()

    def record(self, entry: dict[str, Any]) -> None:
        """Write ``entry`` as game_<room_id>_<timestamp>.json and index it."""
        room_id = str(entry.get("room_id", "unknown"))
        timestamp = int(entry.get("timestamp", 0))
        filename = f"game_{room_id}_{timestamp}.json"
        self._write_json(self._log_dir / filename, entry)
        self._append_index(
            {
                "file": filename,
                "room_id": room_id,
                "event": entry.get("event"),
                "winner": entry.get("winner"),
                "timestamp": timestamp,
            }
        )

    def read_index(self) -> list[dict[str, Any]]:
        current = self._read_json(self._log_dir / "index.json")
        return current if isinstance(current, list) else []

    def _append_index(self, record: dict[str, Any]) -> None:
        target = self._log_dir / "index.json"
        current = self._read_json(target)
        if not isinstance(current, list):
            current = []
        current.append(record)
        self._write_json(target, current)

    @staticmethod
    def _read_json(path: Path) -> Any:
        if not path.is_file():
            return []
        with path.open("r", encoding="utf-8") as stream:
            return json.load(stream)

    @staticmethod
    def _write_json(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f"{path.name}.tmp")
        with temp_path.open("w", encoding="utf-8") as stream:
            json.dump(payload, stream, ensure_ascii=False, indent=2)
            stream.write("\n")
        temp_path.replace(path)
