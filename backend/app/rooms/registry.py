"""Room domain models and the room manager that owns every room mutation."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
import json
import logging
import random
import string
import threading
import time
from typing import Any
import uuid

from app.core.config import Settings
from app.rooms.cache import RoomCache
from app.rooms.events import GAME_OVER
from app.rooms.events import GameLogSink
from app.rooms.events import NullBroadcaster
from app.rooms.events import PLAYER_LEFT
from app.rooms.events import ROOM_DELETED
from app.rooms.events import ROOM_UPDATE
from app.rooms.events import RoomBroadcaster
from app.rooms.store import PersistenceUnavailableError
from app.rooms.store import ROOM_KEY_PREFIX
from app.rooms.store import RoomStore
from app.rooms.store import room_code_storage_key
from app.rooms.store import room_storage_key
from engine.board import Grid
from engine.board import apply_move
from engine.board import create_grid
from engine.board import detect_win
from engine.board import is_full

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS_LIMIT = 4
ROOM_KEY_ALPHABET = string.ascii_uppercase + string.digits
ROOM_KEY_ATTEMPTS = 50


def now_ms() -> int:
    return int(time.time() * 1000)


class RoomError(Exception):
    """Base class for expected room-domain outcomes."""

    code = "ROOM_ERROR"


class RoomNotFoundError(RoomError):
    """Raised when a room id or room key does not resolve to a live room."""

    code = "ROOM_NOT_FOUND"


class RoomFullError(RoomError):
    """Raised when trying to join a room that already seats max_players."""

    code = "ROOM_FULL"


class PlayerNotInRoomError(RoomError):
    """Raised when an operation requires a seated player."""

    code = "PLAYER_NOT_IN_ROOM"


class NotYourTurnError(RoomError):
    code = "NOT_YOUR_TURN"


class ColumnFullError(RoomError):
    code = "COLUMN_FULL"


class InvalidMoveError(RoomError):
    """Raised for coordinates outside the grid or an occupied target cell."""

    code = "INVALID_MOVE"


class GameAlreadyFinishedError(RoomError):
    code = "GAME_ALREADY_FINISHED"


class GameNotStartedError(RoomError):
    """Raised for moves while the room still waits for a second player."""

    code = "GAME_NOT_STARTED"


@dataclass(slots=True)
class Player:
    id: str
    name: str
    player_number: int


@dataclass(slots=True)
class Move:
    player: int
    column: int
    row: int


@dataclass(slots=True)
class Room:
    """Room aggregate state."""

    id: str
    room_key: str
    host: str
    board: Grid
    players: list[Player] = field(default_factory=list)
    spectators: list[str] = field(default_factory=list)
    current_player: int = 1
    status: str = "waiting"
    winner: int | None = None
    max_players: int = 3
    winning_length: int = 4
    rows: int = 6
    cols: int = 7
    gravity: bool = True
    moves: list[Move] = field(default_factory=list)
    created_at_ms: int = 0
    last_active_at_ms: int = 0
    version: int = 0

    def find_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_by_number(self, player_number: int) -> Player | None:
        for player in self.players:
            if player.player_number == player_number:
                return player
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Room":
        payload = dict(data)
        payload["players"] = [Player(**player) for player in payload.get("players", [])]
        payload["moves"] = [Move(**move) for move in payload.get("moves", [])]
        payload["spectators"] = list(payload.get("spectators", []))
        payload["board"] = [list(row) for row in payload["board"]]
        return cls(**payload)

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def loads(cls, raw: str) -> "Room":
        return cls.from_dict(json.loads(raw))


@dataclass(frozen=True, slots=True)
class RoomResult:
    """Outcome of a room operation; failures carry a stable error ``code``."""

    success: bool
    message: str
    room: Room | None = None
    code: str | None = None

    @classmethod
    def ok(cls, message: str, room: Room | None) -> "RoomResult":
        return cls(success=True, message=message, room=room)

    @classmethod
    def fail(cls, error: RoomError, room: Room | None = None) -> "RoomResult":
        return cls(success=False, message=str(error), room=room, code=error.code)


class RoomManager:
    """Sole writer of room state.

    Every mutation of one room runs under that room's lock and covers the
    cache read, store read, store write and cache write as one unit. The
    mutation is applied to a private copy decoded from the snapshot, so a
    failed store write leaves both cache and store untouched.
    """

    def __init__(
        self,
        store: RoomStore,
        *,
        cache: RoomCache | None = None,
        broadcaster: RoomBroadcaster | None = None,
        game_log: GameLogSink | None = None,
        settings: Settings | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._cache = cache if cache is not None else RoomCache()
        self._broadcaster = broadcaster if broadcaster is not None else NullBroadcaster()
        self._game_log = game_log
        self._settings = settings if settings is not None else Settings()
        self._clock = clock
        self._rng = rng if rng is not None else random.SystemRandom()
        self._room_locks: dict[str, threading.RLock] = {}
        self._room_locks_guard = threading.Lock()
        self._create_lock = threading.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------ locks

    @contextmanager
    def lock_room(self, room_id: str) -> Iterator[None]:
        """Acquire one room write lock."""
        with self._room_locks_guard:
            room_lock = self._room_locks.setdefault(room_id, threading.RLock())
        with room_lock:
            yield

    def _forget_lock(self, room_id: str) -> None:
        with self._room_locks_guard:
            self._room_locks.pop(room_id, None)

    # ------------------------------------------------------------ persistence

    def _load(self, room_id: str) -> Room | None:
        snapshot = self._cache.get(room_id)
        if snapshot is None:
            snapshot = self._store.get(room_storage_key(room_id))
            if snapshot is None:
                return None
            self._cache.set(room_id, snapshot)
        return Room.loads(snapshot)

    def _save(self, room: Room) -> None:
        room.version += 1
        room.last_active_at_ms = self._clock()
        snapshot = room.dumps()
        ttl = self._settings.c4_room_ttl_seconds
        try:
            # Key index first: the room snapshot is the write that commits the change.
            self._store.set(room_code_storage_key(room.room_key), room.id, ttl)
            self._store.set(room_storage_key(room.id), snapshot, ttl)
        except PersistenceUnavailableError:
            # Drop the cached copy so the next read comes from the store.
            self._cache.evict(room.id)
            logger.exception("Failed to persist room %s", room.id)
            raise
        self._cache.set(room.id, snapshot)

    def _remove(self, room: Room) -> None:
        self._store.delete(room_storage_key(room.id))
        if self._store.get(room_code_storage_key(room.room_key)) == room.id:
            self._store.delete(room_code_storage_key(room.room_key))
        self._cache.evict(room.id)

    # ------------------------------------------------------ best-effort sinks

    def _notify(self, room_id: str, event: str, payload: dict[str, Any]) -> None:
        try:
            self._broadcaster.notify(room_id, event, payload)
        except Exception:
            logger.warning("Broadcast %s for room %s failed", event, room_id, exc_info=True)

    def _archive(self, room: Room) -> None:
        if self._game_log is None:
            return
        entry = {
            "timestamp": self._clock(),
            "room_id": room.id,
            "event": "draw" if room.winner == 0 else "win",
            "winner": room.winner,
            "final_board": room.board,
            "players": [asdict(player) for player in room.players],
            "move_count": len(room.moves),
        }
        try:
            self._game_log.record(entry)
        except Exception:
            logger.warning("Game archive for room %s failed", room.id, exc_info=True)

    # ---------------------------------------------------------------- reads

    def get_room(self, room_id: str) -> Room | None:
        """Return a room snapshot, or None when it does not exist."""
        snapshot = self._cache.get(room_id)
        if snapshot is not None:
            return Room.loads(snapshot)
        # Unknown ids must not leave entries behind in the lock map.
        if self._store.get(room_storage_key(room_id)) is None:
            return None
        # Cache misses repopulate under the room lock so a racing writer cannot be overwritten.
        with self.lock_room(room_id):
            return self._load(room_id)

    def get_room_by_key(self, room_key: str) -> Room | None:
        room_id = self._store.get(room_code_storage_key(room_key.strip().upper()))
        if room_id is None:
            return None
        return self.get_room(room_id)

    def list_rooms(self) -> list[Room]:
        rooms: list[Room] = []
        for key in self._store.scan(ROOM_KEY_PREFIX):
            room = self.get_room(key[len(ROOM_KEY_PREFIX):])
            if room is not None:
                rooms.append(room)
        rooms.sort(key=lambda item: item.created_at_ms)
        return rooms

    # -------------------------------------------------------------- creation

    def _generate_room_key(self) -> str:
        length = self._settings.c4_room_key_length
        return "".join(self._rng.choice(ROOM_KEY_ALPHABET) for _ in range(length))

    def _allocate_room_key(self) -> str:
        for _ in range(ROOM_KEY_ATTEMPTS):
            room_key = self._generate_room_key()
            if self._store.get(room_code_storage_key(room_key)) is None:
                return room_key
            logger.warning("Room key collision detected, regenerating: %s", room_key)
        raise RuntimeError(f"could not allocate a free room key in {ROOM_KEY_ATTEMPTS} attempts")

    def create_room(
        self,
        host_id: str,
        host_name: str,
        winning_length: int | None = None,
        *,
        max_players: int | None = None,
        rows: int | None = None,
        cols: int | None = None,
        gravity: bool = True,
    ) -> Room:
        """Create a waiting room with the host seated as player 1."""
        settings = self._settings
        winning_length = winning_length if winning_length is not None else settings.c4_default_winning_length
        max_players = max_players if max_players is not None else settings.c4_default_max_players
        rows = rows if rows is not None else settings.c4_default_rows
        cols = cols if cols is not None else settings.c4_default_cols

        if not MIN_PLAYERS <= max_players <= MAX_PLAYERS_LIMIT:
            raise ValueError(f"max_players must be between {MIN_PLAYERS} and {MAX_PLAYERS_LIMIT}")
        if winning_length < 2 or winning_length > max(rows, cols):
            raise ValueError("winning_length must be >= 2 and fit on the board")

        board = create_grid(rows, cols)
        created_at = self._clock()

        # Key allocation and the first write are serialized so two creators never share a key.
        with self._create_lock:
            room = Room(
                id=f"room_{uuid.uuid4().hex}",
                room_key=self._allocate_room_key(),
                host=host_id,
                board=board,
                players=[Player(id=host_id, name=host_name, player_number=1)],
                max_players=max_players,
                winning_length=winning_length,
                rows=rows,
                cols=cols,
                gravity=gravity,
                created_at_ms=created_at,
            )
            with self.lock_room(room.id):
                self._save(room)

        logger.info("Created room %s with key %s", room.id, room.room_key)
        return room

    # ------------------------------------------------------------ membership

    def join_room_as_player(self, room_id: str, player_id: str, player_name: str) -> RoomResult:
        try:
            with self.lock_room(room_id):
                room = self._load(room_id)
                if room is None:
                    raise RoomNotFoundError("Room not found")

                if room.find_player(player_id) is not None or player_id in room.spectators:
                    return RoomResult.ok("Already in room", room)

                if len(room.players) >= room.max_players:
                    raise RoomFullError("Room is full, you will be a spectator")

                room.players.append(
                    Player(id=player_id, name=player_name, player_number=len(room.players) + 1)
                )
                if len(room.players) >= MIN_PLAYERS and room.status == "waiting":
                    room.status = "playing"

                self._save(room)
                self._notify(room.id, ROOM_UPDATE, room.to_dict())
                return RoomResult.ok("Joined as player", room)
        except RoomError as exc:
            return RoomResult.fail(exc)

    def join_room_as_spectator(self, room_id: str, spectator_id: str) -> RoomResult:
        try:
            with self.lock_room(room_id):
                room = self._load(room_id)
                if room is None:
                    raise RoomNotFoundError("Room not found")

                if spectator_id in room.spectators:
                    return RoomResult.ok("Already spectating", room)
                if room.find_player(spectator_id) is not None:
                    return RoomResult.ok("Already in room", room)

                room.spectators.append(spectator_id)
                self._save(room)
                self._notify(room.id, ROOM_UPDATE, room.to_dict())
                return RoomResult.ok("Joined as spectator", room)
        except RoomError as exc:
            return RoomResult.fail(exc)

    def leave_room(self, room_id: str, player_id: str) -> RoomResult:
        """Remove a spectator, or a player and abort the game in progress.

        Remaining players are renumbered 1..k in join order and the host
        passes to the new player 1. The board is emptied because existing
        pieces carry the old seat numbers. Fewer than two players puts the
        room back to waiting; no players at all deletes the room.
        """
        try:
            with self.lock_room(room_id):
                room = self._load(room_id)
                if room is None:
                    raise RoomNotFoundError("Room not found")

                if player_id in room.spectators:
                    room.spectators.remove(player_id)
                    self._save(room)
                    self._notify(room.id, ROOM_UPDATE, room.to_dict())
                    return RoomResult.ok("Left as spectator", room)

                leaving = room.find_player(player_id)
                if leaving is None:
                    raise PlayerNotInRoomError("Player not in this room")

                remaining = [player for player in room.players if player.id != player_id]
                if not remaining:
                    self._remove(room)
                    self._forget_lock(room.id)
                    logger.info("Room %s closed after last player left", room.id)
                    self._notify(room.id, ROOM_DELETED, {"room_id": room.id})
                    return RoomResult.ok("Room closed", None)

                for number, player in enumerate(remaining, start=1):
                    player.player_number = number
                room.players = remaining
                if room.host == player_id:
                    room.host = remaining[0].id

                room.board = create_grid(room.rows, room.cols)
                room.moves = []
                room.winner = None
                room.current_player = 1
                room.status = "playing" if len(remaining) >= MIN_PLAYERS else "waiting"

                self._save(room)
                self._notify(room.id, PLAYER_LEFT, {"player_id": player_id, "room": room.to_dict()})
                self._notify(room.id, ROOM_UPDATE, room.to_dict())
                return RoomResult.ok("Left room", room)
        except RoomError as exc:
            return RoomResult.fail(exc)

    # ------------------------------------------------------------- gameplay

    def make_move(self, room_id: str, player_id: str, column: int, *, row: int | None = None) -> RoomResult:
        """Validate and apply one move, then resolve win, draw or next turn.

        Rejections leave the stored room untouched and are not broadcast.
        """
        try:
            with self.lock_room(room_id):
                room = self._load(room_id)
                if room is None:
                    raise RoomNotFoundError("Room not found")

                player = room.find_player(player_id)
                if player is None:
                    raise PlayerNotInRoomError("Player not in this room")
                if room.status == "finished":
                    raise GameAlreadyFinishedError("Game already finished")
                if room.status == "waiting":
                    raise GameNotStartedError("Waiting for more players")
                if player.player_number != room.current_player:
                    raise NotYourTurnError("Not your turn")

                outcome = apply_move(
                    room.board,
                    column,
                    player.player_number,
                    row=row,
                    gravity=room.gravity,
                )
                if not outcome.ok or outcome.row is None:
                    if not 0 <= column < room.cols or not room.gravity:
                        raise InvalidMoveError("Invalid move")
                    raise ColumnFullError("Invalid move - column full")

                placed_row = outcome.row
                room.moves.append(Move(player=player.player_number, column=column, row=placed_row))

                if detect_win(room.board, placed_row, column, player.player_number, room.winning_length):
                    room.winner = player.player_number
                    room.status = "finished"
                    message = f"Player {player.player_number} wins!"
                elif is_full(room.board, gravity=room.gravity):
                    room.winner = 0
                    room.status = "finished"
                    message = "Draw!"
                else:
                    room.current_player = (room.current_player % len(room.players)) + 1
                    message = "Move made"

                self._save(room)

                if room.status == "finished":
                    logger.info("Room %s finished, winner=%s", room.id, room.winner)
                    winner = room.player_by_number(room.winner) if room.winner else None
                    self._notify(
                        room.id,
                        GAME_OVER,
                        {
                            "winner": room.winner,
                            "winner_name": winner.name if winner is not None else None,
                            "room": room.to_dict(),
                        },
                    )
                    self._archive(room)
                self._notify(room.id, ROOM_UPDATE, room.to_dict())
                return RoomResult.ok(message, room)
        except RoomError as exc:
            return RoomResult.fail(exc)

    def reset_game(self, room_id: str) -> RoomResult:
        """Start a fresh game on an empty board with the same roster."""
        try:
            with self.lock_room(room_id):
                room = self._load(room_id)
                if room is None:
                    raise RoomNotFoundError("Room not found")

                room.board = create_grid(room.rows, room.cols)
                room.moves = []
                room.current_player = 1
                room.winner = None
                room.status = "playing" if len(room.players) >= MIN_PLAYERS else "waiting"

                self._save(room)
                logger.info("Room %s reset", room.id)
                self._notify(room.id, ROOM_UPDATE, room.to_dict())
                return RoomResult.ok("Game reset", room)
        except RoomError as exc:
            return RoomResult.fail(exc)

    # ------------------------------------------------------------- lifecycle

    def delete_room(self, room_id: str) -> bool:
        with self.lock_room(room_id):
            room = self._load(room_id)
            if room is None:
                self._forget_lock(room_id)
                return False
            self._remove(room)
            self._forget_lock(room_id)
        logger.info("Deleted room %s", room_id)
        self._notify(room_id, ROOM_DELETED, {"room_id": room_id})
        return True

    def cleanup_inactive_rooms(self) -> list[str]:
        """Delete rooms idle for longer than the configured inactivity window."""
        threshold_ms = self._settings.c4_inactive_room_seconds * 1000
        cutoff = self._clock() - threshold_ms
        deleted: list[str] = []
        for room in self.list_rooms():
            if room.last_active_at_ms >= cutoff:
                continue
            with self.lock_room(room.id):
                # Re-check under the lock; a move may have landed since the scan.
                current = self._load(room.id)
                if current is None or current.last_active_at_ms >= cutoff:
                    continue
                if self.delete_room(room.id):
                    deleted.append(room.id)

        with self._room_locks_guard:
            tracked = list(self._room_locks)
        for room_id in tracked:
            with self.lock_room(room_id):
                if self._load(room_id) is None:
                    self._forget_lock(room_id)

        if deleted:
            logger.info("Cleaned up %d inactive rooms", len(deleted))
        return deleted


__all__ = [
    "ColumnFullError",
    "GameAlreadyFinishedError",
    "GameNotStartedError",
    "InvalidMoveError",
    "MAX_PLAYERS_LIMIT",
    "MIN_PLAYERS",
    "Move",
    "NotYourTurnError",
    "PersistenceUnavailableError",
    "Player",
    "PlayerNotInRoomError",
    "Room",
    "RoomError",
    "RoomFullError",
    "RoomManager",
    "RoomNotFoundError",
    "RoomResult",
    "now_ms",
]
