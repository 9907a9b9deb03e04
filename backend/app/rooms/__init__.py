"""Room domain package: models, manager, persistence and cache."""

from app.rooms.cache import RoomCache
from app.rooms.registry import ColumnFullError
from app.rooms.registry import GameAlreadyFinishedError
from app.rooms.registry import GameNotStartedError
from app.rooms.registry import InvalidMoveError
from app.rooms.registry import NotYourTurnError
from app.rooms.registry import Player
from app.rooms.registry import PlayerNotInRoomError
from app.rooms.registry import Room
from app.rooms.registry import RoomError
from app.rooms.registry import RoomFullError
from app.rooms.registry import RoomManager
from app.rooms.registry import RoomNotFoundError
from app.rooms.registry import RoomResult
from app.rooms.store import InMemoryRoomStore
from app.rooms.store import PersistenceUnavailableError
from app.rooms.store import RedisRoomStore
from app.rooms.store import build_store

__all__ = [
    "ColumnFullError",
    "GameAlreadyFinishedError",
    "GameNotStartedError",
    "InMemoryRoomStore",
    "InvalidMoveError",
    "NotYourTurnError",
    "PersistenceUnavailableError",
    "Player",
    "PlayerNotInRoomError",
    "RedisRoomStore",
    "Room",
    "RoomCache",
    "RoomError",
    "RoomFullError",
    "RoomManager",
    "RoomNotFoundError",
    "RoomResult",
    "build_store",
]
