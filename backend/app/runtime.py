"""Process-wide runtime wiring shared by REST and WebSocket handlers."""

from __future__ import annotations

import logging

from app.core.config import Settings
from app.core.config import load_settings
from app.rooms.cache import RoomCache
from app.rooms.registry import RoomManager
from app.rooms.store import RoomStore
from app.rooms.store import build_store
from app.ws.broadcast import ConnectionBroadcaster
from engine.game_logger import GameLogger

logger = logging.getLogger(__name__)


def build_room_manager(
    settings: Settings,
    *,
    store: RoomStore | None = None,
    broadcaster: ConnectionBroadcaster | None = None,
) -> RoomManager:
    """Compose a RoomManager from explicit collaborators."""
    game_log = GameLogger(settings.c4_game_log_dir) if settings.c4_game_log_dir else None
    return RoomManager(
        store if store is not None else build_store(settings),
        cache=RoomCache(),
        broadcaster=broadcaster,
        game_log=game_log,
        settings=settings,
    )


settings = load_settings()
broadcaster = ConnectionBroadcaster()
room_manager = build_room_manager(settings, broadcaster=broadcaster)


def startup() -> None:
    """Reload settings and rebuild store, cache, broadcaster and manager."""
    global settings, broadcaster, room_manager
    settings = load_settings()
    broadcaster = ConnectionBroadcaster()
    room_manager = build_room_manager(settings, broadcaster=broadcaster)
    logger.info("Runtime started (env=%s, storage=%s)", settings.c4_app_env, settings.c4_storage_backend)


__all__ = [
    "Settings",
    "broadcaster",
    "build_room_manager",
    "room_manager",
    "settings",
    "startup",
]
