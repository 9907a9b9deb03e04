"""Shared fixtures for room manager, store and API tests."""

from __future__ import annotations

import pytest

from app.core.config import Settings
from app.rooms.cache import RoomCache
from app.rooms.events import RecordingBroadcaster
from app.rooms.registry import RoomManager
from app.rooms.store import InMemoryRoomStore


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        c4_default_rows=6,
        c4_default_cols=7,
        c4_default_max_players=3,
        c4_default_winning_length=4,
        c4_inactive_room_seconds=600,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryRoomStore:
    return InMemoryRoomStore()


@pytest.fixture
def cache() -> RoomCache:
    return RoomCache()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def manager(
    store: InMemoryRoomStore,
    cache: RoomCache,
    broadcaster: RecordingBroadcaster,
    settings: Settings,
    clock: FakeClock,
) -> RoomManager:
    return RoomManager(
        store,
        cache=cache,
        broadcaster=broadcaster,
        settings=settings,
        clock=clock,
    )
