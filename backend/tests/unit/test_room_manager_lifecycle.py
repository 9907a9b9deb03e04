"""Room manager lifecycle tests: create, lookup, join, spectate, leave, delete, cleanup."""

from __future__ import annotations

import pytest

from app.rooms.registry import ROOM_KEY_ALPHABET
from app.rooms.registry import RoomManager
from app.rooms.store import room_code_storage_key
from app.rooms.store import room_storage_key


def _assert_roster_invariants(room) -> None:
    numbers = [player.player_number for player in room.players]
    assert numbers == list(range(1, len(room.players) + 1))
    assert 1 <= len(room.players) <= room.max_players
    assert not {player.id for player in room.players} & set(room.spectators)


def test_create_room_seats_host_as_player_one(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    assert room.id.startswith("room_")
    assert len(room.room_key) == 6
    assert set(room.room_key) <= set(ROOM_KEY_ALPHABET)
    assert room.host == "alice"
    assert [(p.id, p.name, p.player_number) for p in room.players] == [("alice", "Alice", 1)]
    assert room.status == "waiting"
    assert room.current_player == 1
    assert room.winner is None
    assert room.max_players == 3
    assert room.winning_length == 4
    assert (room.rows, room.cols) == (6, 7)
    assert all(cell is None for row in room.board for cell in row)


def test_create_room_persists_room_and_key_index(manager: RoomManager, store) -> None:
    room = manager.create_room("alice", "Alice")

    assert store.get(room_storage_key(room.id)) is not None
    assert store.get(room_code_storage_key(room.room_key)) == room.id


def test_create_room_honours_custom_configuration(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice", 3, max_players=4, rows=5, cols=5, gravity=False)

    assert room.winning_length == 3
    assert room.max_players == 4
    assert len(room.board) == 5 and len(room.board[0]) == 5
    assert room.gravity is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_players": 1},
        {"max_players": 5},
        {"winning_length": 1},
        {"winning_length": 8},
        {"rows": 0},
    ],
)
def test_create_room_rejects_invalid_configuration(manager: RoomManager, kwargs) -> None:
    with pytest.raises(ValueError):
        manager.create_room("alice", "Alice", **kwargs)


def test_room_key_collision_is_regenerated(manager: RoomManager, monkeypatch: pytest.MonkeyPatch) -> None:
    """Input: generator repeats a live key -> Output: second room gets the next free key."""
    keys = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
    monkeypatch.setattr(manager, "_generate_room_key", lambda: next(keys))

    first = manager.create_room("alice", "Alice")
    second = manager.create_room("bob", "Bob")

    assert first.room_key == "AAAAAA"
    assert second.room_key == "BBBBBB"


def test_get_room_missing_returns_none(manager: RoomManager) -> None:
    assert manager.get_room("room_missing") is None
    assert manager.get_room_by_key("ZZZZZZ") is None


def test_get_room_by_key_is_case_insensitive(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    found = manager.get_room_by_key(room.room_key.lower())

    assert found is not None
    assert found.id == room.id


def test_get_room_reads_through_to_store_and_repopulates_cache(manager: RoomManager, cache) -> None:
    room = manager.create_room("alice", "Alice")
    cache.evict(room.id)
    assert cache.get(room.id) is None

    loaded = manager.get_room(room.id)

    assert loaded is not None
    assert loaded.id == room.id
    assert cache.get(room.id) is not None


def test_get_room_returns_independent_copies(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    first = manager.get_room(room.id)
    first.board[0][0] = 9

    assert manager.get_room(room.id).board[0][0] is None


def test_second_player_join_starts_game(manager: RoomManager, broadcaster) -> None:
    room = manager.create_room("alice", "Alice")

    result = manager.join_room_as_player(room.id, "bob", "Bob")

    assert result.success is True
    assert result.message == "Joined as player"
    assert result.room.status == "playing"
    assert result.room.current_player == 1
    assert result.room.players[1].player_number == 2
    assert broadcaster.names(room.id) == ["ROOM_UPDATE"]
    _assert_roster_invariants(result.room)


def test_join_is_idempotent_for_existing_player(manager: RoomManager, broadcaster) -> None:
    """Input: same player joins twice -> Output: no duplicate and seat number stable."""
    room = manager.create_room("alice", "Alice")
    manager.join_room_as_player(room.id, "bob", "Bob")
    version = manager.get_room(room.id).version

    result = manager.join_room_as_player(room.id, "bob", "Bob again")

    assert result.success is True
    assert result.message == "Already in room"
    assert [p.id for p in result.room.players] == ["alice", "bob"]
    assert result.room.players[1].player_number == 2
    assert result.room.players[1].name == "Bob"
    assert manager.get_room(room.id).version == version
    assert broadcaster.names(room.id) == ["ROOM_UPDATE"]


def test_join_as_player_is_noop_for_spectator(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")
    manager.join_room_as_spectator(room.id, "carol")

    result = manager.join_room_as_player(room.id, "carol", "Carol")

    assert result.success is True
    assert [p.id for p in result.room.players] == ["alice"]
    assert result.room.spectators == ["carol"]


def test_join_full_room_fails(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice", max_players=2)
    manager.join_room_as_player(room.id, "bob", "Bob")

    result = manager.join_room_as_player(room.id, "carol", "Carol")

    assert result.success is False
    assert result.code == "ROOM_FULL"
    assert len(manager.get_room(room.id).players) == 2


def test_join_missing_room_fails_without_raising(manager: RoomManager) -> None:
    result = manager.join_room_as_player("room_missing", "bob", "Bob")
    assert result.success is False
    assert result.code == "ROOM_NOT_FOUND"
    assert result.room is None


def test_spectator_join_is_idempotent_and_keeps_status(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    first = manager.join_room_as_spectator(room.id, "carol")
    second = manager.join_room_as_spectator(room.id, "carol")

    assert first.success and second.success
    assert second.message == "Already spectating"
    assert manager.get_room(room.id).spectators == ["carol"]
    assert manager.get_room(room.id).status == "waiting"


def test_spectator_join_by_seated_player_is_noop(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    result = manager.join_room_as_spectator(room.id, "alice")

    assert result.success is True
    assert result.room.spectators == []


def test_leave_spectator_only_drops_spectator(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")
    manager.join_room_as_spectator(room.id, "carol")

    result = manager.leave_room(room.id, "carol")

    assert result.success is True
    assert result.room.spectators == []
    assert [p.id for p in result.room.players] == ["alice"]


def test_leave_player_renumbers_and_transfers_host(manager: RoomManager, broadcaster) -> None:
    """Input: host leaves a 3-player game -> Output: seats 1..2, new host, fresh board."""
    room = manager.create_room("alice", "Alice")
    manager.join_room_as_player(room.id, "bob", "Bob")
    manager.join_room_as_player(room.id, "carol", "Carol")
    manager.make_move(room.id, "alice", 0)

    result = manager.leave_room(room.id, "alice")

    left = result.room
    assert result.success is True
    assert [(p.id, p.player_number) for p in left.players] == [("bob", 1), ("carol", 2)]
    assert left.host == "bob"
    assert left.status == "playing"
    assert left.current_player == 1
    assert left.moves == []
    assert all(cell is None for row in left.board for cell in row)
    assert "PLAYER_LEFT" in broadcaster.names(room.id)
    _assert_roster_invariants(left)


def test_leave_down_to_one_player_returns_to_waiting(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")
    manager.join_room_as_player(room.id, "bob", "Bob")

    result = manager.leave_room(room.id, "bob")

    assert result.room.status == "waiting"
    assert result.room.winner is None


def test_last_player_leaving_deletes_room(manager: RoomManager, broadcaster) -> None:
    room = manager.create_room("alice", "Alice")

    result = manager.leave_room(room.id, "alice")

    assert result.success is True
    assert result.room is None
    assert manager.get_room(room.id) is None
    assert manager.get_room_by_key(room.room_key) is None
    assert broadcaster.names(room.id)[-1] == "ROOM_DELETED"


def test_leave_unknown_player_fails(manager: RoomManager) -> None:
    room = manager.create_room("alice", "Alice")

    result = manager.leave_room(room.id, "mallory")

    assert result.success is False
    assert result.code == "PLAYER_NOT_IN_ROOM"


def test_delete_room_reports_existence(manager: RoomManager, cache) -> None:
    room = manager.create_room("alice", "Alice")

    assert manager.delete_room(room.id) is True
    assert manager.delete_room(room.id) is False
    assert manager.get_room(room.id) is None
    assert cache.get(room.id) is None
    assert manager.get_room_by_key(room.room_key) is None


def test_list_rooms_orders_by_creation(manager: RoomManager, clock) -> None:
    first = manager.create_room("alice", "Alice")
    clock.advance(1)
    second = manager.create_room("bob", "Bob")

    assert [room.id for room in manager.list_rooms()] == [first.id, second.id]


def test_cleanup_removes_only_inactive_rooms(manager: RoomManager, clock) -> None:
    """Input: one idle room and one recently active room -> Output: only idle one removed."""
    idle = manager.create_room("alice", "Alice")
    active = manager.create_room("bob", "Bob")
    clock.advance(500)
    manager.join_room_as_player(active.id, "carol", "Carol")
    clock.advance(200)

    deleted = manager.cleanup_inactive_rooms()

    assert deleted == [idle.id]
    assert manager.get_room(idle.id) is None
    assert manager.get_room(active.id) is not None


def test_cleanup_with_nothing_idle_is_noop(manager: RoomManager) -> None:
    manager.create_room("alice", "Alice")
    assert manager.cleanup_inactive_rooms() == []


def test_lookup_of_unknown_rooms_does_not_grow_lock_map(manager: RoomManager) -> None:
    for index in range(20):
        assert manager.get_room(f"room_missing_{index}") is None

    assert not any(room_id.startswith("room_missing_") for room_id in manager._room_locks)
