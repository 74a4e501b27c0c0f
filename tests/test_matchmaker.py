import pytest

from services.matchmaker import Matchmaker
from services.presence import PresenceRegistry
from services.rooms import RoomManager


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def rooms(registry):
    return RoomManager(registry)


@pytest.fixture
def matchmaker(registry, rooms):
    return Matchmaker(registry, rooms)


def test_arrival_with_empty_slot_waits(registry, matchmaker):
    participant = registry.register("A", "127.0.0.1")

    assert matchmaker.on_arrival(participant) is None
    assert matchmaker.waiting_slot_id == "A"
    assert matchmaker.waiting_count() == 1


def test_arrival_pairs_with_slot_occupant(registry, rooms, matchmaker):
    a = registry.register("A", "127.0.0.1")
    b = registry.register("B", "127.0.0.1")
    matchmaker.on_arrival(a)

    room = matchmaker.on_arrival(b)

    assert room is not None
    assert room.members == ["B", "A"]
    assert a.room_id == b.room_id == room.id
    assert a.status.value == b.status.value == "chatting"
    assert matchmaker.waiting_slot_id is None
    assert matchmaker.waiting_count() == 0


def test_self_in_slot_is_not_paired(registry, rooms, matchmaker):
    a = registry.register("A", "127.0.0.1")
    matchmaker.on_arrival(a)

    assert matchmaker.on_arrival(a) is None
    assert matchmaker.waiting_slot_id == "A"
    assert rooms.count() == 0


def test_vanished_slot_occupant_is_replaced(registry, rooms, matchmaker):
    a = registry.register("A", "127.0.0.1")
    b = registry.register("B", "127.0.0.1")
    matchmaker.on_arrival(a)
    registry.remove("A")

    assert matchmaker.on_arrival(b) is None
    assert matchmaker.waiting_slot_id == "B"
    assert rooms.count() == 0


def test_freed_participant_is_reset_before_matching(registry, rooms, matchmaker):
    a = registry.register("A", "127.0.0.1")
    b = registry.register("B", "127.0.0.1")
    matchmaker.on_arrival(a)
    matchmaker.on_arrival(b)
    rooms.remove_participant("A")
    rooms.remove_participant("B")

    assert matchmaker.on_participant_freed(b) is None
    assert b.room_id is None
    assert b.status.value == "waiting"
    assert matchmaker.waiting_slot_id == "B"

    room = matchmaker.on_participant_freed(a)
    assert set(room.members) == {"A", "B"}


def test_release_only_clears_own_slot(registry, matchmaker):
    a = registry.register("A", "127.0.0.1")
    matchmaker.on_arrival(a)

    assert matchmaker.release("B") is False
    assert matchmaker.waiting_slot_id == "A"
    assert matchmaker.release("A") is True
    assert matchmaker.waiting_slot_id is None
