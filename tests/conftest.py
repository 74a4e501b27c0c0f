"""
Pytest configuration and fixtures for chat engine tests.
"""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend import MemorySessionBackend
from services.engine import ChatEngine, EngineSettings

ADMIN_SECRET = "correct horse battery staple"


class RecordingEmitter:
    """Emitter that remembers every frame per recipient.

    Room emits are resolved to recipients at emit time, the same way the
    websocket gateway does it.
    """

    def __init__(self):
        self.connected = set()
        self.frames = {}

    def _deliver(self, connection_id, event, data):
        self.frames.setdefault(connection_id, []).append((event.value, data))

    def emit_to_one(self, connection_id, event, data=None):
        self._deliver(connection_id, event, data)

    def emit_to_room(self, room, event, data=None, exclude=None):
        for member in room.members:
            if member != exclude:
                self._deliver(member, event, data)

    def emit_to_all(self, event, data=None):
        for connection_id in self.connected:
            self._deliver(connection_id, event, data)

    def received(self, connection_id, event=None):
        frames = self.frames.get(connection_id, [])
        if event is None:
            return list(frames)
        return [data for name, data in frames if name == event]

    def clear(self):
        self.frames.clear()


class EngineHarness:
    """Drives a ChatEngine the way the gateway does, one event at a time."""

    def __init__(self, settings):
        self.emitter = RecordingEmitter()
        self.engine = ChatEngine(self.emitter, settings)

    def connect(self, participant_id, origin="127.0.0.1"):
        self.emitter.connected.add(participant_id)
        return self.engine.connect(participant_id, origin)

    def disconnect(self, participant_id):
        self.emitter.connected.discard(participant_id)
        self.engine.disconnect(participant_id)


def assert_invariants(engine):
    """State-wide invariants that must hold after every handled event."""
    slot = engine.matchmaker.waiting_slot_id
    if slot is not None:
        participant = engine.registry.get(slot)
        assert participant is not None
        assert participant.status.value == "waiting"
        assert participant.room_id is None
        assert engine.rooms.room_of(slot) is None

    seen = set()
    for room in engine.rooms.snapshot():
        assert 1 <= len(room.members) <= 2
        for member in room.members:
            assert member not in seen
            seen.add(member)
            assert member != slot
            assert engine.registry.get(member).room_id == room.id
    assert engine.rooms.count() == len(engine.rooms.snapshot())

    for participant in engine.registry.all():
        if participant.room_id is None:
            assert participant.status.value == "waiting"
        else:
            assert participant.status.value == "chatting"
            assert participant.id in seen


@pytest.fixture
def harness():
    return EngineHarness(EngineSettings(admin_secret=ADMIN_SECRET))


@pytest.fixture
def engine(harness):
    return harness.engine


@pytest.fixture
def emitter(harness):
    return harness.emitter


@pytest.fixture
def app():
    return create_app(
        settings=EngineSettings(admin_secret=ADMIN_SECRET, broadcast_interval_seconds=60),
        sessions=MemorySessionBackend(ttl=60),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
