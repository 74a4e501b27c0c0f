import uuid
from typing import Dict, List, Optional

from logging_config import get_logger
from schemas.chat import Room
from services.presence import PresenceRegistry

logger = get_logger(__name__)


def generate_room_id() -> str:
    return f"room-{uuid.uuid4().hex}"


class RoomManager:
    """Owns rooms and their membership.

    A participant is a member of at most one room, tracked by ``_room_of``.
    Rooms are only created for a pair; they shrink as members leave and are
    deleted as soon as the last one does.
    """

    def __init__(self, registry: PresenceRegistry):
        self._registry = registry
        self._rooms: Dict[str, Room] = {}
        self._room_of: Dict[str, str] = {}

    def create(self, participant_a: str, participant_b: str) -> str:
        if participant_a == participant_b:
            raise ValueError(f"Cannot pair participant {participant_a} with itself")
        for participant_id in (participant_a, participant_b):
            if participant_id in self._room_of:
                raise ValueError(f"Participant {participant_id} is already in room {self._room_of[participant_id]}")

        room_id = generate_room_id()
        while room_id in self._rooms:
            room_id = generate_room_id()
        self._rooms[room_id] = Room(id=room_id, members=[participant_a, participant_b])
        self._room_of[participant_a] = room_id
        self._room_of[participant_b] = room_id
        logger.info(f"Room created: {room_id} for {participant_a} and {participant_b}")
        return room_id

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_of(self, participant_id: str) -> Optional[Room]:
        room_id = self._room_of.get(participant_id)
        return self._rooms.get(room_id) if room_id else None

    def partner_of(self, participant_id: str) -> Optional[str]:
        room = self.room_of(participant_id)
        if room is None:
            return None
        for member in room.members:
            if member != participant_id:
                return member
        return None

    def remove_participant(self, participant_id: str) -> Optional[str]:
        """Take ``participant_id`` out of its room.

        Returns the member left behind, if any. The room is deleted when it
        empties.
        """
        room_id = self._room_of.pop(participant_id, None)
        if room_id is None:
            return None
        room = self._rooms.get(room_id)
        if room is None:
            return None

        room.members = [member for member in room.members if member != participant_id]
        if not room.members:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} destroyed (empty)")
            return None

        logger.debug(f"Participant {participant_id} left room {room_id}, {len(room.members)} member(s) remain")
        return room.members[0]

    def count(self) -> int:
        return len(self._rooms)

    def snapshot(self) -> List[Room]:
        """Rooms that still hold at least one registered participant.

        Rooms whose members are all gone from the registry are pruned here.
        """
        live_rooms = []
        for room_id, room in list(self._rooms.items()):
            live_members = [member for member in room.members if member in self._registry]
            if not live_members:
                logger.info(f"Pruning room {room_id} with no live members")
                for member in room.members:
                    if self._room_of.get(member) == room_id:
                        del self._room_of[member]
                del self._rooms[room_id]
                continue
            live_rooms.append(room.model_copy(update={"members": live_members}))
        return live_rooms
