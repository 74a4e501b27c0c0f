from typing import Optional

from logging_config import get_logger
from schemas.chat import Participant, ParticipantStatus, Room
from services.presence import PresenceRegistry
from services.rooms import RoomManager

logger = get_logger(__name__)


class Matchmaker:
    """Single-slot rendezvous.

    The waiting slot holds at most one participant id. It is not a queue:
    whoever arrives while the slot is occupied is paired with its occupant,
    otherwise the arrival takes the slot. Ordering is the order in which
    events are handled.
    """

    def __init__(self, registry: PresenceRegistry, rooms: RoomManager):
        self._registry = registry
        self._rooms = rooms
        self._waiting_slot: Optional[str] = None

    @property
    def waiting_slot_id(self) -> Optional[str]:
        return self._waiting_slot

    def waiting_count(self) -> int:
        return 1 if self._waiting_slot is not None else 0

    def on_arrival(self, participant: Participant) -> Optional[Room]:
        """Pair ``participant`` with the slot occupant or park it in the slot.

        Returns the new room when a pairing was formed.
        """
        waiting_id = self._waiting_slot
        if waiting_id is not None and waiting_id != participant.id:
            partner = self._registry.get(waiting_id)
            if partner is not None and partner.room_id is None:
                return self._pair(participant, partner)
            # Occupant vanished (or was placed elsewhere) after being parked
            logger.info(f"Waiting participant {waiting_id} is no longer available, abandoning pairing")

        self._park(participant)
        return None

    def on_participant_freed(self, participant: Participant) -> Optional[Room]:
        """Re-enter matchmaking after a skip or a partner's departure."""
        participant.room_id = None
        participant.status = ParticipantStatus.WAITING
        return self.on_arrival(participant)

    def release(self, participant_id: str) -> bool:
        """Clear the slot if ``participant_id`` holds it."""
        if self._waiting_slot == participant_id:
            self._waiting_slot = None
            logger.debug(f"Waiting slot released by {participant_id}")
            return True
        return False

    def _park(self, participant: Participant):
        participant.room_id = None
        participant.status = ParticipantStatus.WAITING
        self._waiting_slot = participant.id
        logger.debug(f"Participant {participant.id} is waiting for a partner")

    def _pair(self, arriving: Participant, waiting: Participant) -> Room:
        room_id = self._rooms.create(arriving.id, waiting.id)
        self._waiting_slot = None
        for participant in (arriving, waiting):
            participant.room_id = room_id
            participant.status = ParticipantStatus.CHATTING
        logger.info(f"Paired {arriving.id} with {waiting.id} in {room_id}")
        return self._rooms.get(room_id)
