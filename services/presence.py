from typing import Dict, List, Optional

from logging_config import get_logger
from schemas.chat import Participant
from services.errors import DuplicateParticipantError

logger = get_logger(__name__)


class PresenceRegistry:
    """Every currently connected participant, keyed by connection id.

    Only mutates its own map; callers notify dependents.
    """

    def __init__(self):
        self._participants: Dict[str, Participant] = {}

    def register(self, participant_id: str, origin_address: str) -> Participant:
        if participant_id in self._participants:
            logger.warning(f"Duplicate registration rejected for {participant_id}")
            raise DuplicateParticipantError(participant_id)
        participant = Participant(id=participant_id, origin_address=origin_address)
        self._participants[participant_id] = participant
        logger.debug(f"Registered participant {participant_id} from {origin_address} (online: {len(self._participants)})")
        return participant

    def remove(self, participant_id: str) -> Optional[Participant]:
        participant = self._participants.pop(participant_id, None)
        if participant is not None:
            logger.debug(f"Removed participant {participant_id} (online: {len(self._participants)})")
        return participant

    def get(self, participant_id: str) -> Optional[Participant]:
        return self._participants.get(participant_id)

    def __contains__(self, participant_id: str) -> bool:
        return participant_id in self._participants

    def count(self) -> int:
        return len(self._participants)

    def all(self) -> List[Participant]:
        return list(self._participants.values())
