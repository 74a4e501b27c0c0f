"""Room lifecycle engine.

``ChatEngine`` owns all matchmaking state for one process. Each public
method handles one inbound event to completion: it never awaits, so events
from different connections only interleave between calls.
"""
from dataclasses import dataclass
from typing import Optional

from logging_config import get_logger
from schemas.admin import AdminSnapshot, DebugSnapshot
from schemas.chat import Participant, Room
from schemas.events import AdminAuth, AdminRefresh, ClientEvent, OutboundEvent, SendMessage, SkipChat, StatusPayload, Typing
from services.emitter import Emitter
from services.errors import DuplicateParticipantError
from services.matchmaker import Matchmaker
from services.notifier import BroadcastNotifier, MessageCounter
from services.presence import PresenceRegistry
from services.rooms import RoomManager

logger = get_logger(__name__)

CONNECTED_MESSAGE = "You are connected to a stranger!"
SEARCHING_MESSAGE = "Searching for a stranger..."
PARTNER_LEFT_MESSAGE = "Stranger has left the chat. Searching for a new stranger..."


@dataclass(frozen=True)
class EngineSettings:
    admin_secret: Optional[str] = None
    broadcast_interval_seconds: float = 3.0


class ChatEngine:
    def __init__(self, emitter: Emitter, settings: EngineSettings = EngineSettings()):
        self.settings = settings
        self.emitter = emitter
        self.registry = PresenceRegistry()
        self.rooms = RoomManager(self.registry)
        self.matchmaker = Matchmaker(self.registry, self.rooms)
        self.counter = MessageCounter()
        self.notifier = BroadcastNotifier(
            self.registry,
            self.rooms,
            self.matchmaker,
            self.counter,
            emitter,
            settings.admin_secret,
        )

    # -- lifecycle events ------------------------------------------------

    def connect(self, participant_id: str, origin_address: str) -> Participant:
        try:
            participant = self.registry.register(participant_id, origin_address)
        except DuplicateParticipantError:
            # Existing entry stays as it is
            return self.registry.get(participant_id)

        logger.info(f"User {participant_id} connected from IP: {origin_address}")
        self._broadcast_online_count()
        self._enter_matchmaking(participant)
        self.notifier.publish()
        return participant

    def disconnect(self, participant_id: str):
        participant = self.registry.remove(participant_id)
        self.notifier.discard(participant_id)
        if participant is None:
            return

        logger.info(f"User disconnected: {participant_id}")
        self.matchmaker.release(participant_id)
        self._leave_room(participant)

        self._broadcast_online_count()
        self.notifier.publish()

    # -- application events ----------------------------------------------

    def send_message(self, participant_id: str, text) -> bool:
        participant = self.registry.get(participant_id)
        if participant is None or not isinstance(text, str) or not text.strip():
            return False
        room = self.rooms.room_of(participant_id)
        if room is None:
            return False

        total = self.counter.increment()
        logger.debug(f"Message relayed in {room.id} (total messages: {total})")
        self.emitter.emit_to_room(room, OutboundEvent.RECEIVE_MESSAGE, text, exclude=participant_id)
        self.notifier.publish()
        return True

    def typing(self, participant_id: str, is_typing) -> bool:
        room = self.rooms.room_of(participant_id)
        if room is None or not isinstance(is_typing, bool):
            return False
        self.emitter.emit_to_room(room, OutboundEvent.TYPING, is_typing, exclude=participant_id)
        return True

    def skip_chat(self, participant_id: str):
        participant = self.registry.get(participant_id)
        if participant is None:
            return
        logger.info(f"Skip requested by: {participant_id}")

        # Out of the slot first so the partner cannot be paired back into it
        self.matchmaker.release(participant_id)
        self._leave_room(participant)
        self._enter_matchmaking(participant, freed=True)
        self.notifier.publish()

    def admin_auth(self, participant_id: str, supplied_secret) -> bool:
        if participant_id not in self.registry:
            return False
        logger.info(f"Admin auth attempt from: {participant_id}")
        return self.notifier.authenticate(participant_id, supplied_secret)

    def admin_refresh(self, participant_id: str) -> bool:
        if not self.notifier.is_observer(participant_id):
            return False
        logger.debug(f"Manual refresh requested by admin: {participant_id}")
        self.notifier.publish()
        return True

    def dispatch(self, participant_id: str, event: ClientEvent):
        if isinstance(event, SendMessage):
            self.send_message(participant_id, event.data)
        elif isinstance(event, Typing):
            self.typing(participant_id, event.data)
        elif isinstance(event, SkipChat):
            self.skip_chat(participant_id)
        elif isinstance(event, AdminAuth):
            self.admin_auth(participant_id, event.data)
        elif isinstance(event, AdminRefresh):
            self.admin_refresh(participant_id)

    # -- read side -------------------------------------------------------

    def snapshot(self) -> AdminSnapshot:
        return self.notifier.build_snapshot()

    def debug_snapshot(self) -> DebugSnapshot:
        return self.notifier.build_debug_snapshot()

    def publish(self) -> int:
        return self.notifier.publish()

    def has_observers(self) -> bool:
        return self.notifier.has_observers()

    # -- internals -------------------------------------------------------

    def _enter_matchmaking(self, participant: Participant, freed: bool = False):
        if freed:
            room = self.matchmaker.on_participant_freed(participant)
        else:
            room = self.matchmaker.on_arrival(participant)

        if room is not None:
            self._announce_pairing(room)
        else:
            self._send_status(participant.id, SEARCHING_MESSAGE, connected=False)

    def _leave_room(self, participant: Participant):
        """Take ``participant`` out of its room and requeue the partner left behind."""
        partner_id = self.rooms.remove_participant(participant.id)
        participant.room_id = None
        if partner_id is None:
            return

        partner = self.registry.get(partner_id)
        # The partner cannot wait in the slot while still a room member
        self.rooms.remove_participant(partner_id)
        if partner is None:
            return

        logger.info(f"Partner {partner_id} of {participant.id} released back to matchmaking")
        self._send_status(partner_id, PARTNER_LEFT_MESSAGE, connected=False)
        room = self.matchmaker.on_participant_freed(partner)
        if room is not None:
            self._announce_pairing(room)

    def _announce_pairing(self, room: Room):
        payload = StatusPayload(message=CONNECTED_MESSAGE, connected=True).model_dump()
        self.emitter.emit_to_room(room, OutboundEvent.STATUS, payload)

    def _send_status(self, participant_id: str, message: str, connected: bool):
        payload = StatusPayload(message=message, connected=connected).model_dump()
        self.emitter.emit_to_one(participant_id, OutboundEvent.STATUS, payload)

    def _broadcast_online_count(self):
        self.emitter.emit_to_all(OutboundEvent.UPDATE_ONLINE_COUNT, self.registry.count())
