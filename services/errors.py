class ChatEngineError(Exception):
    """Base class for errors raised by the matchmaking engine."""


class DuplicateParticipantError(ChatEngineError):
    """A connection id was registered twice; the gateway broke its contract."""

    def __init__(self, participant_id: str):
        super().__init__(f"Participant {participant_id} is already registered")
        self.participant_id = participant_id
