from typing import Any, Optional, Protocol

from schemas.chat import Room
from schemas.events import OutboundEvent


class Emitter(Protocol):
    """Outbound half of the push channel as seen by the engine.

    Implementations must not block or suspend: the engine calls these from
    inside a run-to-completion event handler.
    """

    def emit_to_one(self, connection_id: str, event: OutboundEvent, data: Any = None) -> None:
        ...

    def emit_to_room(self, room: Room, event: OutboundEvent, data: Any = None, exclude: Optional[str] = None) -> None:
        ...

    def emit_to_all(self, event: OutboundEvent, data: Any = None) -> None:
        ...
