"""Frames exchanged over the push channel.

Every frame is a JSON object ``{"event": <name>, "data": <payload>}``.
Inbound frames are parsed into one of the tagged variants below at the
gateway; anything that fails validation is dropped there.
"""
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictStr, TypeAdapter, ValidationError


class InboundEvent(str, Enum):
    SEND_MESSAGE = "sendMessage"
    TYPING = "typing"
    SKIP_CHAT = "skipChat"
    ADMIN_AUTH = "adminAuth"
    ADMIN_REFRESH = "adminRefresh"


class OutboundEvent(str, Enum):
    STATUS = "status"
    RECEIVE_MESSAGE = "receiveMessage"
    TYPING = "typing"
    UPDATE_ONLINE_COUNT = "updateOnlineCount"
    ADMIN_DATA = "adminData"
    ADMIN_AUTH_SUCCESS = "adminAuthSuccess"


class SendMessage(BaseModel):
    event: Literal["sendMessage"]
    data: StrictStr


class Typing(BaseModel):
    event: Literal["typing"]
    data: StrictBool


class SkipChat(BaseModel):
    event: Literal["skipChat"]
    data: Any = None


class AdminAuth(BaseModel):
    event: Literal["adminAuth"]
    data: StrictStr


class AdminRefresh(BaseModel):
    event: Literal["adminRefresh"]
    data: Any = None


ClientEvent = Annotated[
    Union[SendMessage, Typing, SkipChat, AdminAuth, AdminRefresh],
    Field(discriminator="event"),
]

_client_event_adapter = TypeAdapter(ClientEvent)


def parse_client_event(raw: str) -> Optional[ClientEvent]:
    """Validate a raw text frame; ``None`` for anything malformed."""
    try:
        return _client_event_adapter.validate_json(raw)
    except ValidationError:
        return None


class StatusPayload(BaseModel):
    message: str
    connected: bool
    clear: bool = True


class ServerFrame(BaseModel):
    event: OutboundEvent
    data: Any = None
