from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParticipantStatus(str, Enum):
    WAITING = "waiting"
    CHATTING = "chatting"


class Participant(CamelModel):
    id: str
    origin_address: str
    connected_at: datetime = Field(default_factory=utcnow)
    room_id: Optional[str] = None
    status: ParticipantStatus = ParticipantStatus.WAITING


class Room(CamelModel):
    id: str
    # Insertion ordered, never holds duplicates
    members: list[str]
    created_at: datetime = Field(default_factory=utcnow)
