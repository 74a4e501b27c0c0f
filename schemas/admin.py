from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from schemas.chat import CamelModel, Participant, Room, utcnow


class AdminStats(CamelModel):
    total_online: int
    total_rooms: int
    waiting_count: int = Field(ge=0, le=1)
    total_messages: int


class AdminSnapshot(CamelModel):
    participants: list[Participant]
    waiting_slot_id: Optional[str] = None
    rooms: list[Room]
    stats: AdminStats
    timestamp: datetime = Field(default_factory=utcnow)


class DebugSnapshot(AdminSnapshot):
    admin_observers: list[str]


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class AdminLoginResponse(BaseModel):
    redirect: str
