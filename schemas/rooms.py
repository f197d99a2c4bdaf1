from pydantic import BaseModel
from typing import List, Optional

from schemas.messages import QuestionPayload


class RoomSummary(BaseModel):
    room_id: str
    members_count: int
    total: int
    has_question: bool


class RoomDetailsResponse(BaseModel):
    room_id: str
    question: Optional[QuestionPayload] = None
    counts: List[int]
    total: int
    members_count: int


class HealthResponse(BaseModel):
    status: str
    rooms: int
