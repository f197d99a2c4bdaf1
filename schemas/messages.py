from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator
from typing import Any, Dict, List, Literal, Optional, Union

from constants import MAX_OPTIONS, MIN_OPTIONS
from session import HOST_ROLE, PLAYER_ROLE

JOIN = "JOIN"
HOST_SET_QUESTION = "HOST_SET_QUESTION"
VOTE = "VOTE"
STATE = "STATE"
ERROR = "ERROR"

# Opaque host-supplied id; 1 and "1" are different questions
QuestionId = Union[StrictStr, StrictInt]


class Envelope(BaseModel):
    type: StrictStr = Field(min_length=1)
    payload: Dict[str, Any]


class JoinPayload(BaseModel):
    roomId: StrictStr = Field(min_length=1)
    name: StrictStr = Field(min_length=1)
    role: Literal[HOST_ROLE, PLAYER_ROLE]


class QuestionPayload(BaseModel):
    id: QuestionId
    text: StrictStr = Field(min_length=1)
    options: List[StrictStr] = Field(min_length=MIN_OPTIONS, max_length=MAX_OPTIONS)

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v):
        if v == "" or v == 0:
            raise ValueError("question id must not be empty")
        return v


class StatePayload(BaseModel):
    roomId: str
    question: Optional[QuestionPayload] = None
    counts: List[int]
    total: int


class ErrorPayload(BaseModel):
    message: str
    code: str
