"""
Room state and the registry that owns it.

A Room holds one question at a time, its vote tallies and the ballots already
cast. Every transition either applies completely or raises a PollError and
leaves the room untouched.
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from constants import MAX_OPTIONS, MIN_OPTIONS
from errors import (
    DuplicateVote,
    Forbidden,
    InvalidOption,
    InvalidQuestion,
    NameRequired,
    NoActiveQuestion,
    QuestionMismatch,
)
from logging_config import get_logger
from schemas.messages import QuestionPayload
from session import Session

logger = get_logger(__name__)

BallotKey = Tuple[str, Union[str, int], str]


def normalize_name(name: str) -> str:
    return name.strip().lower()


@dataclass(frozen=True)
class Question:
    id: Union[str, int]
    text: str
    options: Tuple[str, ...]

    @classmethod
    def from_payload(cls, data) -> "Question":
        """Validate a raw question object and build an immutable Question."""
        try:
            payload = QuestionPayload.model_validate(data)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.debug(f"Rejected question payload, bad fields: {fields}")
            if "options" in fields:
                raise InvalidQuestion(f"Question needs {MIN_OPTIONS} to {MAX_OPTIONS} text options.")
            raise InvalidQuestion()
        return cls(id=payload.id, text=payload.text, options=tuple(payload.options))

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "options": list(self.options)}


@dataclass(eq=False)
class Room:
    room_id: str
    question: Optional[Question] = None
    counts: List[int] = field(default_factory=list)
    total: int = 0
    voted_by: Set[BallotKey] = field(default_factory=set)
    members: Set[Session] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    last_activity: float = field(default_factory=time.monotonic)

    def touch(self):
        self.last_activity = time.monotonic()

    def snapshot(self) -> dict:
        return {
            "roomId": self.room_id,
            "question": self.question.to_dict() if self.question else None,
            "counts": list(self.counts),
            "total": self.total,
        }

    def join(self, session: Session):
        self.members.add(session)
        self.touch()
        logger.debug(f"Session {session.connection_id} joined room {self.room_id} ({len(self.members)} members)")

    def leave(self, session: Session):
        if session in self.members:
            self.members.discard(session)
            self.touch()
            logger.debug(f"Session {session.connection_id} left room {self.room_id} ({len(self.members)} members)")

    def set_question(self, session: Session, data) -> Question:
        """Replace the active question. Tallies and ballots start over."""
        if not session.is_host:
            raise Forbidden()
        question = Question.from_payload(data)

        self.question = question
        self.counts = [0] * len(question.options)
        self.total = 0
        self.voted_by = set()
        self.touch()
        logger.info(f"Room {self.room_id}: question {question.id} set with {len(question.options)} options")
        return question

    def vote(self, question_id, option_index, name) -> BallotKey:
        """Record one ballot for the active question.

        A voter is identified by the trimmed, lower-cased name, so "Ana" and
        " ana " share a ballot. The option chosen on a retry is irrelevant.
        """
        if self.question is None:
            raise NoActiveQuestion()
        if isinstance(question_id, bool) or question_id != self.question.id:
            raise QuestionMismatch()
        # JSON clients may send 1.0 for 1; True must not count as option 1
        if isinstance(option_index, float) and option_index.is_integer():
            option_index = int(option_index)
        if not isinstance(option_index, int) or isinstance(option_index, bool):
            raise InvalidOption("optionIndex must be a whole number.")
        if not 0 <= option_index < len(self.counts):
            raise InvalidOption()
        if not isinstance(name, str) or not normalize_name(name):
            raise NameRequired()

        key = (self.room_id, self.question.id, normalize_name(name))
        if key in self.voted_by:
            raise DuplicateVote()

        self.voted_by.add(key)
        self.counts[option_index] += 1
        self.total += 1
        self.touch()
        logger.debug(f"Room {self.room_id}: vote for option {option_index} on {self.question.id} (total {self.total})")
        return key


class RoomRegistry:
    """All rooms of this process, keyed by room id.

    Rooms are created lazily the first time somebody joins them; reads that
    should not create a room use get().
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id}")
        return room

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def evict_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> List[str]:
        """Drop rooms with no members that have been idle for max_idle_seconds."""
        now = time.monotonic() if now is None else now
        evicted = [
            room_id for room_id, room in self._rooms.items()
            if not room.members and not room.lock.locked()
            and now - room.last_activity >= max_idle_seconds
        ]
        for room_id in evicted:
            del self._rooms[room_id]
            logger.info(f"Evicted idle room {room_id}")
        return evicted

    def clear(self):
        self._rooms.clear()
