import asyncio
import json
import os
import sys

import pytest

# Ensure the project root (containing app.py) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from broadcaster import Broadcaster
from dispatcher import PollDispatcher
from rooms import RoomRegistry


class MockConnection:
    """Records every frame the broadcaster sends to one connection."""

    def __init__(self, fail=False):
        self.sent: list[str] = []
        self.fail = fail

    async def send_text(self, text: str):
        # Yield like a real socket write so concurrent handlers can interleave
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(text)

    @property
    def frames(self) -> list[dict]:
        return [json.loads(t) for t in self.sent]

    def last(self, msg_type=None):
        for frame in reversed(self.frames):
            if msg_type is None or frame["type"] == msg_type:
                return frame
        return None

    def clear(self):
        self.sent.clear()


def msg(message_type, **payload):
    return json.dumps({"type": message_type, "payload": payload})


def join_msg(room_id, name, role):
    return msg("JOIN", roomId=room_id, name=name, role=role)


def question_msg(question_id, text, options):
    return msg("HOST_SET_QUESTION", question={"id": question_id, "text": text, "options": options})


def vote_msg(question_id, option_index, name):
    return msg("VOTE", questionId=question_id, optionIndex=option_index, name=name)


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def broadcaster():
    return Broadcaster()


@pytest.fixture()
def dispatcher(registry, broadcaster):
    return PollDispatcher(registry, broadcaster)


@pytest.fixture()
def connect(dispatcher):
    """Open a mock connection on the dispatcher: connect("c1") -> MockConnection."""
    def _connect(connection_id, fail=False):
        conn = MockConnection(fail=fail)
        dispatcher.connect(connection_id, conn.send_text)
        return conn
    return _connect
