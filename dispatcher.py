"""
Command dispatch for the poll relay.

Flow for each inbound frame:
1. decode the text into a Command
2. JOIN binds the connection's Session; anything else needs a joined Session
3. apply the command to the Room while holding the room lock
4. broadcast the new snapshot to the room, still under the lock, so members
   see snapshots in the order the operations happened

Any PollError is reported to the sender only.
"""
from typing import Dict, Optional

from pydantic import ValidationError

import codec
from broadcaster import Broadcaster, SendFunc
from errors import InvalidJoin, NotJoined, PollError, UnsupportedType
from logging_config import get_logger
from rooms import Room, RoomRegistry
from schemas.messages import HOST_SET_QUESTION, JOIN, VOTE, JoinPayload
from session import Session

logger = get_logger(__name__)


class PollDispatcher:
    def __init__(self, registry: RoomRegistry, broadcaster: Broadcaster):
        self.registry = registry
        self.broadcaster = broadcaster
        self._sessions: Dict[str, Session] = {}

    def __len__(self):
        return len(self._sessions)

    def get_session(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def connect(self, connection_id: str, send: SendFunc) -> Session:
        session = Session(connection_id=connection_id)
        self._sessions[connection_id] = session
        self.broadcaster.register(connection_id, send)
        logger.info(f"Connection {connection_id} opened")
        return session

    async def disconnect(self, connection_id: str):
        """Leave: forget the connection and drop it from its room. Never raises for unknown ids."""
        session = self._sessions.pop(connection_id, None)
        self.broadcaster.unregister(connection_id)
        if session is None:
            return
        if session.joined:
            room = self.registry.get(session.room_id)
            if room is not None:
                async with room.lock:
                    room.leave(session)
            logger.info(f"User {session.name} ({connection_id}) left room {session.room_id}")
        else:
            logger.info(f"Connection {connection_id} closed before joining")

    async def handle(self, connection_id: str, raw):
        session = self._sessions.get(connection_id)
        if session is None:
            logger.warning(f"Message from unregistered connection {connection_id} ignored")
            return
        try:
            command = codec.decode(raw)
            logger.debug(f"Received {command.type} from connection {connection_id}")
            if command.type == JOIN:
                await self._join(session, command.payload)
                return
            if not session.joined:
                raise NotJoined()
            room = self.registry.get_or_create(session.room_id)
            async with room.lock:
                self._apply(room, session, command)
                await self.broadcaster.broadcast(room, codec.encode_state(room.snapshot()))
        except PollError as e:
            logger.warning(f"Rejected message from connection {connection_id}: {e.code}: {e.message}")
            await self.broadcaster.send(connection_id, codec.encode_error(e))

    async def _join(self, session: Session, payload: dict):
        try:
            join = JoinPayload.model_validate(payload)
        except ValidationError:
            raise InvalidJoin()

        previous = session.room_id
        if previous is not None and previous != join.roomId:
            old_room = self.registry.get(previous)
            if old_room is not None:
                async with old_room.lock:
                    old_room.leave(session)
            logger.info(f"Connection {session.connection_id} moved from room {previous} to {join.roomId}")

        room = self.registry.get_or_create(join.roomId)
        async with room.lock:
            session.bind(join.roomId, join.name, join.role)
            room.join(session)
            logger.info(f"User {join.name} joined room {join.roomId} as {join.role} ({len(room.members)} members)")
            await self.broadcaster.send(session.connection_id, codec.encode_state(room.snapshot()))

    def _apply(self, room: Room, session: Session, command: codec.Command):
        if command.type == HOST_SET_QUESTION:
            room.set_question(session, command.payload.get("question"))
        elif command.type == VOTE:
            # Fields stay untyped here; Room.vote checks them in a fixed order
            payload = command.payload
            room.vote(payload.get("questionId"), payload.get("optionIndex"), payload.get("name"))
        else:
            raise UnsupportedType(command.type)
