import asyncio
from typing import Awaitable, Callable, Dict

from logging_config import get_logger
from rooms import Room

logger = get_logger(__name__)

SendFunc = Callable[[str], Awaitable[None]]


class Broadcaster:
    """Delivers outgoing frames to live connections.

    The transport registers one send coroutine per connection; the broadcaster
    never touches sockets directly.
    """

    def __init__(self):
        self._connections: Dict[str, SendFunc] = {}

    def __len__(self):
        return len(self._connections)

    def register(self, connection_id: str, send: SendFunc):
        self._connections[connection_id] = send
        logger.debug(f"Registered connection {connection_id} (total: {len(self._connections)})")

    def unregister(self, connection_id: str):
        if self._connections.pop(connection_id, None) is not None:
            logger.debug(f"Unregistered connection {connection_id} (remaining: {len(self._connections)})")

    async def send(self, connection_id: str, message: str) -> bool:
        send = self._connections.get(connection_id)
        if send is None:
            logger.debug(f"Dropping message for unknown connection {connection_id}")
            return False
        try:
            await send(message)
            return True
        except Exception as e:
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            return False

    async def broadcast(self, room: Room, message: str) -> int:
        """Send message to every member of room. Returns how many sends succeeded."""
        connection_ids = [session.connection_id for session in room.members]
        if not connection_ids:
            return 0
        results = await asyncio.gather(*(self.send(cid, message) for cid in connection_ids))
        delivered = sum(1 for ok in results if ok)
        logger.debug(f"Broadcasted to {delivered}/{len(connection_ids)} connections in room {room.room_id}")
        return delivered
