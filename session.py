from dataclasses import dataclass
from typing import Optional

HOST_ROLE = "host"
PLAYER_ROLE = "player"


@dataclass(eq=False)
class Session:
    """Identity of one live connection.

    Starts Unjoined (no room, name or role). A successful JOIN binds all three
    and the session stays Joined for the rest of the connection's life; a later
    JOIN only overwrites the identity.
    """
    connection_id: str
    room_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    @property
    def joined(self) -> bool:
        return self.room_id is not None

    @property
    def is_host(self) -> bool:
        return self.role == HOST_ROLE

    def bind(self, room_id: str, name: str, role: str):
        self.room_id = room_id
        self.name = name
        self.role = role
