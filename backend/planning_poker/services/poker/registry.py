from typing import Dict, List, Optional

from .exceptions import InvalidRoom
from .session import RoomSession


MAX_ROOM_ID_LENGTH = 64


def normalize_room_id(room_id) -> str:
    if not isinstance(room_id, str) or not room_id.strip():
        raise InvalidRoom('room id is required')
    room_id = room_id.strip()
    if len(room_id) > MAX_ROOM_ID_LENGTH:
        raise InvalidRoom(f"room id longer than {MAX_ROOM_ID_LENGTH} characters")
    return room_id


class RoomRegistry:
    """Keyed collection of isolated room sessions.

    Sessions are created on first use and dropped through
    :meth:`evict_if_empty` once nobody is left in them.
    """

    def __init__(self, session_factory=RoomSession):
        self._session_factory = session_factory
        self._sessions: Dict[str, RoomSession] = {}

    def __len__(self):
        return len(self._sessions)

    def configure(self, session_factory) -> None:
        self._session_factory = session_factory

    def __contains__(self, room_id):
        return room_id in self._sessions

    def get(self, room_id: str) -> Optional[RoomSession]:
        return self._sessions.get(room_id)

    def get_or_create(self, room_id: str) -> RoomSession:
        room_id = normalize_room_id(room_id)
        session = self._sessions.get(room_id)
        if session is None:
            session = self._session_factory(room_id)
            self._sessions[room_id] = session
        return session

    def room_ids(self) -> List[str]:
        return list(self._sessions)

    def evict_if_empty(self, room_id: str) -> bool:
        session = self._sessions.get(room_id)
        if session is None or not session.is_empty:
            return False
        # A scheduled reveal still has to fire for this room
        if session.pending_reveal is not None:
            return False
        del self._sessions[room_id]
        return True

    def clear(self) -> None:
        self._sessions.clear()
