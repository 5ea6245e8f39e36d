"""Per-connection state, one store per Socket.IO namespace."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set


@dataclass
class ConnectionSession:
    sid: str
    namespace: str
    name: str = ''
    room_code: Optional[str] = None
    # delivery groups joined on this namespace
    channels: Set[str] = field(default_factory=set)

    @property
    def in_room(self) -> bool:
        return self.room_code is not None


class SessionStore:
    def __init__(self, namespace: str):
        self.namespace = namespace
        self._sessions: Dict[str, ConnectionSession] = {}

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, sid):
        return sid in self._sessions

    def open(self, sid, name='') -> ConnectionSession:
        session = ConnectionSession(sid=sid, namespace=self.namespace, name=name)
        self._sessions[sid] = session
        return session

    def get(self, sid) -> Optional[ConnectionSession]:
        return self._sessions.get(sid)

    def close(self, sid) -> Optional[ConnectionSession]:
        return self._sessions.pop(sid, None)


class ChannelGroups:
    """Room-code delivery groups of a namespace that has no registry.

    Members are tracked here so peer lists do not depend on the
    transport's room bookkeeping.
    """

    def __init__(self):
        self._groups: Dict[str, Set[str]] = {}

    def __contains__(self, code):
        return code in self._groups

    def join(self, code, sid) -> None:
        self._groups.setdefault(code, set()).add(sid)

    def leave(self, code, sid) -> None:
        members = self._groups.get(code)
        if members is None:
            return
        members.discard(sid)
        if not members:
            del self._groups[code]

    def members(self, code) -> Set[str]:
        return set(self._groups.get(code, ()))

    def peers(self, code, sid) -> List[str]:
        return [member for member in self._groups.get(code, ()) if member != sid]
