"""In-memory rooms and the registry that owns them.

Rooms live only as long as at least one connection is a member. The
registry is a plain dict guarded by nothing but the single-process,
run-to-completion handler model; running several workers needs a
shared store in its place.
"""
import logging
from typing import Dict, List, Optional, Set

from roomrelay.codes import DEFAULT_ALPHABET, DEFAULT_CODE_LENGTH, generate_room_code


class RoomError(Exception):
    """Base class for room errors."""


class RoomNotFoundError(RoomError):
    """Raised when a room code is not in the registry."""

    def __init__(self, code):
        super().__init__(f"room {code!r} not found")
        self.code = code


class Room:
    def __init__(self, code: str):
        self.code = code
        self.members: Set[str] = set()
        self.wishlist: List = []

    def add_player(self, sid: str) -> None:
        self.members.add(sid)

    def remove_player(self, sid: str) -> None:
        # Emptiness is checked by the caller, a room never deletes itself
        self.members.discard(sid)

    def member_count(self) -> int:
        return len(self.members)

    def set_wishlist(self, items) -> None:
        self.wishlist = list(items)

    def get_wishlist(self) -> List:
        return list(self.wishlist)

    def to_dict(self):
        return {
            'code': self.code,
            'members': sorted(self.members),
            'wishlist': self.get_wishlist(),
        }


class RoomRegistry:
    """Maps room codes to live rooms and hands out fresh codes."""

    def __init__(self, code_length=DEFAULT_CODE_LENGTH, alphabet=DEFAULT_ALPHABET, logger=None):
        self.code_length = code_length
        self.alphabet = alphabet
        self.logger = logger or logging.getLogger(__name__)
        self._rooms: Dict[str, Room] = {}

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, code):
        return code in self._rooms

    def codes(self) -> List[str]:
        return list(self._rooms)

    def normalize(self, code: str) -> str:
        """Trim a user-typed code; fold case when the alphabet is single-case."""
        code = code.strip()
        if self.alphabet == self.alphabet.upper():
            code = code.upper()
        elif self.alphabet == self.alphabet.lower():
            code = code.lower()
        return code

    def create(self) -> Room:
        """Insert a new empty room under a code no live room uses.

        The loop has no retry cap; with the default alphabet and length
        a collision is already rare, two in a row practically never happen.
        """
        code = generate_room_code(self.code_length, self.alphabet)
        while code in self._rooms:
            self.logger.debug(f"[room-code-collision] code={code}")
            code = generate_room_code(self.code_length, self.alphabet)
        room = Room(code)
        self._rooms[code] = room
        return room

    def lookup(self, code) -> Optional[Room]:
        return self._rooms.get(code)

    def get(self, code) -> Room:
        room = self._rooms.get(code)
        if room is None:
            raise RoomNotFoundError(code)
        return room

    def remove(self, code) -> None:
        self._rooms.pop(code, None)

    def release(self, code, sid) -> bool:
        """Drop sid from the room and delete the room once it is empty.

        Returns True when the room was deleted.
        """
        room = self._rooms.get(code)
        if room is None:
            return False
        room.remove_player(sid)
        if room.member_count() == 0:
            self.remove(code)
            return True
        return False
