from __future__ import annotations

import logging
from typing import Dict, List, Set

from relay.state.connection import Connection


logger = logging.getLogger(__name__)


class RoomRegistry:
    """Maps room names to the connections currently joined to them.

    In-memory and single-process only. Methods never await, so on one event
    loop each call is atomic with respect to other connection handlers.
    """

    def __init__(self) -> None:
        self._room_to_members: Dict[str, Set[Connection]] = {}

    def join(self, connection: Connection, room: str) -> None:
        if connection.room is not None and connection.room != room:
            self.leave(connection)
        members = self._room_to_members.setdefault(room, set())
        members.add(connection)
        connection.room = room
        logger.debug("join room=%s members=%d", room, len(members))

    def leave(self, connection: Connection) -> None:
        room = connection.room
        if room is None:
            return
        members = self._room_to_members.get(room)
        if members is not None:
            members.discard(connection)
            if not members:
                # Empty rooms never persist
                self._room_to_members.pop(room, None)
                logger.debug("room closed room=%s", room)
        connection.room = None

    def members(self, room: str) -> List[Connection]:
        """Snapshot of a room's members; empty for unknown rooms."""
        return list(self._room_to_members.get(room, ()))

    def rooms(self) -> List[str]:
        return list(self._room_to_members)

    def __contains__(self, room: object) -> bool:
        return room in self._room_to_members

    def __len__(self) -> int:
        return len(self._room_to_members)
