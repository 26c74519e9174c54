"""
Room Index - room membership for live connections.

Maps room -> connection ids and connection id -> rooms. The hub owns one
instance and only touches it from the event loop thread, so no lock is
needed; readers get copies, never the live sets.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from shared.config.constants import Room


class RoomIndex:
    """
    Bidirectional room membership.

    Room.ALL is never stored: every connection is implicitly a member and
    the hub resolves it against its full registry.
    """

    def __init__(self) -> None:
        self._by_room: dict[Room, set[str]] = defaultdict(set)
        self._by_connection: dict[str, set[Room]] = defaultdict(set)

    def add(self, connection_id: str, room: Room) -> bool:
        """Join a room. Returns False if the connection was already a member."""
        if room == Room.ALL:
            return False
        members = self._by_room[room]
        if connection_id in members:
            return False
        members.add(connection_id)
        self._by_connection[connection_id].add(room)
        return True

    def discard(self, connection_id: str, room: Room) -> bool:
        """Leave a room. Returns False if the connection was not a member."""
        members = self._by_room.get(room)
        if not members or connection_id not in members:
            return False
        members.discard(connection_id)
        if not members:
            del self._by_room[room]
        rooms = self._by_connection.get(connection_id)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._by_connection[connection_id]
        return True

    def remove_connection(self, connection_id: str) -> set[Room]:
        """Drop a connection from every room. Returns the rooms it left."""
        rooms = self._by_connection.pop(connection_id, set())
        for room in rooms:
            members = self._by_room.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._by_room[room]
        return rooms

    def rooms_of(self, connection_id: str) -> frozenset[Room]:
        return frozenset(self._by_connection.get(connection_id, ()))

    def members(self, rooms: Iterable[Room]) -> set[str]:
        """Union of the members of ``rooms``; each connection appears once."""
        recipients: set[str] = set()
        for room in rooms:
            recipients |= self._by_room.get(room, set())
        return recipients

    def count(self, room: Room) -> int:
        return len(self._by_room.get(room, ()))

    def snapshot(self) -> dict[str, int]:
        """Member count per non-empty room."""
        return {room.value: len(members) for room, members in self._by_room.items()}
