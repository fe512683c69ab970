"""Room registry: code -> room and connection handle -> binding.

The two tables are guarded by one registry lock. Lock order is always
room lock first, registry lock second; the registry lock is never held
while waiting on a room lock.
"""

import threading
from typing import Dict, List, Optional, Tuple

from .errors import NameTaken, RoomExists, RoomFull, RoomNotFound
from .state import HOST, HOST_GRACE_TIMER, PLAYER, Binding, Participant, Room


class RoomRegistry:
    def __init__(self, max_players: int = 20):
        self.max_players = max_players
        self._rooms: Dict[str, Room] = {}
        self._handles: Dict[str, Binding] = {}
        self._lock = threading.RLock()

    # ---- lookups ----
    def get(self, code: Optional[str]) -> Optional[Room]:
        if not code:
            return None
        with self._lock:
            return self._rooms.get(code)

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def count(self) -> int:
        with self._lock:
            return len(self._rooms)

    def resolve(self, handle: str) -> Tuple[Optional[Room], Optional[Binding]]:
        with self._lock:
            binding = self._handles.get(handle)
            room = self._rooms.get(binding.code) if binding else None
        if binding is None or room is None:
            return None, binding
        return room, binding

    def _bind(self, handle: str, binding: Binding) -> None:
        with self._lock:
            self._handles[handle] = binding

    def remove_handle(self, handle: str) -> Optional[Binding]:
        with self._lock:
            return self._handles.pop(handle, None)

    def is_bound(self, handle: str) -> bool:
        with self._lock:
            return handle in self._handles

    # ---- commands ----
    def create_room(self, code: str, host_handle: str, room_name: Optional[str] = None,
                    language: str = 'en') -> Tuple[Room, bool]:
        """Create a room, or rebind the host of a room waiting for its host.

        Returns ``(room, rebound)``. Raises :class:`RoomExists` when the code
        belongs to a room whose host is still connected.
        """
        with self._lock:
            existing = self._rooms.get(code)
            if existing is None:
                room = Room(code, host_handle, room_name, language)
                self._rooms[code] = room
                self._handles[host_handle] = Binding(code, HOST)
                return room, False

        with existing.lock:
            if not existing.alive or existing.host_connected:
                raise RoomExists(code)
            existing.cancel_timer(HOST_GRACE_TIMER)
            existing.host_handle = host_handle
            self._bind(host_handle, Binding(code, HOST))
            return existing, True

    def join_room(self, code: str, name: str, handle: str) -> Tuple[Room, Participant, bool]:
        """Bind ``handle`` to ``name`` in room ``code``.

        Returns ``(room, participant, rebound)``; a name waiting in the
        disconnected side-table is rebound with its history intact.
        """
        room = self.get(code)
        if room is None:
            raise RoomNotFound(code)
        with room.lock:
            if not room.alive:
                raise RoomNotFound(code)
            entry = room.disconnected.pop(name, None)
            if entry is not None:
                if entry.timer is not None:
                    entry.timer.cancel()
                participant = room.participants[name]
                participant.handle = handle
                self._bind(handle, Binding(code, PLAYER, name))
                return room, participant, True
            if name in room.participants:
                raise NameTaken(code)
            if len(room.participants) >= self.max_players:
                raise RoomFull(code)
            participant = Participant(name, handle)
            room.participants[name] = participant
            self._bind(handle, Binding(code, PLAYER, name))
            return room, participant, False

    def discard(self, room: Room) -> None:
        """Forget ``room`` and every handle bound to it."""
        with self._lock:
            if self._rooms.get(room.code) is not room:
                return
            del self._rooms[room.code]
            stale = [h for h, b in self._handles.items() if b.code == room.code]
            for handle in stale:
                del self._handles[handle]

    def summary(self) -> List[dict]:
        return [room.summary() for room in self.rooms()]
