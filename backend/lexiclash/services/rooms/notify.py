"""Outbound fan-out.

Turns room events into addressed messages: the host connection, every
connected participant, or one specific connection. The transport is an
``emit(event, payload, to=None)`` callable; ``to=None`` reaches every
connection on the namespace.
"""

import logging
from typing import Callable, Optional

from . import scoring
from .state import Room


class Notifier:
    def __init__(self, emit: Callable, logger: Optional[logging.Logger] = None):
        self._emit = emit
        self._logger = logger or logging.getLogger(__name__)

    def _send(self, event: str, payload: dict, to=None) -> None:
        try:
            self._emit(event, payload, to=to)
        except Exception:
            self._logger.warning(f"[emit-failed] event={event} to={to}", exc_info=True)

    def to_handle(self, handle: Optional[str], event: str, payload: Optional[dict] = None) -> None:
        if handle is None:
            return
        self._send(event, payload or {}, to=handle)

    def to_host(self, room: Room, event: str, payload: Optional[dict] = None) -> None:
        if room.host_handle is None:
            self._logger.debug(f"[host-msg-skip] room={room.code} event={event} host offline")
            return
        self._send(event, payload or {}, to=room.host_handle)

    def to_participants(self, room: Room, event: str, payload: Optional[dict] = None) -> None:
        for participant in room.active_participants():
            if participant.handle is not None:
                self._send(event, payload or {}, to=participant.handle)

    def to_room(self, room: Room, event: str, payload: Optional[dict] = None) -> None:
        """Participants first, then the host."""
        self.to_participants(room, event, payload)
        self.to_host(room, event, payload)

    # ---- common composites ----
    def roster(self, room: Room) -> None:
        self.to_room(room, 'updateUsers', {'users': room.active_names()})

    def leaderboard(self, room: Room) -> None:
        self.to_room(room, 'updateLeaderboard', {'leaderboard': scoring.leaderboard(room)})

    def active_rooms(self, summary: list, to=None) -> None:
        self._send('activeRooms', {'rooms': summary, 'count': len(summary)}, to=to)
