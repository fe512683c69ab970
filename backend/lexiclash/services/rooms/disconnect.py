"""Connection loss handling.

A lost host leaves the room running for a long grace window; a lost
participant is parked in the room's disconnected side-table for a short
one. Both windows are cancellable timers kept on the room, and both
expiry paths mutate the room through the same controller the commands use.
"""

import logging
import time
from functools import partial
from typing import Optional

from .session import CLOSING_MESSAGE
from .state import HOST_GRACE_TIMER, DisconnectedPlayer, Room


class DisconnectionManager:
    def __init__(self, registry, notifier, scheduler, session, settings,
                 clock=time.time, logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.notifier = notifier
        self.scheduler = scheduler
        self.session = session
        self.settings = settings
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def handle_disconnect(self, handle: str) -> None:
        binding = self.registry.remove_handle(handle)
        if binding is None:
            return
        room = self.registry.get(binding.code)
        if room is None:
            self.logger.warning(f"[anomaly] disconnect handle={handle} bound to missing room={binding.code}")
            return
        with room.lock:
            if not room.alive:
                return
            if binding.is_host:
                self._host_lost(room, handle)
            else:
                self._participant_lost(room, binding.name, handle)
        self.session.refresh_rooms()

    # ---- host ----
    def _host_lost(self, room: Room, handle: str) -> None:
        if room.host_handle != handle:
            self.logger.info(f"[disconnect] room={room.code} stale host handle ignored")
            return
        grace = self.settings.host_grace_sec
        room.host_handle = None
        room.set_timer(HOST_GRACE_TIMER, self.scheduler.schedule(
            grace, partial(self._host_grace_expired, room), name=f"host-grace:{room.code}",
        ))
        self.logger.info(f"[disconnect] room={room.code} host lost, grace={grace}s phase={room.phase}")
        self.notifier.to_participants(room, 'hostDisconnected', {'graceSeconds': grace})
        self.session.save(room)

    def _host_grace_expired(self, room: Room) -> None:
        with room.lock:
            if not room.alive or room.host_connected:
                return
            self.logger.info(f"[host-timeout] room={room.code} host did not return, closing")
            self.notifier.to_participants(room, 'hostLeftRoomClosing', {'message': CLOSING_MESSAGE})
            self.session.destroy_room(room, 'host-timeout')

    # ---- participants ----
    def _participant_lost(self, room: Room, name: str, handle: str) -> None:
        participant = room.participants.get(name)
        if participant is None or participant.handle != handle:
            self.logger.info(f"[disconnect] room={room.code} stale handle for {name!r} ignored")
            return
        grace = self.settings.player_grace_sec
        participant.handle = None
        entry = DisconnectedPlayer(self.clock())
        room.disconnected[name] = entry
        entry.timer = self.scheduler.schedule(
            grace, partial(self._participant_grace_expired, room, name, entry),
            name=f"player-grace:{room.code}:{name}",
        )
        self.logger.info(f"[disconnect] room={room.code} player={name!r} grace={grace}s")
        self.notifier.to_room(room, 'playerDisconnected', {'username': name, 'graceSeconds': grace})
        self.notifier.roster(room)
        self.notifier.leaderboard(room)
        if not self.session.after_participant_removed(room):
            self.session.save(room)

    def _participant_grace_expired(self, room: Room, name: str, entry: DisconnectedPlayer) -> None:
        with room.lock:
            if not room.alive or room.disconnected.get(name) is not entry:
                return
            del room.disconnected[name]
            room.participants.pop(name, None)
            self.logger.info(f"[purge] room={room.code} player={name!r} grace expired")
            self.notifier.to_room(room, 'playerLeft', {'username': name, 'reason': 'timeout'})
            self.notifier.leaderboard(room)
            self.session.save(room)
