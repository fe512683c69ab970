import logging
import time

from .disconnect import DisconnectionManager
from .notify import Notifier
from .registry import RoomRegistry
from .session import SessionController


class RoomSettings:
    """Timing and policy knobs, read from a Flask-style config mapping."""

    def __init__(self, host_grace_sec=300, player_grace_sec=30, arbitration_timeout_sec=60,
                 time_update_interval_sec=1, default_round_sec=180, min_round_sec=30,
                 max_round_sec=600, min_players=2, max_players=20, min_word_length=3):
        self.host_grace_sec = host_grace_sec
        self.player_grace_sec = player_grace_sec
        self.arbitration_timeout_sec = arbitration_timeout_sec
        self.time_update_interval_sec = time_update_interval_sec
        self.default_round_sec = default_round_sec
        self.min_round_sec = min_round_sec
        self.max_round_sec = max_round_sec
        self.min_players = min_players
        self.max_players = max_players
        self.min_word_length = min_word_length

    @classmethod
    def from_config(cls, config):
        return cls(
            host_grace_sec=float(config.get('HOST_GRACE_SEC', 300)),
            player_grace_sec=float(config.get('PLAYER_GRACE_SEC', 30)),
            arbitration_timeout_sec=float(config.get('ARBITRATION_TIMEOUT_SEC', 60)),
            time_update_interval_sec=float(config.get('TIME_UPDATE_INTERVAL_SEC', 1)),
            default_round_sec=int(config.get('DEFAULT_ROUND_SEC', 180)),
            min_round_sec=int(config.get('MIN_ROUND_SEC', 30)),
            max_round_sec=int(config.get('MAX_ROUND_SEC', 600)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            max_players=int(config.get('MAX_PLAYERS_PER_ROOM', 20)),
            min_word_length=int(config.get('MIN_WORD_LENGTH', 3)),
        )


class RoomManager:
    """Composes the registry, the round controller and the disconnect handling."""

    def __init__(self, emit, scheduler, settings=None, lookup=None, store=None, clock=time.time, logger=None):
        self.settings = settings or RoomSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.registry = RoomRegistry(max_players=self.settings.max_players)
        self.notifier = Notifier(emit, self.logger)
        self.session = SessionController(
            self.registry, self.notifier, scheduler, self.settings,
            lookup=lookup, store=store, clock=clock, logger=self.logger,
        )
        self.disconnects = DisconnectionManager(
            self.registry, self.notifier, scheduler, self.session, self.settings,
            clock=clock, logger=self.logger,
        )
