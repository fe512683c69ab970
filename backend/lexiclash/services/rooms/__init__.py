"""Room orchestration core.

Pure helpers (board paths, scoring, achievements) plus the stateful pieces
that run many rooms at once: registry, round controller, disconnect
handling and outbound fan-out. Nothing here imports Flask; transport,
timers, dictionary and durability are injected by the application factory.
"""

from .manager import RoomManager, RoomSettings  # noqa: F401
