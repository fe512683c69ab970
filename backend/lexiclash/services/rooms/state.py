"""In-memory room state.

A :class:`Room` owns every participant record for its code. All mutation of
a room happens while holding ``room.lock``; the registry never touches room
internals without it.
"""

import threading
from typing import Dict, List, Optional

WAITING = 'waiting'
PLAYING = 'playing'
ENDED = 'ended'

HOST = 'host'
PLAYER = 'player'

# Timer slots stored on a room. Participant grace timers live on the
# corresponding DisconnectedPlayer entry instead.
ROUND_TIMER = 'round'
HOST_GRACE_TIMER = 'host_grace'
ARBITRATION_TIMER = 'arbitration'
REVIEW_TIMER = 'review'


class Binding:
    """What a connection handle is bound to."""

    __slots__ = ('code', 'role', 'name')

    def __init__(self, code: str, role: str, name: Optional[str] = None):
        self.code = code
        self.role = role
        self.name = name

    @property
    def is_host(self) -> bool:
        return self.role == HOST

    def __repr__(self):
        return f"Binding(code={self.code!r}, role={self.role!r}, name={self.name!r})"


class Submission:
    def __init__(self, word: str, timestamp: float, seconds_since_start: float):
        self.word = word
        self.timestamp = timestamp
        self.seconds_since_start = seconds_since_start
        # None until the end-of-round resolution pass sets it
        self.validated: Optional[bool] = None
        self.is_duplicate = False
        self.score = 0

    def to_dict(self):
        return {
            'word': self.word,
            'timestamp': self.timestamp,
            'secondsSinceRoundStart': self.seconds_since_start,
            'validated': self.validated,
            'isDuplicate': self.is_duplicate,
            'score': self.score,
        }


class Participant:
    def __init__(self, name: str, handle: Optional[str]):
        self.name = name
        self.handle = handle
        self.score = 0
        self.words: List[str] = []
        self.submissions: List[Submission] = []
        self.achievements: List[str] = []

    def reset_round(self) -> None:
        self.score = 0
        self.words = []
        self.submissions = []
        self.achievements = []

    def to_dict(self):
        return {
            'username': self.name,
            'score': self.score,
            'words': list(self.words),
            'achievements': list(self.achievements),
            'submissions': [s.to_dict() for s in self.submissions],
        }


class DisconnectedPlayer:
    __slots__ = ('disconnected_at', 'timer')

    def __init__(self, disconnected_at: float, timer=None):
        self.disconnected_at = disconnected_at
        self.timer = timer


class Room:
    def __init__(self, code: str, host_handle: Optional[str], name: Optional[str] = None, language: str = 'en'):
        self.code = code
        self.name = name or f"Room {code}"
        self.language = language or 'en'
        self.host_handle = host_handle
        self.phase = WAITING
        self.grid: Optional[List[List[str]]] = None
        self.started_at: Optional[float] = None
        self.ends_at: Optional[float] = None
        self.duration: Optional[int] = None
        self.first_word_found = False
        # Incremented on every round start; timers compare against it
        self.round_id = 0
        # Dictionary verdicts gathered at round end: word -> True/False/None
        self.dictionary_verdicts: Dict[str, Optional[bool]] = {}
        # True between round end and the dictionary verdicts arriving
        self.reviewing = False
        self.resolved = False
        self.participants: Dict[str, Participant] = {}
        self.disconnected: Dict[str, DisconnectedPlayer] = {}
        self.timers: Dict[str, object] = {}
        self.lock = threading.RLock()
        self.alive = True

    # ---- membership ----
    def active_names(self) -> List[str]:
        return [n for n in self.participants if n not in self.disconnected]

    def active_participants(self) -> List[Participant]:
        return [p for n, p in self.participants.items() if n not in self.disconnected]

    @property
    def host_connected(self) -> bool:
        return self.host_handle is not None

    def remaining_seconds(self, now: float) -> int:
        if self.ends_at is None:
            return 0
        return max(0, int(self.ends_at - now))

    def distinct_words(self) -> List[str]:
        seen = {}
        for p in self.participants.values():
            for s in p.submissions:
                seen.setdefault(s.word, None)
        return list(seen)

    def submitters_by_word(self) -> Dict[str, List[str]]:
        owners: Dict[str, List[str]] = {}
        for p in self.participants.values():
            for s in p.submissions:
                owners.setdefault(s.word, []).append(p.name)
        return owners

    # ---- timers ----
    def set_timer(self, slot: str, handle) -> None:
        self.cancel_timer(slot)
        self.timers[slot] = handle

    def cancel_timer(self, slot: str) -> None:
        handle = self.timers.pop(slot, None)
        if handle is not None:
            handle.cancel()

    def cancel_all_timers(self) -> None:
        for slot in list(self.timers):
            self.cancel_timer(slot)
        for entry in self.disconnected.values():
            if entry.timer is not None:
                entry.timer.cancel()

    def snapshot(self):
        """Serialisable view of the room without connection handles."""
        return {
            'code': self.code,
            'roomName': self.name,
            'language': self.language,
            'phase': self.phase,
            'users': self.active_names(),
            'disconnected': list(self.disconnected),
            'hostConnected': self.host_connected,
            'grid': self.grid,
            'startedAt': self.started_at,
            'endsAt': self.ends_at,
            'durationSeconds': self.duration,
            'firstWordFound': self.first_word_found,
            'participants': {name: p.to_dict() for name, p in self.participants.items()},
        }

    def summary(self):
        # Read without the room lock: copies of the key views only.
        names = list(self.participants)
        away = set(self.disconnected)
        return {
            'code': self.code,
            'roomName': self.name,
            'playerCount': len([n for n in names if n not in away]),
            'phase': self.phase,
            'language': self.language,
        }
