import os
import sys
import pytest

# Ensure the backend root (containing the `lexiclash` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from lexiclash import create_app, db, socketio, NAMESPACE
from lexiclash.services.rooms import RoomManager, RoomSettings
from lexiclash.services.rooms.dictionary import DictionaryLookup, WordDictionary
from lexiclash.services.rooms.timers import TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = 'http://localhost:5173'
    MIN_PLAYERS = 2
    SNAPSHOTS_ENABLED = True


GRID = [
    ['c', 'a', 't', 's'],
    ['o', 'r', 'e', 'x'],
    ['d', 'o', 'g', 'y'],
    ['q', 'u', 'i', 'z'],
]

ENGLISH = ['cat', 'cats', 'tea', 'dog', 'dogs', 'core', 'cart', 'rat', 'ore', 'god']


class ManualClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now


class ManualScheduler:
    """Timers that only fire when a test advances the clock.

    Zero-delay one-shot work runs as soon as it is scheduled.
    """

    def __init__(self, clock):
        self.clock = clock
        self.entries = []

    def schedule(self, delay, callback, *, interval=None, name='timer'):
        handle = TimerHandle(name)
        if delay <= 0 and interval is None:
            # follow-up work runs straight away
            handle.fired = True
            callback()
            return handle
        self.entries.append({'handle': handle, 'due': self.clock.now + delay,
                             'callback': callback, 'interval': interval})
        return handle

    def active(self, prefix=''):
        return [e['handle'] for e in self.entries if e['handle'].active and e['handle'].name.startswith(prefix)]

    def advance(self, seconds):
        target = self.clock.now + seconds
        while True:
            due = [e for e in self.entries if e['handle'].active and e['due'] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: e['due'])
            self.clock.now = max(self.clock.now, entry['due'])
            entry['callback']()
            if entry['interval'] is None:
                entry['handle'].fired = True
            else:
                entry['due'] += entry['interval']
        self.clock.now = target


class Recorder:
    """Captures outbound messages as (event, payload, to)."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, to=None):
        self.sent.append((event, payload, to))

    def events(self, to):
        return [e for e, _, t in self.sent if t == to]

    def payloads(self, event, to=None):
        return [p for e, p, t in self.sent if e == event and (to is None or t == to)]

    def last(self, event, to):
        found = self.payloads(event, to)
        return found[-1] if found else None

    def count(self, event, to=None):
        return len(self.payloads(event, to))

    def clear(self):
        self.sent.clear()


def make_dictionary():
    dictionary = WordDictionary()
    dictionary.add_words('en', ENGLISH)
    return dictionary


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def settings():
    return RoomSettings(host_grace_sec=300, player_grace_sec=30, arbitration_timeout_sec=60,
                        time_update_interval_sec=1, default_round_sec=60, min_round_sec=10,
                        max_round_sec=600, min_players=2, max_players=4, min_word_length=3)


@pytest.fixture()
def manager(recorder, scheduler, clock, settings):
    lookup = DictionaryLookup(make_dictionary(), timeout=1.0)
    return RoomManager(recorder, scheduler, settings=settings, lookup=lookup, clock=clock)


@pytest.fixture()
def room_with_players(manager):
    """Room ABCD hosted by 'host' with alice and bob joined."""
    manager.session.create_room('host', 'abcd', 'Test Room', 'en')
    manager.session.join_room('alice', 'ABCD', 'Alice')
    manager.session.join_room('bob', 'ABCD', 'Bob')
    return manager.registry.get('ABCD')


@pytest.fixture()
def playing_room(manager, room_with_players, recorder):
    manager.session.start_round('host', GRID, 60)
    recorder.clear()
    return room_with_players


@pytest.fixture()
def flask_app(clock, scheduler):
    application = create_app(TestConfig, scheduler=scheduler, clock=clock, dictionary=make_dictionary())
    with application.app_context():
        # Ensure models are imported so tables are created
        import lexiclash.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def make():
        test_client = socketio.test_client(flask_app, namespace=NAMESPACE)
        test_client.get_received(NAMESPACE)
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass
