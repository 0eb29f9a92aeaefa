import heapq
import itertools
import os
import random
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from trivia import create_app, db, socketio
from trivia.services.games import GameEngine, RoomRegistry
from trivia.services.games.questions import InMemoryQuestionProvider
from trivia.services.games.scheduler import TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    QUESTION_DURATION_SEC = 15
    FIRST_QUESTION_DELAY_SEC = 1
    NEXT_QUESTION_DELAY_SEC = 3
    WINNING_SCORE = 10
    GRADE_LEVELS = ('6th', '7th', '8th')
    AUTO_SEED_QUESTIONS = True


SAMPLE_BANK = {
    '6th': {
        'Ratios': [
            {'question': 'What is 25% of 80?', 'answers': ['25', '20', '16', '40'], 'correctIndex': 1},
            {'question': '12 is what percent of 48?', 'answers': ['12%', '20%', '25%', '40%'], 'correctIndex': 2},
        ],
        'Geometry': [
            {'question': 'How many faces does a cube have?', 'answers': ['4', '6', '8', '12'], 'correctIndex': 1},
        ],
    },
    '7th': {
        'Number System': [
            {'question': 'What is -8 + 13?', 'answers': ['-21', '5', '-5', '21'], 'correctIndex': 1},
        ],
    },
    '8th': {},
}


class ManualScheduler:
    """Virtual clock: callbacks only run when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._jobs = []
        self._seq = itertools.count()

    def call_later(self, delay, callback):
        return self._push(delay, callback, None)

    def call_every(self, interval, callback):
        return self._push(interval, callback, interval)

    def _push(self, delay, callback, interval):
        handle = TimerHandle()
        heapq.heappush(self._jobs, (self.now + delay, next(self._seq), handle, callback, interval))
        return handle

    def pending(self):
        return [job for job in self._jobs if not job[2].cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while self._jobs and self._jobs[0][0] <= target + 1e-9:
            due, _, handle, callback, interval = heapq.heappop(self._jobs)
            if handle.cancelled:
                continue
            self.now = due
            callback(handle)
            if interval is not None and not handle.cancelled:
                heapq.heappush(self._jobs, (due + interval, next(self._seq), handle, callback, interval))
        self.now = target


class RecordingBroadcaster:
    def __init__(self):
        self.events = []
        self.members = defaultdict(set)
        self.closed = []

    def to_room(self, code, event, payload):
        self.events.append((code, event, payload))

    def subscribe(self, sid, code):
        self.members[code].add(sid)

    def unsubscribe(self, sid, code):
        self.members[code].discard(sid)

    def close(self, code):
        self.members.pop(code, None)
        self.closed.append(code)

    def named(self, event):
        return [payload for _, name, payload in self.events if name == event]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def clock():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def engine(clock, broadcaster):
    return GameEngine(
        RoomRegistry(),
        InMemoryQuestionProvider(SAMPLE_BANK),
        clock,
        broadcaster,
        rng=random.Random(1234),
    )


@pytest.fixture()
def lobby(engine):
    """Room ABCD1234 hosted by 'host' with players Hana (host) and Alice."""
    room = engine.create_room('abcd1234', 'host')
    engine.join_room('ABCD1234', 'alice')
    engine.set_name('host', 'Hana')
    engine.set_name('alice', 'Alice')
    return room


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        application.extensions['trivia'].scheduler = ManualScheduler()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def app_clock(flask_app):
    return flask_app.extensions['trivia'].scheduler


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()
