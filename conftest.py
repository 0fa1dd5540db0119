"""Shared pytest fixtures for Voice Reminder Service tests."""

import os
import tempfile

# Must run before config/database are imported by any test module
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.gettempdir(), "voice_reminder_test.db")
)
os.environ["TIMEZONE"] = "Asia/Kolkata"

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import database


class FakeTimerHandle:
    """Stand-in for asyncio.TimerHandle."""

    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Event loop double: call_later timers fire only when advance() is called."""

    def __init__(self):
        self.time = 0.0
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = FakeTimerHandle(self.time + delay, callback, args)
        self.handles.append(handle)
        return handle

    def advance(self, seconds):
        self.time += seconds
        for handle in sorted(self.handles, key=lambda h: h.when):
            if handle.cancelled or handle.fired or handle.when > self.time:
                continue
            handle.fired = True
            handle.callback(*handle.args)

    @property
    def pending(self):
        return [h for h in self.handles if not (h.cancelled or h.fired)]


class RecordingSink:
    """Notification sink that remembers what it was asked to show."""

    def __init__(self, fail=False):
        self.messages = []
        self.fail = fail

    def notify(self, text):
        self.messages.append(text)
        if self.fail:
            raise RuntimeError("notification API unavailable")


START = datetime(2026, 10, 12, 4, 30, tzinfo=timezone.utc)


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def clock(fake_loop):
    """Wall clock that moves with fake_loop.advance()."""
    return lambda: START + timedelta(seconds=fake_loop.time)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def db_session_factory():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    database.Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()
