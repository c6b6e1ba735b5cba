"""
Test fixtures for p2p chat protocol tests.
"""
import pytest
import tempfile
import os
import sys
from pathlib import Path
from typing import Any, Callable, List

# Add project root to path
protocol_dir = Path(__file__).parent.parent
project_root = protocol_dir.parent.parent
sys.path.insert(0, str(project_root))

from nacl.signing import SigningKey

from core.config import ChatConfig
from core.db import get_connection, init_database
from core.network_simulator import BackendSimulator
from core.queries import query_registry
from core.session import ChatSession


class FakeTimerHandle:
    def __init__(self, when: int, callback: Callable[..., Any], args: tuple):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Just enough of an event loop for call_later, driven by advance()."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.handles: List[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now_ms + round(delay * 1000), callback, args)
        self.handles.append(handle)
        return handle

    def advance(self, ms: int) -> None:
        self.now_ms += ms
        due = [h for h in self.handles if not h.cancelled and not h.fired and h.when <= self.now_ms]
        for handle in sorted(due, key=lambda h: h.when):
            handle.fired = True
            handle.callback(*handle.args)

    def pending(self) -> List[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup (WAL side files included)
    for path in (db_path, db_path + '-wal', db_path + '-shm'):
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def initialized_db(temp_db):
    """Create an initialized database with protocol schema."""
    conn = get_connection(temp_db)
    init_database(conn, str(protocol_dir))
    query_registry.discover(str(protocol_dir))
    yield conn
    conn.close()


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def signing_key():
    """Deterministic local identity for the simulator."""
    return SigningKey(b'\x01' * 32)


@pytest.fixture
def backend(signing_key):
    return BackendSimulator(signing_key=signing_key)


@pytest.fixture
def make_session(backend, fake_loop):
    """Build sessions on the simulator; each is closed after the test."""
    sessions: List[ChatSession] = []

    def factory(**overrides: Any) -> ChatSession:
        config = ChatConfig(**overrides)
        session = ChatSession(backend, config, loop=fake_loop)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()


@pytest.fixture
def attached_session(make_session):
    """A session listening to the backend, without running init()."""
    session = make_session(load_channels_on_init=False)
    session.pipeline.attach(session.backend)
    return session
