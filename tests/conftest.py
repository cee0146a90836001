import threading

import pytest

from upyserial.events import EventEmitter
from upyserial.session import SerialConnection


class FakeTransport(EventEmitter):
    """Records every write; `feed()` plays bytes coming from the board."""

    def __init__(self, port, baudrate):
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self.is_open = False
        self.writes = []
        self.fail_writes = False
        self._lock = threading.Lock()

    def open(self):
        self.is_open = True
        self.emit("open")

    def write(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self.fail_writes:
            raise OSError("write failed")
        with self._lock:
            self.writes.append(data)

    def close(self):
        self.is_open = False
        self.emit("close")

    def feed(self, data):
        self.emit("data", data)

    @property
    def sent(self):
        with self._lock:
            return b"".join(self.writes)


class Recorder:
    def __init__(self, session, *events):
        self.events = []
        self._lock = threading.Lock()
        for name in events:
            session.on(name, self._make(name))

    def _make(self, name):
        def record(*args):
            with self._lock:
                self.events.append((name,) + args)
        return record

    @property
    def names(self):
        with self._lock:
            return [e[0] for e in self.events]


@pytest.fixture
def make_session():
    sessions = []

    def make(**kwargs):
        kwargs.setdefault("pacing_unit", 0)
        kwargs.setdefault("transport_factory", FakeTransport)
        session = SerialConnection(**kwargs)
        sessions.append(session)
        return session

    yield make
    for session in sessions:
        session.close()


@pytest.fixture
def session(make_session):
    s = make_session()
    s.open("/dev/ttyUSB0")
    s.port.writes.clear()
    return s
