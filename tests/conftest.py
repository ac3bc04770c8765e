"""Shared in-memory fakes: hub sessions, payload store, client transport, scheduler."""

import json
from typing import Any, Callable

import pytest

from lan_bridge.errors import StoreWriteError, TransportError
from lan_bridge.hub import HubSession


class RecordingSession(HubSession):
    def __init__(self, sid: str, fail: bool = False):
        self.outbox: list[dict[str, Any]] = []
        self.fail = fail
        super().__init__(sid, self._record)

    async def _record(self, data: str) -> None:
        if self.fail:
            raise TransportError(f"{self.sid} unreachable")
        self.outbox.append(json.loads(data))


class MemoryStore:
    def __init__(self) -> None:
        self.persisted: dict[str, bytes] = {}
        self.fail = False

    async def persist(self, name: str, data: bytes) -> str:
        if self.fail:
            raise StoreWriteError()
        self.persisted[name] = data
        return f"/uploads/{name}"


class FakeTransport:
    def __init__(self, url: str, on_receive: Callable[[str], None], on_close: Callable[[], None], fail: bool = False):
        self.url = url
        self.on_receive = on_receive
        self.on_close = on_close
        self.fail = fail
        self.fail_send = False
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        if self.fail:
            raise TransportError("connection refused")
        self._open = True

    async def send(self, data: str) -> None:
        if not self._open or self.fail_send:
            raise TransportError("send failed")
        self.sent.append(json.loads(data))

    async def close(self) -> None:
        self.closed = True
        self._open = False

    def drop(self) -> None:
        """Simulate the hub going away."""
        self._open = False
        self.on_close()

    def deliver(self, obj: Any) -> None:
        self.on_receive(obj if isinstance(obj, str) else json.dumps(obj))


class FakeNetwork:
    """Transport factory; `up` decides whether the next open() succeeds."""

    def __init__(self) -> None:
        self.up = True
        self.transports: list[FakeTransport] = []

    def __call__(self, url: str, on_receive: Callable[[str], None], on_close: Callable[[], None]) -> FakeTransport:
        transport = FakeTransport(url, on_receive, on_close, fail=not self.up)
        self.transports.append(transport)
        return transport

    @property
    def current(self) -> FakeTransport:
        return self.transports[-1]


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records delays; tests fire timers by hand."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.pending: list[tuple[Callable[[], Any], FakeHandle]] = []

    def schedule(self, delay: float, callback: Callable[[], Any]) -> FakeHandle:
        handle = FakeHandle()
        self.delays.append(delay)
        self.pending.append((callback, handle))
        return handle

    async def fire_next(self) -> None:
        callback, handle = self.pending.pop(0)
        if not handle.cancelled:
            await callback()


class Dialer:
    """Connect callable for the controller; fails while `up` is False."""

    def __init__(self) -> None:
        self.up = True
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1
        if not self.up:
            raise TransportError("hub unreachable")


@pytest.fixture
def make_session():
    return RecordingSession


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def dialer():
    return Dialer()
