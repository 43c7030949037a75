"""
Pytest configuration and fixtures for relay tests.
"""

import json

import pytest

from relay.ws.manager import ConnectionManager
from relay.ws.router import MessageRouter


class FakeTransport:
    """In-memory Transport recording everything the relay does to it."""

    def __init__(self, fail_sends: bool = False):
        self.sent: list[str] = []
        self.pings = 0
        self.open = True
        self.terminated = False
        self.fail_sends = fail_sends

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise ConnectionError("socket gone")
        self.sent.append(data)

    async def ping(self) -> None:
        self.pings += 1

    async def terminate(self) -> None:
        self.terminated = True
        self.open = False

    def frames(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def manager(clock):
    return ConnectionManager(clock=clock)


@pytest.fixture
def message_router(manager):
    return MessageRouter(manager)


@pytest.fixture
def connect(manager):
    """Factory returning (connection, transport) pairs registered with the manager."""

    def _connect(fail_sends: bool = False):
        transport = FakeTransport(fail_sends=fail_sends)
        return manager.connect(transport), transport

    return _connect
