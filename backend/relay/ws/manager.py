from __future__ import annotations

from typing import Callable, Iterable, Optional
import asyncio
import logging
import time

from relay.state.connection import Connection, Transport
from relay.state.rate_limiter import RateLimiter
from relay.state.room_registry import RoomRegistry
from relay.ws.liveness import LivenessMonitor


logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ConnectionManager:
    """Tracks relay connections and their rooms and provides broadcast.

    In-memory and single-process only.
    """

    def __init__(
        self,
        allowed_origins: Iterable[str] = (),
        max_messages: int = 30,
        window_ms: float = 5000.0,
        ping_interval_s: float = 30.0,
        probe_timeout_s: float = 5.0,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.allowed_origins = frozenset(allowed_origins)
        self.max_messages = max_messages
        self.window_ms = window_ms
        self.clock = clock
        self.registry = RoomRegistry()
        self.monitor = LivenessMonitor(
            ping_interval_s,
            on_terminate=self.disconnect,
            probe_timeout_s=probe_timeout_s,
        )

    def origin_allowed(self, origin: str) -> bool:
        if not self.allowed_origins or not origin:
            return True
        return origin in self.allowed_origins

    def connect(self, transport: Transport) -> Connection:
        connection = Connection(
            transport=transport,
            limiter=RateLimiter(
                max_messages=self.max_messages,
                window_ms=self.window_ms,
                window_start=self.clock(),
            ),
        )
        self.monitor.track(connection)
        return connection

    def disconnect(self, connection: Connection) -> None:
        # Safe to call more than once
        self.registry.leave(connection)
        self.monitor.untrack(connection)

    async def broadcast(
        self,
        room: str,
        payload: str,
        exclude: Optional[Connection] = None,
    ) -> int:
        """Send ``payload`` to every open member of ``room``; return deliveries."""
        members = [
            c for c in self.registry.members(room)
            if c is not exclude and c.transport.is_open
        ]
        if not members:
            return 0

        async def _send(connection: Connection) -> None:
            await connection.transport.send_text(payload)

        results = await asyncio.gather(*(_send(c) for c in members), return_exceptions=True)
        delivered = 0
        for result in results:
            if isinstance(result, BaseException):
                # The failing socket's own close event cleans up its membership
                logger.debug("send failed room=%s err=%s", room, result)
            else:
                delivered += 1
        return delivered
