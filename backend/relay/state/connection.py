from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from relay.state.rate_limiter import RateLimiter


class Transport(Protocol):
    """The slice of a live socket the relay needs."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def ping(self) -> None: ...

    async def terminate(self) -> None: ...


@dataclass(eq=False)
class Connection:
    """Per-client session state. Hashed and compared by identity."""

    transport: Transport
    limiter: RateLimiter = field(default_factory=RateLimiter)
    # Name of the current room only; the registry owns membership
    room: Optional[str] = None
    is_alive: bool = True
