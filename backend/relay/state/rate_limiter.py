from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RateLimiter:
    """Fixed-window message counter owned by a single connection.

    The window is not sliding: once more than ``window_ms`` has elapsed since
    ``window_start`` the next message opens a fresh window.
    """

    max_messages: int = 30
    window_ms: float = 5000.0
    window_start: float = 0.0
    count: int = 0

    def allow(self, now_ms: float) -> bool:
        if now_ms - self.window_start > self.window_ms:
            self.window_start = now_ms
            self.count = 0
        self.count += 1
        return self.count <= self.max_messages
