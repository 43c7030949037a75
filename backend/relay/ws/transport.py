from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from fastapi import WebSocket, status
from starlette.websockets import WebSocketState


logger = logging.getLogger(__name__)


class StarletteTransport:
    """Adapts a Starlette WebSocket to the relay's Transport protocol.

    ASGI gives the application no access to ping/pong frames. The server
    (uvicorn, ``ws_ping_interval``/``ws_ping_timeout``) sends native pings and
    drops peers that miss a pong, which reaches the endpoint as a disconnect.
    A socket still open at probe time has therefore answered the last native
    ping, so ``ping()`` reports it alive instead of writing a frame.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        # Task pumping inbound frames; cancelled by terminate()
        self.reader: Optional[asyncio.Task] = None
        self.on_pong: Optional[Callable[[], None]] = None

    @property
    def is_open(self) -> bool:
        ws = self._websocket
        return (
            ws.client_state == WebSocketState.CONNECTED
            and ws.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self._websocket.send_text(data)

    async def ping(self) -> None:
        if self.is_open and self.on_pong is not None:
            self.on_pong()

    async def terminate(self) -> None:
        if self.reader is not None and not self.reader.done():
            self.reader.cancel()
        if not self.is_open:
            return
        try:
            await self._websocket.close(code=status.WS_1001_GOING_AWAY)
        except (RuntimeError, OSError) as e:
            logger.debug("close during terminate failed err=%s", e)
