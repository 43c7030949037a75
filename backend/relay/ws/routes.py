from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket
import asyncio
import logging

from relay.state.connection import Connection
from relay.ws.manager import ConnectionManager
from relay.ws.router import MessageRouter
from relay.ws.transport import StarletteTransport


router = APIRouter()
logger = logging.getLogger(__name__)


def get_manager(websocket: WebSocket) -> ConnectionManager:
    return websocket.app.state.ws_manager  # type: ignore[attr-defined]


def get_message_router(websocket: WebSocket) -> MessageRouter:
    return websocket.app.state.message_router  # type: ignore[attr-defined]


async def _pump(websocket: WebSocket, connection: Connection, messages: MessageRouter) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        raw = message.get("text")
        if raw is None:
            raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
        await messages.dispatch(connection, raw)


@router.websocket("/")
@router.websocket("/ws")
async def relay_endpoint(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_manager),
    messages: MessageRouter = Depends(get_message_router),
) -> None:
    origin = websocket.headers.get("origin", "")
    if not manager.origin_allowed(origin):
        logger.info("rejected origin=%s", origin)
        await websocket.close()
        return

    await websocket.accept()
    transport = StarletteTransport(websocket)
    connection = manager.connect(transport)
    transport.on_pong = lambda: manager.monitor.acknowledge(connection)
    reader = asyncio.create_task(_pump(websocket, connection, messages))
    transport.reader = reader
    try:
        await asyncio.wait({reader})
        if not reader.cancelled() and reader.exception() is not None:
            logger.warning("reader failed room=%s err=%r", connection.room, reader.exception())
    finally:
        if not reader.done():
            reader.cancel()
        manager.disconnect(connection)
