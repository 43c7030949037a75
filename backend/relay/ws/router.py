from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from relay.schemas.messages import HeartBroadcast, HeartMessage, JoinMessage
from relay.state.connection import Connection
from relay.ws.manager import ConnectionManager


logger = logging.getLogger(__name__)


def _reject_constant(token: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(f"invalid JSON constant {token}")


class MessageRouter:
    """Turns raw inbound frames into registry and broadcast calls.

    Every malformed, over-limit or unroutable frame is dropped without a
    response; the connection stays open.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    async def dispatch(self, connection: Connection, raw: str) -> None:
        if not connection.limiter.allow(self.manager.clock()):
            logger.debug("rate limited room=%s", connection.room)
            return

        try:
            data = json.loads(raw, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            # RecursionError: valid but absurdly nested JSON
            return
        if not isinstance(data, dict):
            return

        kind = data.get("t")
        if kind == "join":
            self._handle_join(connection, data)
        elif kind == "heart":
            await self._handle_heart(connection, data)

    def _handle_join(self, connection: Connection, data: dict) -> None:
        try:
            msg = JoinMessage.model_validate(data)
        except ValidationError:
            return
        registry = self.manager.registry
        registry.leave(connection)
        registry.join(connection, msg.room)

    async def _handle_heart(self, connection: Connection, data: dict) -> None:
        room = connection.room
        # "" is a real room name; only "no room yet" suppresses the relay
        if room is None:
            return
        try:
            msg = HeartMessage.model_validate(data)
        except ValidationError:
            return
        payload = HeartBroadcast(room=room, x=msg.x, y=msg.y, h=msg.h).model_dump_json()
        # Sender is not excluded: it receives its own echo
        await self.manager.broadcast(room, payload, exclude=None)
