from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, List, Optional, Set

from relay.state.connection import Connection


logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Periodically probes tracked connections and terminates silent ones.

    Each sweep terminates connections that did not acknowledge the previous
    probe, then marks the rest not-alive and probes them again. A connection
    therefore survives at most one unanswered probe cycle.
    """

    def __init__(
        self,
        interval_s: float,
        on_terminate: Callable[[Connection], None],
        probe_timeout_s: float = 5.0,
    ) -> None:
        self.interval_s = interval_s
        self.probe_timeout_s = probe_timeout_s
        self._on_terminate = on_terminate
        self._connections: Set[Connection] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def tracked_count(self) -> int:
        return len(self._connections)

    def is_tracked(self, connection: Connection) -> bool:
        return connection in self._connections

    def track(self, connection: Connection) -> None:
        connection.is_alive = True
        self._connections.add(connection)

    def untrack(self, connection: Connection) -> None:
        self._connections.discard(connection)

    def acknowledge(self, connection: Connection) -> None:
        connection.is_alive = True

    async def sweep(self) -> None:
        dead: List[Connection] = []
        probed: List[Connection] = []
        for connection in list(self._connections):
            if connection.is_alive:
                connection.is_alive = False
                probed.append(connection)
            else:
                self._connections.discard(connection)
                dead.append(connection)
        # Probes run concurrently, each bounded by probe_timeout_s
        await asyncio.gather(
            *(self._terminate(c) for c in dead),
            *(self._probe(c) for c in probed),
        )

    async def _probe(self, connection: Connection) -> None:
        try:
            await asyncio.wait_for(connection.transport.ping(), self.probe_timeout_s)
        except Exception as e:
            logger.debug("probe failed room=%s err=%r", connection.room, e)

    async def _terminate(self, connection: Connection) -> None:
        logger.info("terminating unresponsive connection room=%s", connection.room)
        try:
            await asyncio.wait_for(connection.transport.terminate(), self.probe_timeout_s)
        except Exception as e:
            logger.debug("terminate failed room=%s err=%r", connection.room, e)
        finally:
            self._on_terminate(connection)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.sweep()
            except Exception:
                logger.exception("liveness sweep failed")

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.debug("liveness monitor started interval_s=%s", self.interval_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
