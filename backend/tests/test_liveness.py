"""
Tests for LivenessMonitor probe cycles and forced termination.
"""

import asyncio

import pytest

from relay.ws.liveness import LivenessMonitor


class TestSweep:

    @pytest.mark.asyncio
    async def test_first_sweep_probes_and_clears_flag(self, manager, connect):
        c, t = connect()

        await manager.monitor.sweep()

        assert t.pings == 1
        assert c.is_alive is False
        assert not t.terminated
        assert manager.monitor.is_tracked(c)

    @pytest.mark.asyncio
    async def test_unanswered_probe_terminates_and_cleans_room(self, manager, connect):
        c, t = connect()
        manager.registry.join(c, "r1")

        await manager.monitor.sweep()
        await manager.monitor.sweep()

        assert t.terminated
        assert t.pings == 1
        assert not manager.monitor.is_tracked(c)
        assert c.room is None
        assert "r1" not in manager.registry

    @pytest.mark.asyncio
    async def test_acknowledged_probe_keeps_connection_alive(self, manager, connect):
        c, t = connect()

        for _ in range(3):
            await manager.monitor.sweep()
            manager.monitor.acknowledge(c)

        assert not t.terminated
        assert t.pings == 3
        assert manager.monitor.is_tracked(c)

    @pytest.mark.asyncio
    async def test_only_silent_connections_are_terminated(self, manager, connect):
        alive, at = connect()
        silent, st = connect()
        manager.registry.join(alive, "r1")
        manager.registry.join(silent, "r1")

        await manager.monitor.sweep()
        manager.monitor.acknowledge(alive)
        await manager.monitor.sweep()

        assert st.terminated
        assert not at.terminated
        assert manager.registry.members("r1") == [alive]

    @pytest.mark.asyncio
    async def test_probe_failure_does_not_stop_sweep(self, manager, connect):
        a, at = connect()
        b, bt = connect()

        async def broken_ping():
            raise ConnectionError("gone")

        at.ping = broken_ping

        await manager.monitor.sweep()

        assert bt.pings == 1
        assert a.is_alive is False

    @pytest.mark.asyncio
    async def test_stalled_probe_does_not_block_other_connections(self, connect):
        terminated = []
        monitor = LivenessMonitor(interval_s=30, on_terminate=terminated.append, probe_timeout_s=0.05)
        stalled, st = connect()
        silent, _ = connect()
        healthy = [connect() for _ in range(20)]

        async def never_returns():
            await asyncio.Event().wait()

        st.ping = never_returns
        for c in [stalled, silent] + [c for c, _ in healthy]:
            monitor.track(c)
        silent.is_alive = False

        await asyncio.wait_for(monitor.sweep(), timeout=1.0)

        assert all(t.pings == 1 for _, t in healthy)
        assert terminated == [silent]
        assert monitor.is_tracked(stalled)
        assert stalled.is_alive is False

    @pytest.mark.asyncio
    async def test_terminate_failure_still_cleans_up(self, manager, connect):
        c, t = connect()
        manager.registry.join(c, "r1")

        async def broken_terminate():
            raise RuntimeError("already closed")

        t.terminate = broken_terminate
        c.is_alive = False

        await manager.monitor.sweep()

        assert "r1" not in manager.registry
        assert not manager.monitor.is_tracked(c)


class TestBackgroundTask:

    @pytest.mark.asyncio
    async def test_start_runs_sweeps_until_stopped(self, connect):
        swept = []
        monitor = LivenessMonitor(interval_s=0.01, on_terminate=swept.append)
        c, t = connect()
        monitor.track(c)

        monitor.start()
        await asyncio.sleep(0.1)
        await monitor.stop()

        assert t.terminated
        assert swept == [c]

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self):
        monitor = LivenessMonitor(interval_s=1, on_terminate=lambda c: None)

        await monitor.stop()
