"""
Tests for the liveness monitor.
"""

import asyncio

import pytest

from ..realtime.coordinator import SignalingCoordinator
from ..realtime.liveness_monitor import LivenessMonitor


class TestLivenessSweep:
    """Test cases for LivenessMonitor.sweep."""

    def test_first_sweep_pings_and_marks_pending(self, coordinator, connect):
        """Test that a sweep sends ping and clears the alive flag."""
        alice = connect()

        terminated = coordinator.liveness.sweep()

        assert terminated == 0
        assert alice.of_type("ping") == [{"type": "ping"}]
        assert alice.is_alive is False

    def test_answered_ping_keeps_connection(self, coordinator, connect):
        """Test that a connection answering between sweeps survives."""
        alice = connect()
        coordinator.liveness.sweep()
        alice.mark_alive()

        coordinator.liveness.sweep()

        assert alice in coordinator.registry
        assert alice.terminated is False
        assert len(alice.of_type("ping")) == 2

    def test_silent_connection_terminated_after_two_sweeps(self, coordinator, connect):
        """Test that missing the ping gets the connection terminated."""
        alice = connect()
        coordinator.liveness.sweep()

        terminated = coordinator.liveness.sweep()

        assert terminated == 1
        assert alice.terminated is True
        assert alice not in coordinator.registry
        assert coordinator.stats.total_disconnections == 1

    def test_termination_uses_disconnect_teardown(self, coordinator, connect):
        """Test that the flight peer gets peer-left when its partner is terminated."""
        alice, bob = connect(), connect()
        flight = coordinator.create_flight(alice)
        coordinator.join_flight(bob, flight.code)
        coordinator.liveness.sweep()
        bob.mark_alive()

        coordinator.liveness.sweep()

        assert bob.of_type("peer-left") == [{"type": "peer-left"}]
        assert flight.members == [bob]

    def test_sweep_without_connections(self):
        """Test that an empty server sweeps cleanly."""
        coordinator = SignalingCoordinator()

        assert coordinator.liveness.sweep() == 0
        assert coordinator.liveness.sweep_count == 1


class TestLivenessLoop:
    """Test cases for the periodic task."""

    @pytest.mark.asyncio
    async def test_loop_runs_sweeps_until_stopped(self, coordinator, connect):
        """Test that start() sweeps periodically and stop() cancels the task."""
        connect()
        monitor = LivenessMonitor(
            coordinator.registry,
            coordinator.flight_manager,
            on_unresponsive=coordinator.terminate_connection,
            interval=0.01,
        )

        await monitor.start()
        await asyncio.sleep(0.1)
        await monitor.stop()

        assert monitor.sweep_count >= 1
        assert monitor.is_running is False
        count = monitor.sweep_count
        await asyncio.sleep(0.05)
        assert monitor.sweep_count == count

    @pytest.mark.asyncio
    async def test_stop_without_start_is_harmless(self, coordinator):
        """Test that stopping an idle monitor does nothing."""
        await coordinator.liveness.stop()

        assert coordinator.liveness.is_running is False
