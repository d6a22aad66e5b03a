"""Tests for the session countdown."""

import asyncio

import pytest

from labterm.models import LifecycleState, TimeLevel
from labterm.terminal.timer import CountdownTimer, format_time


class Recorder:
    """Counts termination callbacks."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestFormatTime:
    """Tests for format_time."""

    def test_format(self):
        """Test HH:MM:SS formatting."""
        assert format_time(0) == "00:00:00"
        assert format_time(59) == "00:00:59"
        assert format_time(3600) == "01:00:00"
        assert format_time(3725) == "01:02:05"


class TestCountdownTimer:
    """Tests for CountdownTimer state transitions."""

    def test_last_second(self):
        """Test one tick from 1 ends the session exactly once."""
        ended = Recorder()
        timer = CountdownTimer(1, on_terminate=ended)
        assert timer.tick() is False
        assert timer.remaining_seconds == 0
        assert ended.calls == 1
        # A stray tick must not fire again or go negative
        timer.tick()
        assert timer.remaining_seconds == 0
        assert ended.calls == 1

    @pytest.mark.parametrize("duration", [1, 2, 5, 30])
    def test_exactly_n_decrements(self, duration):
        """Test a duration of N takes N ticks to terminate."""
        ended = Recorder()
        timer = CountdownTimer(duration, on_terminate=ended)
        ticks = 0
        while timer.tick():
            ticks += 1
            assert ended.calls == 0
        assert ticks + 1 == duration
        assert ended.calls == 1
        assert timer.state is LifecycleState.TERMINATED

    def test_zero_duration_terminates_immediately(self):
        """Test a zero-length session ends on creation."""
        ended = Recorder()
        timer = CountdownTimer(0, on_terminate=ended)
        assert timer.is_terminated
        assert ended.calls == 1

    def test_negative_duration_rejected(self):
        """Test negative durations are rejected."""
        with pytest.raises(ValueError):
            CountdownTimer(-1)

    def test_pause_stops_countdown(self):
        """Test ticks while paused do not decrement."""
        timer = CountdownTimer(10)
        timer.pause()
        assert timer.state is LifecycleState.PAUSED
        for _ in range(3):
            assert timer.tick() is True
        assert timer.remaining_seconds == 10
        timer.resume()
        timer.tick()
        assert timer.remaining_seconds == 9

    def test_terminated_is_final(self):
        """Test pause and resume do not revive a terminated timer."""
        ended = Recorder()
        timer = CountdownTimer(10, on_terminate=ended)
        timer.terminate()
        timer.pause()
        timer.resume()
        timer.terminate()
        assert timer.state is LifecycleState.TERMINATED
        assert ended.calls == 1
        assert timer.remaining_seconds == 10

    def test_time_level(self):
        """Test urgency thresholds at 50% and 20%."""
        timer = CountdownTimer(100)
        assert timer.time_level() is TimeLevel.OK
        timer.remaining_seconds = 50
        assert timer.time_level() is TimeLevel.WARNING
        timer.remaining_seconds = 20
        assert timer.time_level() is TimeLevel.CRITICAL

    def test_low_time(self):
        """Test the low-time warning threshold."""
        timer = CountdownTimer(600, low_time_warning=300)
        assert not timer.is_low_time
        timer.remaining_seconds = 299
        assert timer.is_low_time


class TestCountdownDriver:
    """Tests for the asyncio tick loop."""

    @pytest.mark.asyncio
    async def test_runs_to_termination(self):
        """Test the driver ticks down and fires once."""
        ended = Recorder()
        timer = CountdownTimer(3, on_terminate=ended, tick_interval=0.01)
        timer.start()
        await asyncio.sleep(0.3)
        assert timer.remaining_seconds == 0
        assert ended.calls == 1
        await timer.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_ticks(self):
        """Test no ticks happen after stop."""
        ended = Recorder()
        timer = CountdownTimer(1000, on_terminate=ended, tick_interval=0.01)
        timer.start()
        await asyncio.sleep(0.05)
        await timer.stop()
        remaining = timer.remaining_seconds
        await asyncio.sleep(0.05)
        assert timer.remaining_seconds == remaining
        assert ended.calls == 0

    @pytest.mark.asyncio
    async def test_paused_driver_holds(self):
        """Test the driver keeps running but does not count while paused."""
        timer = CountdownTimer(1000, tick_interval=0.01)
        timer.pause()
        timer.start()
        await asyncio.sleep(0.05)
        assert timer.remaining_seconds == 1000
        await timer.stop()
