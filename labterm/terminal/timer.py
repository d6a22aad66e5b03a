"""
Session countdown and lifecycle state.

The countdown only decrements while ACTIVE. Pausing and resuming are explicit
calls; reaching zero (or an explicit end) moves to TERMINATED and fires the
termination callback exactly once.
"""

import asyncio
from typing import Callable, Optional

from ..logging_config import get_logger
from ..models.session import LifecycleState, TimeLevel

logger = get_logger("terminal.timer")


def format_time(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class CountdownTimer:
    """Countdown owning the ACTIVE / PAUSED / TERMINATED lifecycle."""

    def __init__(
        self,
        duration_seconds: int,
        on_terminate: Optional[Callable[[], None]] = None,
        tick_interval: float = 1.0,
        low_time_warning: int = 300,
    ):
        """
        Initialize CountdownTimer.

        Args:
            duration_seconds: Initial remaining time
            on_terminate: Called with no arguments when the session ends
            tick_interval: Seconds between ticks when driven by start()
            low_time_warning: Threshold below which is_low_time is true
        """
        if duration_seconds < 0:
            raise ValueError("duration_seconds must be >= 0")

        self.duration_seconds = duration_seconds
        self.remaining_seconds = duration_seconds
        self.tick_interval = tick_interval
        self.low_time_warning = low_time_warning
        self.state = LifecycleState.ACTIVE

        self._on_terminate = on_terminate
        self._task: Optional[asyncio.Task] = None

        if duration_seconds == 0:
            self.terminate()

    @property
    def is_active(self) -> bool:
        return self.state is LifecycleState.ACTIVE

    @property
    def is_terminated(self) -> bool:
        return self.state is LifecycleState.TERMINATED

    @property
    def is_low_time(self) -> bool:
        return self.remaining_seconds < self.low_time_warning

    def display(self) -> str:
        return format_time(self.remaining_seconds)

    def time_level(self) -> TimeLevel:
        """Urgency of the remaining time relative to the full duration."""
        if self.duration_seconds == 0:
            return TimeLevel.CRITICAL
        percentage = self.remaining_seconds / self.duration_seconds * 100
        if percentage > 50:
            return TimeLevel.OK
        if percentage > 20:
            return TimeLevel.WARNING
        return TimeLevel.CRITICAL

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            False once the timer is terminated, True otherwise
        """
        if self.state is LifecycleState.ACTIVE:
            self.remaining_seconds = max(0, self.remaining_seconds - 1)
            if self.remaining_seconds == 0:
                self.terminate()
        return not self.is_terminated

    def pause(self) -> None:
        if self.state is LifecycleState.ACTIVE:
            self.state = LifecycleState.PAUSED
            logger.debug("Countdown paused at %s", self.display())

    def resume(self) -> None:
        if self.state is LifecycleState.PAUSED:
            self.state = LifecycleState.ACTIVE
            logger.debug("Countdown resumed at %s", self.display())

    def terminate(self) -> None:
        """End the session. The callback fires on the first call only."""
        if self.state is LifecycleState.TERMINATED:
            return
        self.state = LifecycleState.TERMINATED
        if self._on_terminate is not None:
            self._on_terminate()

    # -------------------------------------------------------------------------
    # asyncio driver
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self._task is None and not self.is_terminated:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the tick task; no further ticks or callbacks occur."""
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if not self.tick():
                break
