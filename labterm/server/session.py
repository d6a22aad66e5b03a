"""
Lab Session Manager for LabTerm

Manages lab session lifecycle: scripted provisioning, the countdown, and
cleanup of idle or ended sessions.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional
from uuid import uuid4

from ..config import get_settings
from ..logging_config import get_logger
from ..models import (
    ClientAction,
    Environment,
    KeyEvent,
    ProvisioningStep,
    SessionSnapshot,
)
from ..terminal import CountdownTimer, TerminalSession, new_session

logger = get_logger("server.session")

PROVISIONING_STEPS = [
    ProvisioningStep(progress=20, message="Allocating cloud resources..."),
    ProvisioningStep(progress=40, message="Initializing container environment..."),
    ProvisioningStep(progress=60, message="Installing dependencies..."),
    ProvisioningStep(progress=80, message="Configuring network access..."),
    ProvisioningStep(progress=100, message="Environment ready!"),
]


@dataclass
class LabSession:
    """A launched lab: one terminal plus its countdown."""
    session_id: str
    lab_id: str
    terminal: TerminalSession
    timer: CountdownTimer
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
    completed_steps: List[ProvisioningStep] = field(default_factory=list)
    ready: asyncio.Event = field(default_factory=asyncio.Event)
    ended: asyncio.Event = field(default_factory=asyncio.Event)
    changed: asyncio.Condition = field(default_factory=asyncio.Condition)

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def is_expired(self, timeout_seconds: int) -> bool:
        """Check if session has been idle too long."""
        elapsed = (datetime.now() - self.last_activity).total_seconds()
        return elapsed > timeout_seconds

    def ended_longer_than(self, seconds: int) -> bool:
        if self.ended_at is None:
            return False
        return (datetime.now() - self.ended_at).total_seconds() > seconds

    @property
    def progress(self) -> int:
        return self.completed_steps[-1].progress if self.completed_steps else 0

    def apply(self, event: KeyEvent) -> None:
        """
        Apply a keystroke from the client.

        Keys are ignored until provisioning is done and while the countdown
        is not ACTIVE.
        """
        self.update_activity()
        if not self.ready.is_set() or not self.timer.is_active:
            return
        if event.input is not None:
            self.terminal.set_input(event.input)
        if event.key:
            self.terminal.handle_key(event.key)

    def snapshot(self) -> SessionSnapshot:
        terminal = self.terminal
        return SessionSnapshot(
            session_id=self.session_id,
            lab_id=self.lab_id,
            environment=terminal.environment,
            state=self.timer.state,
            ready=self.ready.is_set(),
            current_path=str(terminal.current_path),
            prompt=terminal.prompt,
            scrollback=list(terminal.scrollback),
            current_input=terminal.current_input,
            history_index=terminal.history_index,
            remaining_seconds=self.timer.remaining_seconds,
            time_display=self.timer.display(),
            time_level=self.timer.time_level(),
            low_time=self.timer.is_low_time,
            created_at=self.created_at,
        )


class LabSessionManager:
    """
    Manages LabTerm sessions.

    Sessions stay registered after their countdown ends so the transcript can
    still be downloaded; the cleanup loop reaps them after a retention window.
    """

    def __init__(
        self,
        max_sessions: Optional[int] = None,
        idle_timeout_seconds: Optional[int] = None,
        retention_seconds: Optional[int] = None,
    ):
        """
        Initialize LabSessionManager.

        Args:
            max_sessions: Maximum concurrent non-terminated sessions
            idle_timeout_seconds: Reap sessions with no activity for this long
            retention_seconds: Keep ended sessions this long before reaping
        """
        settings = get_settings()
        self.max_sessions = (
            max_sessions if max_sessions is not None
            else settings.session.max_sessions
        )
        self.idle_timeout_seconds = (
            idle_timeout_seconds if idle_timeout_seconds is not None
            else settings.session.idle_timeout_seconds
        )
        self.retention_seconds = (
            retention_seconds if retention_seconds is not None
            else settings.session.retention_seconds
        )
        self.default_duration_minutes = settings.session.default_duration_minutes
        self.tick_interval = settings.session.tick_interval_seconds
        self.low_time_warning = settings.session.low_time_warning_seconds
        self.step_delay = settings.provisioning.step_delay_seconds
        self.ready_delay = settings.provisioning.ready_delay_seconds

        self.sessions: Dict[str, LabSession] = {}
        self._provisioning: Dict[str, asyncio.Task] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the session manager and cleanup task."""
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info("LabSessionManager started")

    async def stop(self) -> None:
        """Stop the session manager and every running session."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        for session_id in list(self.sessions):
            await self.destroy_session(session_id)
        logger.info("LabSessionManager stopped")

    @property
    def active_count(self) -> int:
        return sum(1 for s in self.sessions.values() if not s.timer.is_terminated)

    def _new_session_id(self, lab_id: str) -> str:
        session_id = f"lab-{lab_id}-{int(time.time() * 1000)}"
        if session_id in self.sessions:
            session_id = f"{session_id}-{uuid4().hex[:6]}"
        return session_id

    def create_session(
        self,
        lab_id: str,
        duration_minutes: Optional[int] = None,
        environment: Optional[Environment] = None,
    ) -> LabSession:
        """
        Create a new lab session. Its countdown starts once provisioned.

        Args:
            lab_id: Lab the session belongs to
            duration_minutes: Session length, defaults to the configured value
            environment: Banner flavor, defaults to the configured value

        Returns:
            LabSession object

        Raises:
            RuntimeError: If max sessions reached
        """
        if self.active_count >= self.max_sessions:
            raise RuntimeError(
                f"Maximum sessions ({self.max_sessions}) reached. "
                "Please wait for an existing session to end."
            )

        session_id = self._new_session_id(lab_id)
        minutes = duration_minutes or self.default_duration_minutes
        timer = CountdownTimer(
            duration_seconds=minutes * 60,
            on_terminate=lambda: self._on_terminated(session_id),
            tick_interval=self.tick_interval,
            low_time_warning=self.low_time_warning,
        )
        session = LabSession(
            session_id=session_id,
            lab_id=lab_id,
            terminal=new_session(session_id, lab_id, environment),
            timer=timer,
        )

        self.sessions[session_id] = session
        logger.info(f"Created session: {session_id} ({minutes} min)")
        return session

    def start_provisioning(self, session: LabSession) -> asyncio.Task:
        """Run the scripted startup in the background, then start the countdown."""
        task = asyncio.create_task(self._provision(session))
        self._provisioning[session.session_id] = task
        return task

    async def _provision(self, session: LabSession) -> None:
        try:
            for step in PROVISIONING_STEPS:
                await asyncio.sleep(self.step_delay)
                async with session.changed:
                    session.completed_steps.append(step)
                    session.changed.notify_all()
                logger.debug(f"{session.session_id}: {step.progress}% {step.message}")

            await asyncio.sleep(self.ready_delay)
            async with session.changed:
                session.ready.set()
                session.changed.notify_all()
            session.timer.start()
            logger.info(f"Session ready: {session.session_id}")
        finally:
            self._provisioning.pop(session.session_id, None)

    async def watch_provisioning(self, session: LabSession) -> AsyncIterator[ProvisioningStep]:
        """
        Yield provisioning steps as they complete, including ones already done.

        Stops once the session is ready, or early if it ends first.
        """
        seen = 0
        while True:
            async with session.changed:
                await session.changed.wait_for(
                    lambda: len(session.completed_steps) > seen
                    or session.ready.is_set()
                    or session.ended.is_set()
                )
                new_steps = session.completed_steps[seen:]
                done = session.ready.is_set() or session.ended.is_set()
            for step in new_steps:
                yield step
            seen += len(new_steps)
            if done:
                return

    def get_session(self, session_id: str) -> Optional[LabSession]:
        """Get a session by ID."""
        session = self.sessions.get(session_id)
        if session:
            session.update_activity()
        return session

    def pause_session(self, session: LabSession) -> None:
        session.timer.pause()
        logger.info(f"Paused session: {session.session_id}")

    def resume_session(self, session: LabSession) -> None:
        session.timer.resume()
        logger.info(f"Resumed session: {session.session_id}")

    def restart_session(self, session: LabSession) -> None:
        if session.timer.is_terminated:
            return
        session.terminal.restart()

    async def end_session(self, session: LabSession) -> None:
        """End a session on request; it stays available for transcript download."""
        session.timer.terminate()
        await session.timer.stop()

    async def handle_action(self, session: LabSession, action: ClientAction) -> None:
        session.update_activity()
        if action is ClientAction.PAUSE:
            self.pause_session(session)
        elif action is ClientAction.RESUME:
            self.resume_session(session)
        elif action is ClientAction.RESTART:
            self.restart_session(session)
        elif action is ClientAction.END:
            await self.end_session(session)

    async def destroy_session(self, session_id: str) -> None:
        """
        Destroy a session. Anyone waiting on it sees it end.

        Args:
            session_id: Session to destroy
        """
        session = self.sessions.pop(session_id, None)
        if not session:
            return

        task = self._provisioning.pop(session_id, None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        session.timer.terminate()
        await session.timer.stop()
        self._mark_ended(session)
        async with session.changed:
            session.changed.notify_all()

        logger.info(f"Destroyed session: {session_id}")

    def _on_terminated(self, session_id: str) -> None:
        session = self.sessions.get(session_id)
        if session is not None:
            self._mark_ended(session)

    def _mark_ended(self, session: LabSession) -> None:
        if session.ended.is_set():
            return
        session.ended_at = datetime.now()
        session.ended.set()
        logger.info(f"Session ended: {session.session_id}")

    async def _cleanup_loop(self) -> None:
        """Background task to clean up idle and ended sessions."""
        while True:
            try:
                await asyncio.sleep(60)  # Check every minute
                await self.cleanup()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Cleanup loop error: {e}")

    async def cleanup(self) -> List[str]:
        """
        Destroy sessions that ended past retention or went idle.

        A running countdown is never reaped for idleness; it ends on its own.
        """
        expired = [
            sid for sid, session in self.sessions.items()
            if session.ended_longer_than(self.retention_seconds)
            or (not session.timer.is_active
                and session.is_expired(self.idle_timeout_seconds))
        ]

        for session_id in expired:
            logger.info(f"Expiring session: {session_id}")
            await self.destroy_session(session_id)
        return expired


# Global session manager instance
_session_manager: Optional[LabSessionManager] = None


def get_session_manager() -> LabSessionManager:
    """Get the global session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = LabSessionManager()
    return _session_manager
