"""Heartbeat-driven time-spent tracking."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

TimeSpentWriter = Callable[[str, int], Awaitable[object]]
TimeSpentReader = Callable[[str], int | None]

_logger = logging.getLogger(__name__)


class TrackerState(StrEnum):
    """Lifecycle of a tracker."""

    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"


class LifecycleEvent(StrEnum):
    """Page lifecycle signals forwarded by the browser."""

    HEARTBEAT = "heartbeat"
    HIDDEN = "hidden"
    VISIBLE = "visible"
    UNLOAD = "unload"


@dataclass
class TimeSpentTracker:
    """Pushes elapsed time since session start into the aggregate store.

    Elapsed time is always measured from the original start reference, so the
    written value never drifts and never goes backwards. The server heartbeat
    only beats while the page is visible and the browser has signalled within
    ``idle_timeout_seconds``; a closed tab that never sends ``unload`` stops
    accruing once that window passes.
    """

    writer: TimeSpentWriter
    interval_seconds: float = 10.0
    idle_timeout_seconds: float = 30.0
    clock: Callable[[], float] = time.monotonic
    state: TrackerState = field(default=TrackerState.IDLE, init=False)
    session_id: str | None = field(default=None, init=False)
    session_start: float | None = field(default=None, init=False)
    last_activity: float | None = field(default=None, init=False)
    last_written: int = field(default=0, init=False)
    heartbeat: bool = field(default=True, init=False)
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    def start(
        self, session_id: str, *, heartbeat: bool = True, resume_from: int = 0
    ) -> None:
        """Enter tracking, continuing from ``resume_from`` seconds.

        A second start keeps the existing reference and heartbeat.
        """
        if self.state is not TrackerState.IDLE:
            self.on_visible()
            return
        now = self.clock()
        self.session_id = session_id
        self.session_start = now - resume_from
        self.last_activity = now
        self.last_written = resume_from
        self.heartbeat = heartbeat
        self.state = TrackerState.TRACKING
        self._start_heartbeat()

    def stop(self) -> None:
        """Cancel the heartbeat task, if any."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def touch(self) -> None:
        """Record a browser signal, restarting a heartbeat that went quiet."""
        self.last_activity = self.clock()
        if self.state is TrackerState.TRACKING:
            self._start_heartbeat()

    def is_idle(self) -> bool:
        """Return True once the browser has been silent past the idle window."""
        if self.last_activity is None:
            return True
        return self.clock() - self.last_activity > self.idle_timeout_seconds

    def elapsed_seconds(self) -> int:
        """Return whole seconds since session start, never below the last write."""
        if self.session_start is None:
            return 0
        elapsed = int(self.clock() - self.session_start)
        return max(elapsed, self.last_written)

    async def flush(self) -> int | None:
        """Write the current elapsed time; failures are logged and skipped."""
        if self.state is TrackerState.IDLE or self.session_id is None:
            return None
        seconds = self.elapsed_seconds()
        try:
            await self.writer(self.session_id, seconds)
        except Exception:
            _logger.exception("Time spent flush failed for %s", self.session_id)
            return None
        self.last_written = seconds
        return seconds

    async def tick(self) -> int | None:
        """Run one heartbeat; writes nothing while paused or idle."""
        if not self._should_beat():
            return None
        return await self.flush()

    async def on_hidden(self) -> int | None:
        """Flush as soon as the tab is hidden, then pause the heartbeat."""
        if self.state is TrackerState.IDLE:
            return None
        written = await self.flush()
        self.state = TrackerState.PAUSED
        self.stop()
        self.touch()
        return written

    def on_visible(self) -> None:
        """Resume the heartbeat without touching the session start."""
        if self.state is TrackerState.IDLE:
            return
        if self.state is TrackerState.PAUSED:
            self.state = TrackerState.TRACKING
        self.touch()

    async def on_unload(self) -> int | None:
        """Best-effort flush on navigation away."""
        if self.state is TrackerState.IDLE:
            return None
        written = await self.flush()
        self.stop()
        self.state = TrackerState.IDLE
        self.touch()
        return written

    def _should_beat(self) -> bool:
        return self.state is TrackerState.TRACKING and not self.is_idle()

    def _start_heartbeat(self) -> None:
        if self.heartbeat and self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if not self._should_beat():
                _logger.info("Heartbeat for %s stopped", self.session_id)
                self._task = None
                return
            await self.flush()


@dataclass
class TimeSpentRegistry:
    """Owns one tracker per live session.

    Trackers whose browser went silent past the idle window are dropped on the
    next registry call. A session that comes back (reload, next page) gets a
    fresh tracker seeded from the stored ``time_spent`` through ``resume``;
    ``resume`` returns None for sessions with no stored row.
    """

    writer: TimeSpentWriter
    interval_seconds: float = 10.0
    idle_timeout_seconds: float = 30.0
    clock: Callable[[], float] = time.monotonic
    heartbeat: bool = True
    resume: TimeSpentReader | None = None
    trackers: dict[str, TimeSpentTracker] = field(default_factory=dict)

    def start(self, session_id: str) -> TimeSpentTracker:
        """Return the session's tracker, starting it on page view."""
        self._evict_idle(keep=session_id)
        tracker = self.trackers.get(session_id)
        if tracker is not None:
            tracker.start(session_id, heartbeat=self.heartbeat)
            return tracker
        return self._create(session_id, self._stored(session_id) or 0)

    async def handle(self, session_id: str, event: LifecycleEvent) -> int | None:
        """Apply a lifecycle signal and return the seconds written, if any."""
        self._evict_idle(keep=session_id)
        tracker = self.trackers.get(session_id)
        if tracker is None:
            if event not in (LifecycleEvent.HEARTBEAT, LifecycleEvent.VISIBLE):
                return None
            stored = self._stored(session_id)
            if stored is None:
                return None
            # Tab came back after its tracker was dropped.
            tracker = self._create(session_id, stored)
        if event is LifecycleEvent.VISIBLE:
            tracker.on_visible()
            return None
        if event is LifecycleEvent.HIDDEN:
            return await tracker.on_hidden()
        if event is LifecycleEvent.UNLOAD:
            written = await tracker.on_unload()
            self.trackers.pop(session_id, None)
            return written
        tracker.touch()
        return await tracker.flush()

    def stop_all(self) -> None:
        """Cancel every heartbeat, used on shutdown."""
        for tracker in self.trackers.values():
            tracker.stop()
        self.trackers.clear()

    def _create(self, session_id: str, resume_from: int) -> TimeSpentTracker:
        tracker = TimeSpentTracker(
            writer=self.writer,
            interval_seconds=self.interval_seconds,
            idle_timeout_seconds=self.idle_timeout_seconds,
            clock=self.clock,
        )
        self.trackers[session_id] = tracker
        tracker.start(session_id, heartbeat=self.heartbeat, resume_from=resume_from)
        return tracker

    def _stored(self, session_id: str) -> int | None:
        if self.resume is None:
            return None
        return self.resume(session_id)

    def _evict_idle(self, keep: str | None = None) -> None:
        for session_id, tracker in list(self.trackers.items()):
            if session_id != keep and tracker.is_idle():
                tracker.stop()
                del self.trackers[session_id]
