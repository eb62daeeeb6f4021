"""Tests for the time-spent tracker and its per-session registry."""

import asyncio
from dataclasses import dataclass, field

from prelander_funnel.containers import time_spent_writer
from prelander_funnel.services.analytics import AnalyticsService
from prelander_funnel.services.clicks import ClickLedger
from prelander_funnel.services.time_spent import (
    LifecycleEvent,
    TimeSpentRegistry,
    TimeSpentTracker,
    TrackerState,
)
from tests.conftest import (
    ENVIRONMENT,
    InMemoryAnalyticsRepository,
    InMemoryClickRepository,
)


@dataclass
class FakeClock:
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now


@dataclass
class RecordingWriter:
    writes: list[tuple[str, int]] = field(default_factory=list)
    fail: bool = False

    async def __call__(self, session_id: str, seconds: int) -> None:
        if self.fail:
            raise RuntimeError("write failed")
        self.writes.append((session_id, seconds))


def test_flush_writes_elapsed_seconds_since_start() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=clock)

    async def run() -> None:
        tracker.start("s1", heartbeat=False)
        clock.now += 12.7
        await tracker.flush()
        clock.now += 10
        await tracker.flush()

    asyncio.run(run())

    assert writer.writes == [("s1", 12), ("s1", 22)]


def test_flush_before_start_writes_nothing() -> None:
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=FakeClock())

    assert asyncio.run(tracker.flush()) is None
    assert writer.writes == []
    assert tracker.state is TrackerState.IDLE


def test_second_start_keeps_original_reference() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=clock)

    async def run() -> None:
        tracker.start("s1", heartbeat=False)
        clock.now += 30
        tracker.start("s1", heartbeat=False)
        await tracker.flush()

    asyncio.run(run())

    assert writer.writes == [("s1", 30)]


def test_visible_does_not_reset_session_start() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=clock)

    async def run() -> None:
        tracker.start("s1", heartbeat=False)
        clock.now += 20
        await tracker.on_hidden()
        clock.now += 100
        tracker.on_visible()
        clock.now += 5
        await tracker.flush()

    asyncio.run(run())

    assert writer.writes == [("s1", 20), ("s1", 125)]
    assert tracker.last_activity == 1120.0


def test_written_values_never_decrease() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=clock)

    async def run() -> None:
        tracker.start("s1", heartbeat=False)
        clock.now += 40
        await tracker.flush()
        clock.now -= 15
        await tracker.flush()

    asyncio.run(run())

    assert writer.writes == [("s1", 40), ("s1", 40)]


def test_failed_write_is_skipped_and_retried_next_tick() -> None:
    clock = FakeClock()
    writer = RecordingWriter(fail=True)
    tracker = TimeSpentTracker(writer=writer, clock=clock)

    async def run() -> tuple[int | None, int | None]:
        tracker.start("s1", heartbeat=False)
        clock.now += 10
        first = await tracker.flush()
        writer.fail = False
        clock.now += 10
        second = await tracker.flush()
        return first, second

    first, second = asyncio.run(run())

    assert first is None
    assert second == 20
    assert writer.writes == [("s1", 20)]


def test_heartbeat_task_flushes_periodically() -> None:
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, interval_seconds=0.01)

    async def run() -> None:
        tracker.start("s1")
        await asyncio.sleep(0.05)
        tracker.stop()

    asyncio.run(run())

    assert writer.writes
    assert all(session_id == "s1" for session_id, _ in writer.writes)


def test_registry_keeps_one_tracker_per_session() -> None:
    registry = TimeSpentRegistry(
        writer=RecordingWriter(), clock=FakeClock(), heartbeat=False
    )

    first = registry.start("s1")
    second = registry.start("s1")
    other = registry.start("s2")

    assert first is second
    assert other is not first
    assert set(registry.trackers) == {"s1", "s2"}


def test_registry_unload_flushes_and_forgets_session() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    registry = TimeSpentRegistry(writer=writer, clock=clock, heartbeat=False)

    async def run() -> int | None:
        registry.start("s1")
        clock.now += 8
        return await registry.handle("s1", LifecycleEvent.UNLOAD)

    assert asyncio.run(run()) == 8
    assert writer.writes == [("s1", 8)]
    assert registry.trackers == {}


def test_registry_ignores_unknown_sessions() -> None:
    writer = RecordingWriter()
    registry = TimeSpentRegistry(writer=writer, clock=FakeClock(), heartbeat=False)

    assert asyncio.run(registry.handle("missing", LifecycleEvent.HEARTBEAT)) is None
    assert writer.writes == []


def test_registry_visible_writes_nothing() -> None:
    writer = RecordingWriter()
    registry = TimeSpentRegistry(writer=writer, clock=FakeClock(), heartbeat=False)
    registry.start("s1")

    assert asyncio.run(registry.handle("s1", LifecycleEvent.VISIBLE)) is None
    assert writer.writes == []


def test_stop_all_clears_trackers() -> None:
    registry = TimeSpentRegistry(
        writer=RecordingWriter(), clock=FakeClock(), heartbeat=False
    )
    registry.start("s1")
    registry.start("s2")

    registry.stop_all()

    assert registry.trackers == {}


def _stored_registry(
    clock: FakeClock,
) -> tuple[TimeSpentRegistry, InMemoryAnalyticsRepository]:
    repository = InMemoryAnalyticsRepository()
    service = AnalyticsService(repository, ClickLedger(InMemoryClickRepository()))
    service.record_page_view("s1", ENVIRONMENT)
    registry = TimeSpentRegistry(
        writer=time_spent_writer(service),
        clock=clock,
        heartbeat=False,
        resume=service.stored_time_spent,
    )
    return registry, repository


def test_hidden_tab_stops_accruing_time() -> None:
    clock = FakeClock()
    registry, repository = _stored_registry(clock)

    async def run() -> list[int | None]:
        tracker = registry.start("s1")
        clock.now += 30
        await registry.handle("s1", LifecycleEvent.HIDDEN)
        ticks = []
        for _ in range(5):
            clock.now += 3600
            ticks.append(await tracker.tick())
        return ticks

    assert asyncio.run(run()) == [None] * 5
    assert repository.rows["s1"].time_spent == 30
    assert registry.trackers["s1"].state is TrackerState.PAUSED


def test_silent_tab_stops_accruing_after_idle_window() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(writer=writer, clock=clock, idle_timeout_seconds=30)

    async def run() -> list[int | None]:
        tracker.start("s1", heartbeat=False)
        clock.now += 10
        first = await tracker.tick()
        clock.now += 3600
        return [first, await tracker.tick()]

    assert asyncio.run(run()) == [10, None]
    assert writer.writes == [("s1", 10)]


def test_heartbeat_task_exits_once_idle() -> None:
    clock = FakeClock()
    writer = RecordingWriter()
    tracker = TimeSpentTracker(
        writer=writer, interval_seconds=0.01, idle_timeout_seconds=30, clock=clock
    )

    async def run() -> tuple[bool, bool]:
        tracker.start("s1")
        clock.now += 3600
        await asyncio.sleep(0.05)
        exited = tracker._task is None
        tracker.touch()
        restarted = tracker._task is not None
        tracker.stop()
        return exited, restarted

    assert asyncio.run(run()) == (True, True)
    assert writer.writes == []


def test_visible_restarts_paused_heartbeat() -> None:
    clock = FakeClock()
    tracker = TimeSpentTracker(
        writer=RecordingWriter(), interval_seconds=3600, clock=clock
    )

    async def run() -> tuple[bool, bool]:
        tracker.start("s1")
        await tracker.on_hidden()
        paused = tracker._task is None
        clock.now += 5
        tracker.on_visible()
        resumed = tracker._task is not None
        tracker.stop()
        return paused, resumed

    assert asyncio.run(run()) == (True, True)
    assert tracker.state is TrackerState.TRACKING
    assert tracker.session_start == 1000.0


def test_registry_drops_silent_trackers() -> None:
    clock = FakeClock()
    registry = TimeSpentRegistry(
        writer=RecordingWriter(), clock=clock, heartbeat=False, idle_timeout_seconds=30
    )
    registry.start("s1")
    clock.now += 31

    registry.start("s2")

    assert set(registry.trackers) == {"s2"}


def test_reload_after_unload_keeps_accumulating() -> None:
    clock = FakeClock()
    registry, repository = _stored_registry(clock)

    async def run() -> list[int | None]:
        registry.start("s1")
        clock.now += 60
        first = await registry.handle("s1", LifecycleEvent.UNLOAD)
        registry.start("s1")
        clock.now += 30
        second = await registry.handle("s1", LifecycleEvent.UNLOAD)
        return [first, second]

    assert asyncio.run(run()) == [60, 90]
    assert repository.rows["s1"].time_spent == 90


def test_heartbeat_after_eviction_resumes_from_stored_time() -> None:
    clock = FakeClock()
    registry, repository = _stored_registry(clock)

    async def run() -> int | None:
        registry.start("s1")
        clock.now += 20
        await registry.handle("s1", LifecycleEvent.HIDDEN)
        registry.trackers.clear()
        clock.now += 500
        await registry.handle("s1", LifecycleEvent.VISIBLE)
        clock.now += 5
        return await registry.handle("s1", LifecycleEvent.HEARTBEAT)

    assert asyncio.run(run()) == 25
    assert repository.rows["s1"].time_spent == 25
