from pathlib import Path

import pytest

from eigraph.events import Event, EventBus, EventKind, SessionLog, positions_updated, read_session_log
from eigraph.scheduler import ManualFrameScheduler, RealtimeFrameScheduler


def test_bus_filters_by_kind_and_unsubscribes() -> None:
    bus = EventBus()
    all_events, hovers = [], []
    bus.subscribe(all_events.append)
    unsubscribe = bus.subscribe(hovers.append, EventKind.HOVER_CHANGED)

    bus.emit(Event(EventKind.HOVER_CHANGED, {"node_id": "a"}))
    bus.emit(Event(EventKind.FILTER_CHANGED))
    unsubscribe()
    bus.emit(Event(EventKind.HOVER_CHANGED, {"node_id": None}))

    assert len(all_events) == 3
    assert [e.payload["node_id"] for e in hovers] == ["a"]


def test_session_log_writes_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "session.jsonl"
    log = SessionLog(path)
    log(positions_updated(3, 0.5, {"a": (1.0, 2.0)}))
    log(Event(EventKind.SELECTION_CHANGED, {"node_id": "a"}))

    envelopes = read_session_log(path)
    assert [e.kind for e in envelopes] == ["positions_updated", "selection_changed"]
    assert "positions" not in envelopes[0].payload
    assert envelopes[0].payload["tick"] == 3
    assert envelopes[1].timestamp

    assert len(read_session_log(path, last_n=1)) == 1


def test_session_log_can_keep_positions(tmp_path: Path) -> None:
    path = tmp_path / "session.jsonl"
    SessionLog(path, include_positions=True)(positions_updated(1, 0.9, {"a": (1.0, 2.0)}))
    assert read_session_log(path)[0].payload["positions"] == {"a": [1.0, 2.0]}


def test_manual_scheduler_runs_only_queued_callbacks() -> None:
    scheduler = ManualFrameScheduler()
    calls = []

    def again() -> None:
        calls.append("again")
        if len(calls) < 3:
            scheduler.request_frame(again)

    scheduler.request_frame(again)
    handle = scheduler.request_frame(lambda: calls.append("cancelled"))
    scheduler.cancel(handle)

    assert scheduler.run_frame() == 1
    assert calls == ["again"]
    assert scheduler.run_until_idle() == 2
    assert calls == ["again"] * 3
    assert scheduler.frames_run == 3


def test_realtime_scheduler_paces_frames() -> None:
    sleeps: list[float] = []
    scheduler = RealtimeFrameScheduler(fps=10, sleep=sleeps.append)
    count = 0

    def tick() -> None:
        nonlocal count
        count += 1
        if count < 4:
            scheduler.request_frame(tick)

    scheduler.request_frame(tick)
    assert scheduler.run() == 4
    assert len(sleeps) == 4
    assert all(0 < s <= 0.1 for s in sleeps)

    with pytest.raises(ValueError):
        RealtimeFrameScheduler(fps=0)
