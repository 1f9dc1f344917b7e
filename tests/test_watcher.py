from pathlib import Path

from watchdog.events import FileModifiedEvent, FileMovedEvent

from eigraph.watcher import PayloadEventHandler


def test_debounced_change_fires_once(tmp_path: Path) -> None:
    payload = tmp_path / "graph.json"
    payload.write_text('{"nodes": []}', encoding="utf-8")
    fired: list[Path] = []
    handler = PayloadEventHandler(payload, fired.append, debounce=1.0)

    payload.write_text('{"nodes": [{"id": "a"}]}', encoding="utf-8")
    handler.on_modified(FileModifiedEvent(str(payload)))
    handler.on_modified(FileModifiedEvent(str(payload)))

    start = handler.pending_since
    assert not handler.flush_pending(now=start + 0.5)
    assert handler.flush_pending(now=start + 1.5)
    assert fired == [payload.resolve()]
    assert not handler.flush_pending(now=start + 3.0)


def test_identical_rewrite_and_other_files_are_ignored(tmp_path: Path) -> None:
    payload = tmp_path / "graph.json"
    payload.write_text('{"nodes": []}', encoding="utf-8")
    fired: list[Path] = []
    handler = PayloadEventHandler(payload, fired.append, debounce=0.0)

    handler.on_modified(FileModifiedEvent(str(tmp_path / "other.json")))
    assert handler.pending_since is None

    handler.on_modified(FileModifiedEvent(str(payload)))
    assert not handler.flush_pending()
    assert fired == []


def test_atomic_save_via_rename(tmp_path: Path) -> None:
    payload = tmp_path / "graph.json"
    payload.write_text('{"nodes": []}', encoding="utf-8")
    fired: list[Path] = []
    handler = PayloadEventHandler(payload, fired.append, debounce=0.0)

    tmp = tmp_path / "graph.json.tmp"
    tmp.write_text('{"nodes": [{"id": "b"}]}', encoding="utf-8")
    tmp.replace(payload)
    handler.on_moved(FileMovedEvent(str(tmp), str(payload)))

    assert handler.flush_pending()
    assert fired == [payload.resolve()]
