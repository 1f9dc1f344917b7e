"""
Explorer events and the optional JSON Lines session log.

Every observable state change is published as a typed event:
- PositionsUpdated on each simulation tick (consumed by the render step)
- SimulationSettled when alpha decays below its minimum
- SelectionChanged / HoverChanged from pointer interaction
- FilterChanged / LayoutChanged / ViewTransformChanged from controls
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    POSITIONS_UPDATED = "positions_updated"
    SIMULATION_SETTLED = "simulation_settled"
    SIMULATION_STOPPED = "simulation_stopped"
    SELECTION_CHANGED = "selection_changed"
    HOVER_CHANGED = "hover_changed"
    FILTER_CHANGED = "filter_changed"
    LAYOUT_CHANGED = "layout_changed"
    VIEW_TRANSFORM_CHANGED = "view_transform_changed"


@dataclass
class Event:
    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "payload": self.payload}


def positions_updated(tick: int, alpha: float, positions: dict[str, tuple[float, float]]) -> Event:
    return Event(
        EventKind.POSITIONS_UPDATED,
        {"tick": tick, "alpha": alpha, "positions": positions},
    )


def simulation_settled(tick: int, alpha: float) -> Event:
    return Event(EventKind.SIMULATION_SETTLED, {"tick": tick, "alpha": alpha})


Listener = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe; listeners run in subscription order."""

    def __init__(self) -> None:
        self._listeners: dict[EventKind | None, list[Listener]] = {}

    def subscribe(self, listener: Listener, kind: EventKind | None = None) -> Callable[[], None]:
        """Register a listener for one kind (or every kind when None).

        Returns an unsubscribe function.
        """
        self._listeners.setdefault(kind, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(kind, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Event) -> None:
        for listener in list(self._listeners.get(event.kind, [])):
            listener(event)
        for listener in list(self._listeners.get(None, [])):
            listener(event)

    def clear(self) -> None:
        self._listeners.clear()


@dataclass
class EventEnvelope:
    """One line of the session log."""

    timestamp: str
    kind: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EventEnvelope":
        return cls(
            timestamp=data["timestamp"],
            kind=data["kind"],
            payload=data.get("payload", {}),
        )


class SessionLog:
    """Append explorer events to a JSON Lines file.

    Tick events carry full position maps; they are summarized to the tick and
    alpha unless `include_positions` is set.
    """

    def __init__(self, path: Path, *, include_positions: bool = False) -> None:
        self.path = path
        self.include_positions = include_positions
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, event: Event) -> None:
        payload = dict(event.payload)
        if event.kind is EventKind.POSITIONS_UPDATED and not self.include_positions:
            payload.pop("positions", None)
        envelope = EventEnvelope(
            timestamp=datetime.now(timezone.utc).isoformat(),
            kind=event.kind.value,
            payload=payload,
        )
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(envelope.to_dict(), default=_json_default) + "\n")


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return str(value)


def read_session_log(path: Path, last_n: int | None = None) -> list[EventEnvelope]:
    """Read envelopes back, skipping malformed lines."""
    if not path.exists():
        return []

    entries = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(EventEnvelope.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError):
                logger.debug("Skipping malformed session log line")
                continue

    if last_n is not None:
        return entries[-last_n:]
    return entries
