"""
Frame scheduling for the cooperative simulation loop.

The simulation never runs on its own thread: it asks a scheduler for the next
frame, does one tick inside the callback, and asks again. Stopping means
cancelling the outstanding frame.
"""

from __future__ import annotations

import itertools
import time
from collections import OrderedDict
from typing import Callable, Protocol

FrameCallback = Callable[[], None]


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> int:
        """Queue `callback` for the next frame and return a cancel handle."""
        ...

    def cancel(self, handle: int) -> None:
        ...


class ManualFrameScheduler:
    """Frames run only when the owner calls `run_frame`/`run_until_idle`.

    Used for headless rendering and tests: deterministic, no clock involved.
    """

    def __init__(self) -> None:
        self._pending: OrderedDict[int, FrameCallback] = OrderedDict()
        self._ids = itertools.count(1)
        self.frames_run = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def cancel_all(self) -> None:
        self._pending.clear()

    def run_frame(self) -> int:
        """Run every callback queued before this frame started; returns how many ran."""
        batch = list(self._pending.items())
        self._pending.clear()
        for _, callback in batch:
            callback()
        if batch:
            self.frames_run += 1
        return len(batch)

    def run_until_idle(self, max_frames: int | None = None) -> int:
        frames = 0
        while self._pending:
            if max_frames is not None and frames >= max_frames:
                break
            self.run_frame()
            frames += 1
        return frames


class RealtimeFrameScheduler(ManualFrameScheduler):
    """Paces frames on the wall clock (blocking `run`), for live terminal views."""

    def __init__(self, fps: float = 30.0, sleep: Callable[[float], None] = time.sleep) -> None:
        super().__init__()
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.interval = 1.0 / fps
        self._sleep = sleep
        self._stopped = False

    def stop(self) -> None:
        self._stopped = True
        self.cancel_all()

    def run(self, max_frames: int | None = None) -> int:
        frames = 0
        self._stopped = False
        while self.pending and not self._stopped:
            if max_frames is not None and frames >= max_frames:
                break
            started = time.monotonic()
            self.run_frame()
            frames += 1
            remaining = self.interval - (time.monotonic() - started)
            if remaining > 0:
                self._sleep(remaining)
        return frames
