"""Shared fixtures: a fake click executor, a manual clock and a temp pattern store."""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Tuple

import pytest

from click_executor import ClickExecutor
from models import ClickSpec, ClickTiming, MouseButton
from pattern_store import PatternStore


class RecordingExecutor(ClickExecutor):
    """Records every click instead of touching the pointer."""

    name = "recording"

    def __init__(self, fail_on: Optional[Callable[[ClickSpec], bool]] = None,
                 on_click: Optional[Callable[[int], None]] = None) -> None:
        super().__init__(sleep=lambda _seconds: None)
        self._lock = threading.Lock()
        self.clicks: List[Tuple[float, ClickSpec]] = []
        self.actions: List[tuple] = []
        self._position = (0, 0)
        self._fail_on = fail_on
        self._on_click = on_click

    def move_to(self, x: int, y: int) -> None:
        self._position = (x, y)
        self.actions.append(("move", x, y))

    def press(self, button: MouseButton) -> None:
        self.actions.append(("press", button))

    def release(self, button: MouseButton) -> None:
        self.actions.append(("release", button))

    def position(self) -> Tuple[int, int]:
        return self._position

    def click(self, spec: ClickSpec, timing: ClickTiming = ClickTiming()) -> bool:
        with self._lock:
            self.clicks.append((time.perf_counter(), spec))
            count = len(self.clicks)
        if self._fail_on is not None and self._fail_on(spec):
            raise RuntimeError("simulated click failure")
        result = super().click(spec, timing)
        if self._on_click is not None:
            self._on_click(count)
        return result

    @property
    def click_count(self) -> int:
        with self._lock:
            return len(self.clicks)

    def positions(self) -> List[Tuple[Optional[int], Optional[int]]]:
        with self._lock:
            return [(spec.x, spec.y) for _, spec in self.clicks]


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=10_000)


@pytest.fixture
def store(tmp_path) -> PatternStore:
    return PatternStore(tmp_path / "patterns")
