"""
Domain models for the auto clicker engines.
Each class follows the Single Responsibility Principle (SRP).
"""

from __future__ import annotations

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


MIN_CLICK_RATE = 0.1
MAX_CLICK_RATE = 500.0


class MouseButton(Enum):
    """Enumeration of supported mouse buttons."""
    LEFT = "LEFT"
    MIDDLE = "MIDDLE"
    RIGHT = "RIGHT"

    @staticmethod
    def parse(value: Any) -> "MouseButton":
        """Map a button name to a MouseButton, falling back to LEFT."""
        if isinstance(value, MouseButton):
            return value
        try:
            return MouseButton(str(value).strip().upper())
        except ValueError:
            return MouseButton.LEFT


class ClickMode(Enum):
    """How many press/release pairs make up one click."""
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    TRIPLE = "TRIPLE"

    @property
    def repetitions(self) -> int:
        return {"SINGLE": 1, "DOUBLE": 2, "TRIPLE": 3}[self.value]

    @staticmethod
    def parse(value: Any) -> "ClickMode":
        """Map a mode name to a ClickMode, falling back to SINGLE."""
        if isinstance(value, ClickMode):
            return value
        try:
            return ClickMode(str(value).strip().upper())
        except ValueError:
            return ClickMode.SINGLE


def current_millis() -> int:
    """Wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def monotonic_millis() -> int:
    """Monotonic time in milliseconds, used for delays and rate windows."""
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class ClickSpec:
    """
    One click attempt, recorded or live.

    x/y of None means "at the current pointer position".
    """
    x: Optional[int]
    y: Optional[int]
    button: MouseButton = MouseButton.LEFT
    mode: ClickMode = ClickMode.SINGLE
    timestamp: int = field(default_factory=current_millis)

    def has_position(self) -> bool:
        return self.x is not None and self.y is not None


@dataclass(frozen=True)
class ClickTiming:
    """Small fixed delays (milliseconds) used while performing one click."""
    settle_ms: int = 0
    press_ms: int = 10
    gap_ms: int = 50

    @staticmethod
    def for_rate(cps: float) -> "ClickTiming":
        """Shorter press and gap for high click rates."""
        if cps > 50:
            return ClickTiming(settle_ms=0, press_ms=5, gap_ms=20)
        return ClickTiming(settle_ms=0, press_ms=10, gap_ms=50)

    @staticmethod
    def for_playback() -> "ClickTiming":
        return ClickTiming(settle_ms=50, press_ms=20, gap_ms=50)


@dataclass
class ClickEvent:
    """A recorded click. delay_millis is the gap before this click."""
    x: int
    y: int
    delay_millis: int
    button: MouseButton = MouseButton.LEFT
    mode: ClickMode = ClickMode.SINGLE

    def __post_init__(self):
        if self.delay_millis < 0:
            raise ValueError("Delay cannot be negative")

    def to_spec(self) -> ClickSpec:
        return ClickSpec(x=self.x, y=self.y, button=self.button, mode=self.mode)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "delay_millis": self.delay_millis,
            "button": self.button.value,
            "mode": self.mode.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ClickEvent":
        return ClickEvent(
            x=int(data.get("x", 0) or 0),
            y=int(data.get("y", 0) or 0),
            delay_millis=max(0, int(data.get("delay_millis", 0) or 0)),
            button=MouseButton.parse(data.get("button", MouseButton.LEFT.value)),
            mode=ClickMode.parse(data.get("mode", ClickMode.SINGLE.value)),
        )


@dataclass
class Pattern:
    """A named, ordered sequence of recorded clicks."""
    name: str
    events: List[ClickEvent] = field(default_factory=list)
    looping: bool = False

    @property
    def click_count(self) -> int:
        return len(self.events)

    def is_empty(self) -> bool:
        return not self.events

    def add_event(self, event: ClickEvent) -> None:
        self.events.append(event)

    def total_duration_ms(self) -> int:
        """Sum of all recorded delays."""
        return sum(event.delay_millis for event in self.events)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the pattern for JSON storage."""
        return {
            "name": self.name,
            "looping": self.looping,
            "events": [event.to_dict() for event in self.events],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Pattern":
        """Create a Pattern from a dictionary, keeping event order."""
        name = str(data.get("name", "") or "")
        if not name:
            raise ValueError("Pattern has no name")
        events_data = data.get("events", []) or []
        events: List[ClickEvent] = []
        if isinstance(events_data, list):
            for raw in events_data:
                if isinstance(raw, dict):
                    events.append(ClickEvent.from_dict(raw))
        return Pattern(name=name, events=events, looping=bool(data.get("looping", False)))


@dataclass
class SessionState:
    """Running/paused flags of a continuous clicking session. paused implies running."""
    running: bool = False
    paused: bool = False


@dataclass
class RateStats:
    """Snapshot of the statistics tracker."""
    lifetime_clicks: int = 0
    session_clicks: int = 0
    peak_rate: float = 0.0
    average_rate: float = 0.0
    measured_rate: float = 0.0
    measurement_window_start: int = 0
    window_click_count: int = 0


@dataclass(frozen=True)
class PerformanceSample:
    """Measured rate of one completed window against its target."""
    timestamp: int
    target_cps: float
    actual_cps: float


@dataclass
class PlaybackState:
    """Progress of the active pattern playback."""
    playing: bool = False
    paused: bool = False
    cursor: int = 0
    pattern: Optional[Pattern] = None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class ApplicationSettings:
    """Persisted application preferences."""

    click_rate_per_second: float = 10.0
    mouse_button: MouseButton = MouseButton.LEFT
    click_mode: ClickMode = ClickMode.SINGLE
    randomize_interval: bool = False
    randomization_factor: float = 0.2
    random_movement: bool = False
    movement_radius: int = 2
    toggle_hotkey: str = "F6"
    pause_hotkey: str = "F7"
    record_hotkey: str = "F9"
    playback_hotkey: str = "F10"
    exclusive_modes: bool = True
    lifetime_clicks: int = 0
    last_pattern_name: str = ""
    loop_playback: bool = False

    def __post_init__(self):
        self.click_rate_per_second = _clamp(float(self.click_rate_per_second), MIN_CLICK_RATE, MAX_CLICK_RATE)
        self.randomization_factor = _clamp(float(self.randomization_factor), 0.0, 1.0)
        self.movement_radius = int(_clamp(int(self.movement_radius), 0, 20))
        self.lifetime_clicks = max(0, int(self.lifetime_clicks))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to primitive types for JSON storage."""
        return {
            "click_rate_per_second": self.click_rate_per_second,
            "mouse_button": self.mouse_button.value,
            "click_mode": self.click_mode.value,
            "randomize_interval": self.randomize_interval,
            "randomization_factor": self.randomization_factor,
            "random_movement": self.random_movement,
            "movement_radius": self.movement_radius,
            "toggle_hotkey": self.toggle_hotkey,
            "pause_hotkey": self.pause_hotkey,
            "record_hotkey": self.record_hotkey,
            "playback_hotkey": self.playback_hotkey,
            "exclusive_modes": self.exclusive_modes,
            "lifetime_clicks": self.lifetime_clicks,
            "last_pattern_name": self.last_pattern_name,
            "loop_playback": self.loop_playback,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ApplicationSettings":
        """Create settings instance from JSON dictionary."""
        return ApplicationSettings(
            click_rate_per_second=float(data.get("click_rate_per_second", 10.0) or 10.0),
            mouse_button=MouseButton.parse(data.get("mouse_button", MouseButton.LEFT.value)),
            click_mode=ClickMode.parse(data.get("click_mode", ClickMode.SINGLE.value)),
            randomize_interval=bool(data.get("randomize_interval", False)),
            randomization_factor=float(data.get("randomization_factor", 0.2) or 0.0),
            random_movement=bool(data.get("random_movement", False)),
            movement_radius=int(data.get("movement_radius", 2) or 0),
            toggle_hotkey=str(data.get("toggle_hotkey", "F6")),
            pause_hotkey=str(data.get("pause_hotkey", "F7")),
            record_hotkey=str(data.get("record_hotkey", "F9")),
            playback_hotkey=str(data.get("playback_hotkey", "F10")),
            exclusive_modes=bool(data.get("exclusive_modes", True)),
            lifetime_clicks=int(data.get("lifetime_clicks", 0) or 0),
            last_pattern_name=str(data.get("last_pattern_name", "") or ""),
            loop_playback=bool(data.get("loop_playback", False)),
        )
