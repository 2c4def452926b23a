"""
Click executors: the only place that touches the real pointer device.

Two backends are provided:
- PyAutoGuiClickExecutor: generic backend built on pyautogui
- PynputClickExecutor:    accelerated backend built on pynput's mouse controller

Both libraries are imported lazily so the engines can be imported (and
tested) on hosts without a display.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Tuple

from models import ClickSpec, ClickTiming, MouseButton


logger = logging.getLogger(__name__)


class ClickExecutionError(Exception):
    """A single physical click could not be performed."""


class ExecutorUnavailableError(RuntimeError):
    """No click backend could be constructed on this host."""


class ClickExecutor:
    """
    Performs physical clicks.

    Subclasses implement the primitives (move_to, press, release, position);
    click() sequences them according to the click mode and timing.
    """

    name = "abstract"

    def __init__(self, sleep: Optional[Callable[[float], None]] = None) -> None:
        self._sleep = sleep or time.sleep

    def move_to(self, x: int, y: int) -> None:  # pragma: no cover - backend specific
        raise NotImplementedError

    def press(self, button: MouseButton) -> None:  # pragma: no cover - backend specific
        raise NotImplementedError

    def release(self, button: MouseButton) -> None:  # pragma: no cover - backend specific
        raise NotImplementedError

    def position(self) -> Tuple[int, int]:  # pragma: no cover - backend specific
        raise NotImplementedError

    def click(self, spec: ClickSpec, timing: ClickTiming = ClickTiming()) -> bool:
        """
        Perform one click as described by spec.

        Returns:
            bool: True when every press/release pair was sent

        Raises:
            ClickExecutionError: if the backend failed
        """
        try:
            if spec.has_position():
                self.move_to(int(spec.x), int(spec.y))
                self._delay_ms(timing.settle_ms)

            repetitions = spec.mode.repetitions
            for index in range(repetitions):
                self.press(spec.button)
                self._delay_ms(timing.press_ms)
                self.release(spec.button)
                if index < repetitions - 1:
                    self._delay_ms(timing.gap_ms)
        except ClickExecutionError:
            raise
        except Exception as exc:
            raise ClickExecutionError(f"{self.name} click failed: {exc}") from exc
        return True

    def nudge(self, dx: int, dy: int) -> None:
        """Move the pointer by a relative offset."""
        x, y = self.position()
        self.move_to(x + dx, y + dy)

    def _delay_ms(self, milliseconds: int) -> None:
        if milliseconds > 0:
            self._sleep(milliseconds / 1000.0)


class PyAutoGuiClickExecutor(ClickExecutor):
    """Generic backend using pyautogui."""

    name = "pyautogui"

    def __init__(self, sleep: Optional[Callable[[float], None]] = None) -> None:
        super().__init__(sleep)
        import pyautogui  # local import to avoid hard dep at import time

        pyautogui.FAILSAFE = True  # Move mouse to corner to stop
        pyautogui.PAUSE = 0.0  # Allow high CPS without artificial delay
        self._gui = pyautogui

    def move_to(self, x: int, y: int) -> None:
        self._gui.moveTo(x, y)

    def press(self, button: MouseButton) -> None:
        self._gui.mouseDown(button=button.value.lower())

    def release(self, button: MouseButton) -> None:
        self._gui.mouseUp(button=button.value.lower())

    def position(self) -> Tuple[int, int]:
        x, y = self._gui.position()
        return int(x), int(y)


class PynputClickExecutor(ClickExecutor):
    """Accelerated backend using pynput's mouse controller."""

    name = "pynput"

    def __init__(self, sleep: Optional[Callable[[float], None]] = None) -> None:
        super().__init__(sleep)
        from pynput.mouse import Controller as MouseController, Button as PynputButton

        self._controller = MouseController()
        self._buttons: dict[MouseButton, Any] = {
            MouseButton.LEFT: PynputButton.left,
            MouseButton.MIDDLE: PynputButton.middle,
            MouseButton.RIGHT: PynputButton.right,
        }

    def move_to(self, x: int, y: int) -> None:
        self._controller.position = (int(x), int(y))

    def press(self, button: MouseButton) -> None:
        self._controller.press(self._buttons[button])

    def release(self, button: MouseButton) -> None:
        self._controller.release(self._buttons[button])

    def position(self) -> Tuple[int, int]:
        x, y = self._controller.position
        return int(x), int(y)


_BACKENDS = {
    "pynput": PynputClickExecutor,
    "pyautogui": PyAutoGuiClickExecutor,
}


def create_click_executor(preferred: Optional[str] = None) -> ClickExecutor:
    """
    Probe the available backends and return the first that can be built.

    pynput is tried first, pyautogui second, unless `preferred` names one.

    Raises:
        ExecutorUnavailableError: if no backend could be constructed
    """
    order = ["pynput", "pyautogui"]
    if preferred:
        if preferred not in _BACKENDS:
            raise ValueError(f"Unknown click backend: {preferred}")
        order.remove(preferred)
        order.insert(0, preferred)

    failures = []
    for backend_name in order:
        try:
            executor = _BACKENDS[backend_name]()
        except Exception as exc:  # pragma: no cover - environment dependent
            logger.warning("Click backend %s unavailable: %s", backend_name, exc)
            failures.append(f"{backend_name}: {exc}")
            continue
        logger.info("Using %s click backend", backend_name)
        return executor

    raise ExecutorUnavailableError("No click backend available (" + "; ".join(failures) + ")")
