"""Global mouse hook that feeds raw press/release events to the recorder."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

try:
    from pynput import mouse  # type: ignore
except Exception:  # pragma: no cover - environment dependent
    mouse = None  # type: ignore

from models import MouseButton


logger = logging.getLogger(__name__)

PressCallback = Callable[[int, int, MouseButton], None]
ReleaseCallback = Callable[[MouseButton], None]


def to_mouse_button(button: Any) -> MouseButton:
    """Map a pynput button (or any object with a `name`) to MouseButton."""
    name = getattr(button, "name", None) or str(button).rsplit(".", 1)[-1]
    return MouseButton.parse(name)


class MouseHookService:
    """
    Listens to global mouse buttons and forwards them to the callbacks.

    Runs on pynput's own listener thread; callbacks must be thread-safe.
    """

    def __init__(self, on_press: PressCallback, on_release: Optional[ReleaseCallback] = None) -> None:
        self._on_press = on_press
        self._on_release = on_release
        self._listener: Optional[object] = None
        self._lock = threading.Lock()

    def start(self) -> bool:
        """Attach the listener. Returns False if no mouse backend is available."""
        with self._lock:
            if self._listener is not None:
                return True
            if mouse is None:
                logger.warning("pynput/mouse backend not available; pattern recording is disabled")
                return False
            try:
                listener = mouse.Listener(on_click=self.handle_click)
                listener.daemon = True
                listener.start()
            except Exception as exc:  # pragma: no cover - hardware dependent
                logger.error("Failed to start mouse hook: %s", exc)
                return False
            self._listener = listener
            return True

    def stop(self) -> None:
        with self._lock:
            listener = self._listener
            self._listener = None
        if listener is not None:
            try:
                listener.stop()  # type: ignore[attr-defined]
            except Exception as exc:  # pragma: no cover - hardware dependent
                logger.warning("Failed to stop mouse hook: %s", exc)

    def is_running(self) -> bool:
        with self._lock:
            return self._listener is not None

    def handle_click(self, x: float, y: float, button: Any, pressed: bool) -> None:
        mapped = to_mouse_button(button)
        try:
            if pressed:
                self._on_press(int(x), int(y), mapped)
            elif self._on_release is not None:
                self._on_release(mapped)
        except Exception:
            # An exception escaping here would stop pynput's listener thread.
            logger.exception("Mouse event handler failed")
