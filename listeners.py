"""Listener interfaces and a registry that tolerates concurrent add/remove."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Callable, Generic, List, Optional, TypeVar

from models import Pattern


logger = logging.getLogger(__name__)

L = TypeVar("L")

# Actions queued while a lock is held and run once it is released.
Deferred = List[Callable[[], None]]


class ClickListener:
    """Receives one notification per completed continuous click."""

    def on_click_performed(self) -> None:
        pass


class PatternListener:
    """Receives recorder and player notifications. Override what you need."""

    def on_recording_state_changed(self, recording: bool) -> None:
        pass

    def on_playback_state_changed(self, playing: bool, paused: bool) -> None:
        pass

    def on_pattern_updated(self, pattern: Pattern) -> None:
        pass

    def on_pattern_list_changed(self, names: List[str]) -> None:
        pass


class ListenerRegistry(Generic[L]):
    """
    Holds listeners and delivers notifications to a snapshot of them.

    A listener that raises is logged and skipped; the remaining listeners
    still receive the notification.
    """

    def __init__(self) -> None:
        self._listeners: List[L] = []
        self._lock = threading.Lock()

    def add(self, listener: L) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove(self, listener: L) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def snapshot(self) -> List[L]:
        with self._lock:
            return list(self._listeners)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, callback: Callable[[L], None], deferred: Optional[Deferred] = None) -> None:
        """
        Deliver a notification to every registered listener.

        Args:
            callback: Invoked once per listener
            deferred: When given, the delivery is queued there instead of
                run now; see run_deferred()
        """
        if deferred is not None:
            deferred.append(functools.partial(self.notify, callback))
            return
        for listener in self.snapshot():
            try:
                callback(listener)
            except Exception:
                logger.exception("Listener %r failed", listener)


def run_deferred(actions: Deferred) -> None:
    """Run queued notifications and launches in order. Call with no locks held."""
    for action in actions:
        action()
