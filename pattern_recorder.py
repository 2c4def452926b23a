"""Event recorder: captures pointer presses into a named Pattern."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from listeners import Deferred, ListenerRegistry, PatternListener
from models import ClickEvent, ClickMode, MouseButton, Pattern, monotonic_millis
from pattern_store import PatternStore


logger = logging.getLogger(__name__)


class EventRecorder:
    """
    IDLE -> RECORDING -> IDLE state machine.

    Raw press events arrive asynchronously from the input hook through
    handle_press(); each one becomes a ClickEvent whose delay is the time
    since the previous press (or since recording started).
    """

    def __init__(
        self,
        store: PatternStore,
        listeners: Optional[ListenerRegistry[PatternListener]] = None,
        mode_provider: Optional[Callable[[], ClickMode]] = None,
        clock: Optional[Callable[[], int]] = None,
        is_blocked: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._store = store
        self._listeners = listeners if listeners is not None else ListenerRegistry()
        self._mode_provider = mode_provider or (lambda: ClickMode.SINGLE)
        self._clock = clock or monotonic_millis
        self._is_blocked = is_blocked or (lambda: False)
        self._lock = threading.Lock()
        self._recording = False
        self._pattern: Optional[Pattern] = None
        self._last_event_time = 0

    def start_recording(self, name: str, deferred: Optional[Deferred] = None) -> bool:
        """
        Arm the recorder with a new empty pattern.

        Args:
            name: Name the pattern is stored under
            deferred: Queue for the state-change notification when the
                caller holds a lock; notifies immediately when omitted

        Returns:
            bool: False if already recording, blocked, or name is empty
        """
        name = (name or "").strip()
        if not name:
            logger.warning("Rejected recording: pattern name is empty")
            return False
        if self._is_blocked():
            logger.info("Rejected recording of %s: another mode is active", name)
            return False

        with self._lock:
            if self._recording:
                logger.info("Rejected recording of %s: already recording", name)
                return False
            self._pattern = Pattern(name=name)
            self._last_event_time = self._clock()
            self._recording = True

        self._listeners.notify(lambda listener: listener.on_recording_state_changed(True), deferred)
        logger.info("Pattern recording started: %s", name)
        return True

    def handle_press(self, x: int, y: int, button: MouseButton) -> None:
        """Append a click for a raw pointer press. Ignored unless recording."""
        with self._lock:
            if not self._recording or self._pattern is None:
                return
            now = self._clock()
            delay = max(0, now - self._last_event_time)
            self._last_event_time = now
            event = ClickEvent(
                x=int(x),
                y=int(y),
                delay_millis=delay,
                button=MouseButton.parse(button),
                mode=self._mode_provider(),
            )
            self._pattern.add_event(event)
            pattern = self._pattern

        logger.debug("Recorded click: %s", event)
        self._listeners.notify(lambda listener: listener.on_pattern_updated(pattern))

    def handle_release(self, button: MouseButton) -> None:
        """Releases carry no information for a click pattern."""

    def stop_recording(self, deferred: Optional[Deferred] = None) -> Optional[Pattern]:
        """
        Disarm the recorder and commit the pattern if it has any clicks.

        Args:
            deferred: Queue for the notifications when the caller holds a lock

        Returns:
            The committed pattern, or None if nothing was recorded
        """
        with self._lock:
            if not self._recording:
                return None
            self._recording = False
            pattern = self._pattern

        committed = None
        if pattern is not None and not pattern.is_empty():
            self._store.put(pattern)
            committed = pattern
            names = self._store.list_names()
            self._listeners.notify(lambda listener: listener.on_pattern_list_changed(names), deferred)
            logger.info("Pattern recording stopped: %s (%d clicks)", pattern.name, pattern.click_count)
        else:
            logger.info("Pattern recording stopped with no clicks; nothing saved")

        self._listeners.notify(lambda listener: listener.on_recording_state_changed(False), deferred)
        if committed is not None:
            self._listeners.notify(lambda listener: listener.on_pattern_updated(committed), deferred)
        return committed

    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    @property
    def current_pattern(self) -> Optional[Pattern]:
        with self._lock:
            return self._pattern
