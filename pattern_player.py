"""
Pattern player: replays a stored Pattern on its own worker thread.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Callable, Optional

from click_executor import ClickExecutor
from listeners import Deferred, ListenerRegistry, PatternListener
from models import ClickEvent, ClickTiming, Pattern, PlaybackState
from pattern_store import PatternStore


logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05
STOP_TIMEOUT_SECONDS = 0.5


class PatternPlayer:
    """
    Replays pattern events in insertion order, honoring each event's delay.

    The worker polls its state at a short fixed interval, so pause and stop
    take effect within one poll. An event is due `delay_millis` after the
    previous event started; time spent paused does not count toward it.
    A failed click is logged and the cursor still advances.
    """

    def __init__(
        self,
        executor: ClickExecutor,
        store: PatternStore,
        listeners: Optional[ListenerRegistry[PatternListener]] = None,
        timing: Optional[ClickTiming] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        is_blocked: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._executor = executor
        self._store = store
        self._listeners = listeners if listeners is not None else ListenerRegistry()
        self._timing = timing or ClickTiming.for_playback()
        self._poll_interval = poll_interval
        self._is_blocked = is_blocked or (lambda: False)

        self._lock = threading.Lock()
        self._state = PlaybackState()
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_flag: Optional[threading.Event] = None
        self._clicks_attempted = 0

    def play(self, name: str, loop: bool = False, deferred: Optional[Deferred] = None) -> bool:
        """
        Start replaying the named pattern.

        Args:
            name: Stored pattern to replay
            loop: Restart from the first event after the last one
            deferred: When the caller holds a lock, the notification and
                the worker launch are queued here instead of run now

        Returns:
            bool: True if playback started
        """
        if self._is_blocked():
            logger.info("Rejected playback of %s: another mode is active", name)
            return False

        pattern = self._store.get(name)
        if pattern is None or pattern.is_empty():
            logger.warning("Pattern not found or empty: %s", name)
            return False

        with self._lock:
            if self._state.playing:
                logger.info("Rejected playback of %s: already playing", name)
                return False

            pattern.looping = bool(loop)
            self._state = PlaybackState(playing=True, paused=False, cursor=0, pattern=pattern)
            self._clicks_attempted = 0
            stop_flag = threading.Event()
            worker = threading.Thread(
                target=self._playback_worker,
                args=(stop_flag, pattern),
                name="pattern-playback",
                daemon=True,
            )
            self._stop_flag = stop_flag
            self._worker_thread = worker

        launch = functools.partial(self._launch, worker, pattern)
        if deferred is None:
            launch()
        else:
            deferred.append(launch)
        return True

    def stop(self) -> None:
        """Stop playback. Safe to call from any thread, including the worker."""
        with self._lock:
            was_playing = self._state.playing
            self._state.playing = False
            self._state.paused = False
            stop_flag = self._stop_flag
            worker = self._worker_thread
            self._stop_flag = None
            self._worker_thread = None

        if stop_flag is not None:
            stop_flag.set()

        if worker is not None and worker is not threading.current_thread() and worker.is_alive():
            worker.join(timeout=STOP_TIMEOUT_SECONDS)
            if worker.is_alive():
                logger.warning("Playback worker did not finish within %.1fs; abandoning it", STOP_TIMEOUT_SECONDS)

        if was_playing:
            self._listeners.notify(lambda listener: listener.on_playback_state_changed(False, False))
            logger.info("Pattern playback stopped")

    def pause_resume(self) -> None:
        with self._lock:
            if not self._state.playing:
                return
            self._state.paused = not self._state.paused
            paused = self._state.paused

        self._listeners.notify(lambda listener: listener.on_playback_state_changed(True, paused))
        logger.info("Pattern playback %s", "paused" if paused else "resumed")

    def is_playing(self) -> bool:
        with self._lock:
            return self._state.playing

    def is_paused(self) -> bool:
        with self._lock:
            return self._state.paused

    def get_state(self) -> PlaybackState:
        with self._lock:
            state = self._state
            return PlaybackState(state.playing, state.paused, state.cursor, state.pattern)

    @property
    def current_pattern(self) -> Optional[Pattern]:
        with self._lock:
            return self._state.pattern

    @property
    def clicks_attempted(self) -> int:
        with self._lock:
            return self._clicks_attempted

    # -- worker ----------------------------------------------------------

    def _playback_worker(self, stop_flag: threading.Event, pattern: Pattern) -> None:
        events = list(pattern.events)
        anchor = time.perf_counter()
        paused_at: Optional[float] = None

        while not stop_flag.is_set():
            with self._lock:
                if self._stop_flag is not stop_flag:
                    break
                paused = self._state.paused
                cursor = self._state.cursor

            now = time.perf_counter()
            if paused:
                if paused_at is None:
                    paused_at = now
                stop_flag.wait(self._poll_interval)
                continue
            if paused_at is not None:
                anchor += now - paused_at
                paused_at = None

            if cursor >= len(events):
                if pattern.looping:
                    self._set_cursor(stop_flag, 0)
                    continue
                self.stop()
                break

            event = events[cursor]
            due = anchor + event.delay_millis / 1000.0
            remaining = due - now
            if remaining > 0:
                stop_flag.wait(min(remaining, self._poll_interval))
                continue

            anchor = due if now - due < self._poll_interval else now
            self._execute(event)
            self._set_cursor(stop_flag, cursor + 1)

        logger.debug("Playback worker exiting")

    def _launch(self, worker: threading.Thread, pattern: Pattern) -> None:
        with self._lock:
            if self._worker_thread is not worker:
                # stopped before the worker could be launched
                return

        self._listeners.notify(lambda listener: listener.on_playback_state_changed(True, False))
        with self._lock:
            if self._worker_thread is not worker:
                return
        try:
            worker.start()
        except RuntimeError:
            logger.critical("Could not start playback worker thread")
            self.stop()
            raise

        logger.info("Pattern playback started: %s%s", pattern.name, " (looping)" if pattern.looping else "")

    def _set_cursor(self, stop_flag: threading.Event, cursor: int) -> None:
        with self._lock:
            if self._stop_flag is stop_flag:
                self._state.cursor = cursor

    def _execute(self, event: ClickEvent) -> None:
        with self._lock:
            self._clicks_attempted += 1
        try:
            if not self._executor.click(event.to_spec(), self._timing):
                logger.warning("Playback click at (%d, %d) was not performed", event.x, event.y)
        except Exception as exc:
            logger.warning("Error during pattern playback at (%d, %d): %s", event.x, event.y, exc)
