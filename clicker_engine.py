"""
Auto-Clicker Engine - fixed-rate click dispatching.

The engine runs one background worker per session. It knows nothing about
UI or hotkeys; it reports clicks through ClickListener callbacks and the
StatisticsTracker.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Optional

from click_executor import ClickExecutor
from click_statistics import StatisticsTracker
from listeners import ClickListener, ListenerRegistry
from models import ApplicationSettings, ClickSpec, ClickTiming, SessionState


logger = logging.getLogger(__name__)

STOP_TIMEOUT_SECONDS = 0.5
HIGH_RATE_THRESHOLD_CPS = 50.0
SPIN_WINDOW_SECONDS = 0.003


def triangular(rng: Optional[random.Random] = None) -> float:
    """
    Zero-mean random value in (-1, 1), more likely near 0.

    Difference of two independent uniform(0, 1) draws.
    """
    source = rng or random
    return source.random() - source.random()


def spin_wait_until(deadline: float, stop_flag: threading.Event) -> bool:
    """
    Busy-wait until perf_counter() reaches deadline.

    Returns:
        bool: False if stop_flag was set while waiting
    """
    while time.perf_counter() < deadline:
        if stop_flag.is_set():
            return False
    return True


class RateScheduler:
    """
    Dispatches clicks at a target rate until stopped.

    Ticks are scheduled on a fixed timeline (period = 1 / target CPS) so the
    delivered rate does not drift with click duration. Paused ticks are
    skipped but still advance the timeline; when the worker falls more than
    one period behind, the timeline is reset to "now" instead of bursting.
    """

    def __init__(
        self,
        executor: ClickExecutor,
        settings: Optional[ApplicationSettings] = None,
        tracker: Optional[StatisticsTracker] = None,
        rng: Optional[random.Random] = None,
        spin_wait: bool = True,
    ):
        self._executor = executor
        self._settings = settings or ApplicationSettings()
        self._tracker = tracker or StatisticsTracker()
        self._rng = rng or random.Random()
        self._spin_wait = spin_wait
        self._listeners: ListenerRegistry[ClickListener] = ListenerRegistry()

        self._lock = threading.Lock()
        self._state = SessionState()
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_flag: Optional[threading.Event] = None
        self._target_cps = self._settings.click_rate_per_second
        self._base_interval_ms = self.compute_base_interval_ms(self._target_cps)

    # -- listeners -------------------------------------------------------

    def add_click_listener(self, listener: ClickListener) -> None:
        """
        Register a listener notified after every successful click.

        Listeners run on the worker thread and must not block it.
        """
        self._listeners.add(listener)

    def remove_click_listener(self, listener: ClickListener) -> None:
        """Unregister a click listener. Unknown listeners are ignored."""
        self._listeners.remove(listener)

    # -- control ---------------------------------------------------------

    @staticmethod
    def compute_base_interval_ms(target_cps: float) -> int:
        """Nominal interval in whole milliseconds, never below 1. Used to scale jitter."""
        return max(1, round(1000.0 / target_cps))

    def start(self, target_cps: Optional[float] = None) -> bool:
        """
        Start clicking on a background worker.

        Args:
            target_cps: Clicks per second; defaults to the last configured rate

        Returns:
            bool: True if a new session was started
        """
        cps = self._target_cps if target_cps is None else float(target_cps)
        if cps <= 0:
            logger.warning("Rejected start: target rate must be positive (got %s)", cps)
            return False

        with self._lock:
            if self._state.running:
                logger.info("Rate scheduler already running")
                return False

            self._target_cps = cps
            self._base_interval_ms = self.compute_base_interval_ms(cps)
            self._state = SessionState(running=True, paused=False)
            stop_flag = threading.Event()
            worker = threading.Thread(
                target=self._click_worker,
                args=(stop_flag, cps),
                name="click-scheduler",
                daemon=True,
            )
            self._stop_flag = stop_flag
            self._worker_thread = worker
            self._tracker.set_target_rate(cps)
            self._tracker.start_window()
            try:
                worker.start()
            except RuntimeError:
                self._state = SessionState()
                self._stop_flag = None
                self._worker_thread = None
                logger.critical("Could not start click worker thread")
                raise

        logger.info("Clicking started at %.2f CPS (base interval %d ms)", cps, self._base_interval_ms)
        return True

    def stop(self) -> None:
        """Stop clicking and wait (bounded) for the worker to finish. Idempotent."""
        with self._lock:
            was_running = self._state.running
            self._state = SessionState()
            stop_flag = self._stop_flag
            worker = self._worker_thread
            self._stop_flag = None
            self._worker_thread = None

        if stop_flag is not None:
            stop_flag.set()

        if worker is not None and worker is not threading.current_thread() and worker.is_alive():
            worker.join(timeout=STOP_TIMEOUT_SECONDS)
            if worker.is_alive():
                logger.warning("Click worker did not finish within %.1fs; abandoning it", STOP_TIMEOUT_SECONDS)

        if was_running:
            logger.info("Clicking stopped. Session clicks: %d", self._tracker.session_clicks)

    def toggle(self) -> None:
        """Start if stopped, stop if running."""
        if self.is_running():
            self.stop()
        else:
            self.start()

    def pause(self) -> None:
        """
        Suspend clicking without ending the session.

        Ticks that fall inside the pause are dropped, not replayed on resume.
        Ignored when not running.
        """
        with self._lock:
            if self._state.running:
                self._state.paused = True

    def resume(self) -> None:
        """Continue a paused session on its existing timeline. Ignored when not running."""
        with self._lock:
            if self._state.running:
                self._state.paused = False

    def is_running(self) -> bool:
        """Check if a clicking session is active (paused or not)."""
        with self._lock:
            return self._state.running

    def is_paused(self) -> bool:
        """Check if the active session is paused."""
        with self._lock:
            return self._state.paused

    def get_state(self) -> SessionState:
        """Returns a copy of the current session state."""
        with self._lock:
            return SessionState(self._state.running, self._state.paused)

    @property
    def target_cps(self) -> float:
        """Rate of the current or most recent session."""
        return self._target_cps

    @property
    def base_interval_ms(self) -> int:
        return self._base_interval_ms

    @property
    def tracker(self) -> StatisticsTracker:
        return self._tracker

    # -- jitter ----------------------------------------------------------

    def calculate_random_delay(self, base_interval_ms: int) -> int:
        """Extra delay in ms for the next tick; 0 when jitter is disabled."""
        if not self._settings.randomize_interval:
            return 0
        factor = self._settings.randomization_factor
        if factor <= 0:
            return 0
        delay = round(base_interval_ms * factor * triangular(self._rng))
        return max(0, delay)

    # -- worker ----------------------------------------------------------

    def _click_worker(self, stop_flag: threading.Event, target_cps: float) -> None:
        """
        Worker thread loop: wait for the next tick, click unless paused, advance.

        Owns its own stop_flag so an abandoned worker from an earlier session
        can never click for a newer one.
        """
        period = 1.0 / target_cps
        base_interval_ms = self.compute_base_interval_ms(target_cps)
        spin = self._spin_wait and target_cps > HIGH_RATE_THRESHOLD_CPS
        timing = ClickTiming.for_rate(target_cps)
        next_tick = time.perf_counter()

        while not stop_flag.is_set():
            if not self._wait_until(next_tick, stop_flag, spin):
                break

            extra_ms = 0
            if not self._is_paused_for(stop_flag):
                self._dispatch(timing)
                extra_ms = self.calculate_random_delay(base_interval_ms)

            next_tick += period + extra_ms / 1000.0
            now = time.perf_counter()
            if now - next_tick > period:
                next_tick = now

        logger.debug("Click worker exiting")

    def _is_paused_for(self, stop_flag: threading.Event) -> bool:
        with self._lock:
            return self._state.paused or self._stop_flag is not stop_flag

    def _wait_until(self, deadline: float, stop_flag: threading.Event, spin: bool) -> bool:
        remaining = deadline - time.perf_counter()
        if spin:
            coarse = remaining - SPIN_WINDOW_SECONDS
            if coarse > 0 and stop_flag.wait(coarse):
                return False
            return spin_wait_until(deadline, stop_flag)
        if remaining > 0 and stop_flag.wait(remaining):
            return False
        return not stop_flag.is_set()

    def _dispatch(self, timing: ClickTiming) -> None:
        settings = self._settings
        spec = ClickSpec(x=None, y=None, button=settings.mouse_button, mode=settings.click_mode)
        try:
            if not self._executor.click(spec, timing):
                logger.warning("Click was not performed")
                return
        except Exception as exc:
            logger.warning("Error performing click: %s", exc)
            return

        if settings.random_movement and settings.movement_radius > 0:
            self._apply_random_movement(settings.movement_radius)

        self._tracker.record_click()
        self._listeners.notify(lambda listener: listener.on_click_performed())

    def _apply_random_movement(self, radius: int) -> None:
        dx = self._rng.randrange(-radius, radius)
        dy = self._rng.randrange(-radius, radius)
        try:
            self._executor.nudge(dx, dy)
        except Exception as exc:
            logger.warning("Error applying random movement: %s", exc)
