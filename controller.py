"""
Controller: the single entry point used by hotkeys, CLI and UI layers.

Continuous clicking, recording and playback are all driven through here.
With `exclusive_modes` enabled only one of the three may be active.

SRP: the controller only wires engines together and enforces mode
exclusion; clicking, statistics and pattern handling live in their own
modules.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from click_executor import ClickExecutor
from click_statistics import StatisticsTracker
from clicker_engine import RateScheduler
from input_hook import MouseHookService
from listeners import ClickListener, PatternListener
from models import ApplicationSettings, MouseButton, Pattern, PerformanceSample, MIN_CLICK_RATE, MAX_CLICK_RATE
from pattern_service import PatternService
from pattern_store import PatternStore
from settings_manager import SettingsManager


logger = logging.getLogger(__name__)


class AutoClickerController:
    """
    Wires the rate scheduler, statistics and pattern service together.

    All state-changing operations are safe to call from listener callbacks
    and from hotkey threads.
    """

    def __init__(
        self,
        executor: ClickExecutor,
        settings: Optional[ApplicationSettings] = None,
        store: Optional[PatternStore] = None,
        settings_manager: Optional[SettingsManager] = None,
        clock: Optional[Callable[[], int]] = None,
        spin_wait: bool = True,
        poll_interval: Optional[float] = None,
        mouse_hook: Optional[MouseHookService] = None,
    ) -> None:
        """
        Build the engines around one executor.

        Args:
            executor: Click backend shared by continuous clicking and playback
            settings: Application settings; defaults are used when omitted
            store: Pattern storage; the default directory when omitted
            settings_manager: Where save_state() persists settings, if anywhere
            clock: Millisecond clock for statistics and recording
            spin_wait: Allow the busy-wait tail above 50 CPS
            poll_interval: Player poll period in seconds
            mouse_hook: Input hook feeding the recorder; built on first use
        """
        self._settings = settings or ApplicationSettings()
        self._settings_manager = settings_manager
        self._tracker = StatisticsTracker(clock=clock, lifetime_clicks=self._settings.lifetime_clicks)
        self._scheduler = RateScheduler(
            executor,
            settings=self._settings,
            tracker=self._tracker,
            spin_wait=spin_wait,
        )
        self._patterns = PatternService(
            executor,
            store or PatternStore(),
            mode_provider=lambda: self._settings.click_mode,
            clock=clock,
            poll_interval=poll_interval,
            external_busy=lambda: self._settings.exclusive_modes and self._scheduler.is_running(),
        )
        self._mouse_hook = mouse_hook

    @property
    def settings(self) -> ApplicationSettings:
        return self._settings

    @property
    def patterns(self) -> PatternService:
        return self._patterns

    # -- continuous clicking --------------------------------------------

    def start_clicking(self) -> bool:
        """
        Start continuous clicking at the configured rate.

        Returns:
            bool: False if already running, or if exclusive and a pattern is active
        """
        # The scheduler notifies click listeners on its worker thread only,
        # so nothing runs listener code while the mode lock is held.
        with self._patterns.mode_lock:
            if self._settings.exclusive_modes and self._patterns.is_active():
                logger.info("Rejected start: a pattern is being recorded or played")
                return False
            return self._scheduler.start(self._settings.click_rate_per_second)

    def stop_clicking(self) -> None:
        """Stop continuous clicking. Idempotent."""
        self._scheduler.stop()

    def toggle_clicking(self) -> None:
        """Hotkey action: start if stopped, stop if running."""
        if self._scheduler.is_running():
            self.stop_clicking()
        else:
            self.start_clicking()

    def pause(self) -> None:
        """Pause continuous clicking. Ignored when stopped."""
        self._scheduler.pause()

    def resume(self) -> None:
        """Resume continuous clicking. Ignored when stopped."""
        self._scheduler.resume()

    def toggle_pause(self) -> None:
        """Hotkey action: pause or resume the running session."""
        if self._scheduler.is_paused():
            self.resume()
        else:
            self.pause()

    def is_running(self) -> bool:
        return self._scheduler.is_running()

    def is_paused(self) -> bool:
        return self._scheduler.is_paused()

    def set_click_rate(self, cps: float) -> float:
        """
        Update the configured rate. Takes effect on the next start.

        Returns:
            float: The stored rate after clamping to the supported range
        """
        self._settings.click_rate_per_second = max(MIN_CLICK_RATE, min(MAX_CLICK_RATE, float(cps)))
        return self._settings.click_rate_per_second

    def add_click_listener(self, listener: ClickListener) -> None:
        """Register a listener for every successful continuous click."""
        self._scheduler.add_click_listener(listener)

    def remove_click_listener(self, listener: ClickListener) -> None:
        self._scheduler.remove_click_listener(listener)

    # -- statistics ------------------------------------------------------

    def update_measured_cps(self) -> bool:
        """
        Close the measurement window if a second has elapsed.

        Call periodically (about once per second) from the UI or main loop.

        Returns:
            bool: True if a new measurement was taken
        """
        return self._tracker.sample()

    def get_measured_cps(self) -> float:
        """Rate measured over the last completed window."""
        return self._tracker.measured_rate

    def get_average_cps(self) -> float:
        """Mean of all measurements since the last reset."""
        return self._tracker.average_rate

    def get_max_cps(self) -> float:
        """Highest measurement since the last reset."""
        return self._tracker.peak_rate

    def get_click_accuracy(self) -> float:
        """Measured rate relative to the configured one, in [0, 1]."""
        return self._tracker.accuracy(self._settings.click_rate_per_second)

    def get_total_clicks(self) -> int:
        """Clicks over the lifetime of the settings file."""
        return self._tracker.lifetime_clicks

    def get_session_clicks(self) -> int:
        return self._tracker.session_clicks

    def get_performance_samples(self) -> List[PerformanceSample]:
        return self._tracker.get_performance_samples()

    def reset_statistics(self) -> None:
        """Clear rate statistics and session clicks. Lifetime clicks are kept."""
        self._tracker.reset()

    # -- patterns --------------------------------------------------------

    def load_patterns(self) -> List[str]:
        """Load stored patterns from disk. Returns their names."""
        return self._patterns.load_patterns()

    def start_recording(self, name: str) -> bool:
        """
        Start recording a pattern and remember it as the last used one.

        Returns:
            bool: False if the name is empty or another mode is active
        """
        if self._patterns.start_recording(name):
            self._settings.last_pattern_name = name.strip()
            return True
        return False

    def stop_recording(self) -> Optional[Pattern]:
        """Stop recording. Returns the saved pattern, or None if nothing was recorded."""
        return self._patterns.stop_recording()

    def handle_press(self, x: int, y: int, button: MouseButton) -> None:
        self._patterns.handle_press(x, y, button)

    def handle_release(self, button: MouseButton) -> None:
        self._patterns.handle_release(button)

    def play_pattern(self, name: str, loop: bool = False) -> bool:
        """
        Replay a stored pattern and remember the choice for the playback hotkey.

        Returns:
            bool: True if playback started
        """
        if self._patterns.play_pattern(name, loop):
            self._settings.last_pattern_name = name
            self._settings.loop_playback = bool(loop)
            return True
        return False

    def stop_playback(self) -> None:
        """Stop playback. Idempotent."""
        self._patterns.stop_playback()

    def pause_resume_playback(self) -> None:
        """Toggle pause on the active playback."""
        self._patterns.pause_resume_playback()

    def toggle_recording(self) -> None:
        """Start recording under an auto-generated name, or stop the active recording."""
        if self._patterns.is_recording():
            self.stop_recording()
        else:
            self.start_recording(self._next_pattern_name())

    def toggle_playback(self) -> None:
        """Replay the last used pattern, or stop the active playback."""
        if self._patterns.is_playing():
            self.stop_playback()
            return
        name = self._settings.last_pattern_name
        if not name:
            logger.warning("No pattern selected for playback")
            return
        self.play_pattern(name, self._settings.loop_playback)

    def delete_pattern(self, name: str) -> bool:
        """Delete a stored pattern. The one being played is refused."""
        return self._patterns.delete_pattern(name)

    def get_pattern(self, name: str) -> Optional[Pattern]:
        """Returns the stored pattern with this name, or None."""
        return self._patterns.get_pattern(name)

    def get_pattern_names(self) -> List[str]:
        return self._patterns.get_pattern_names()

    def is_recording(self) -> bool:
        return self._patterns.is_recording()

    def is_playing(self) -> bool:
        return self._patterns.is_playing()

    def is_playback_paused(self) -> bool:
        return self._patterns.is_paused()

    def add_pattern_listener(self, listener: PatternListener) -> None:
        """
        Register a listener for recording, playback and pattern list changes.

        Listeners are called without any controller lock held and may call
        back into the controller.
        """
        self._patterns.add_listener(listener)

    def remove_pattern_listener(self, listener: PatternListener) -> None:
        self._patterns.remove_listener(listener)

    # -- lifecycle -------------------------------------------------------

    def start_mouse_hook(self) -> bool:
        """
        Attach the global mouse hook that feeds presses to the recorder.

        Returns:
            bool: False if no mouse backend is available
        """
        if self._mouse_hook is None:
            self._mouse_hook = MouseHookService(self.handle_press, self.handle_release)
        return self._mouse_hook.start()

    def save_state(self) -> None:
        """Write lifetime clicks back into the settings and persist them if possible."""
        self._settings.lifetime_clicks = self._tracker.lifetime_clicks
        if self._settings_manager is None:
            return
        try:
            self._settings_manager.save(self._settings)
        except OSError as exc:
            logger.error("Failed to save settings: %s", exc)

    def cleanup(self) -> None:
        """Stop every engine, detach the mouse hook and persist state."""
        self._patterns.cleanup()
        self._scheduler.stop()
        if self._mouse_hook is not None:
            self._mouse_hook.stop()
        self.save_state()

    def _next_pattern_name(self) -> str:
        existing = set(self._patterns.get_pattern_names())
        index = len(existing) + 1
        while f"Pattern {index}" in existing:
            index += 1
        return f"Pattern {index}"
