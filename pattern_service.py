"""
Pattern service: recording, playback and storage of click patterns.

At most one of {recording, playing} is active at a time. The mode lock
only covers the exclusion check and the state transition; listeners are
notified after it is released, so a listener may call straight back into
any control operation.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from click_executor import ClickExecutor
from listeners import Deferred, ListenerRegistry, PatternListener, run_deferred
from models import ClickMode, ClickTiming, MouseButton, Pattern
from pattern_player import PatternPlayer
from pattern_recorder import EventRecorder
from pattern_store import PatternStore


logger = logging.getLogger(__name__)


class PatternService:
    """
    Owns the recorder, the player and the store, and shares one listener registry.

    The recorder refuses to start while the player is playing and vice versa;
    `external_busy` lets an outer layer (continuous clicking) block both.
    """

    def __init__(
        self,
        executor: ClickExecutor,
        store: PatternStore,
        mode_provider: Optional[Callable[[], ClickMode]] = None,
        clock: Optional[Callable[[], int]] = None,
        timing: Optional[ClickTiming] = None,
        poll_interval: Optional[float] = None,
        external_busy: Optional[Callable[[], bool]] = None,
    ) -> None:
        """
        Build the recorder and player around a shared store.

        Args:
            executor: Backend used by the player
            store: Pattern storage shared by recorder and player
            mode_provider: Supplies the click mode stamped on recorded clicks
            clock: Millisecond clock for recorded delays
            timing: Press/release timing for playback clicks
            poll_interval: Player poll period in seconds
            external_busy: Returns True while another mode must block patterns
        """
        self._store = store
        self._listeners: ListenerRegistry[PatternListener] = ListenerRegistry()
        self._mode_lock = threading.Lock()
        self._external_busy = external_busy or (lambda: False)

        self._recorder = EventRecorder(
            store,
            listeners=self._listeners,
            mode_provider=mode_provider,
            clock=clock,
            is_blocked=lambda: self._player.is_playing(),
        )
        player_kwargs = {}
        if poll_interval is not None:
            player_kwargs["poll_interval"] = poll_interval
        self._player = PatternPlayer(
            executor,
            store,
            listeners=self._listeners,
            timing=timing,
            is_blocked=lambda: self._recorder.is_recording(),
            **player_kwargs,
        )

    # -- listeners -------------------------------------------------------

    def add_listener(self, listener: PatternListener) -> None:
        """Register a listener for recorder, player and pattern list events."""
        self._listeners.add(listener)

    def remove_listener(self, listener: PatternListener) -> None:
        """Unregister a listener. Unknown listeners are ignored."""
        self._listeners.remove(listener)

    # -- storage ---------------------------------------------------------

    def load_patterns(self) -> List[str]:
        """
        Load every stored pattern and announce the new list.

        Returns:
            List[str]: Names of the loaded patterns
        """
        names = self._store.load_all()
        self._notify_pattern_list_changed()
        return names

    def get_pattern(self, name: str) -> Optional[Pattern]:
        """Returns the stored pattern with this name, or None."""
        return self._store.get(name)

    def get_pattern_names(self) -> List[str]:
        """Returns stored pattern names in load/record order."""
        return self._store.list_names()

    def delete_pattern(self, name: str) -> bool:
        """
        Delete a stored pattern. The pattern being played cannot be deleted.

        Returns:
            bool: True if the pattern existed and was removed
        """
        current = self._player.current_pattern
        if self._player.is_playing() and current is not None and current.name == name:
            logger.warning("Cannot delete %s while it is playing", name)
            return False
        if not self._store.delete(name):
            return False
        self._notify_pattern_list_changed()
        return True

    # -- recording -------------------------------------------------------

    def start_recording(self, name: str) -> bool:
        """
        Begin recording a new pattern.

        Returns:
            bool: False if the name is empty or another mode is active
        """
        deferred: Deferred = []
        with self._mode_lock:
            if self._external_busy():
                logger.info("Rejected recording of %s: continuous clicking is active", name)
                return False
            started = self._recorder.start_recording(name, deferred)
        run_deferred(deferred)
        return started

    def stop_recording(self) -> Optional[Pattern]:
        """
        Stop recording and commit the pattern if it has clicks.

        Returns:
            The committed pattern, or None
        """
        deferred: Deferred = []
        with self._mode_lock:
            committed = self._recorder.stop_recording(deferred)
        run_deferred(deferred)
        return committed

    def handle_press(self, x: int, y: int, button: MouseButton) -> None:
        """Forward a raw pointer press to the recorder."""
        self._recorder.handle_press(x, y, button)

    def handle_release(self, button: MouseButton) -> None:
        self._recorder.handle_release(button)

    # -- playback --------------------------------------------------------

    def play_pattern(self, name: str, loop: bool = False) -> bool:
        """
        Replay a stored pattern on the player's worker thread.

        Args:
            name: Stored pattern to replay
            loop: Restart from the first event when the last one is done

        Returns:
            bool: True if playback started
        """
        deferred: Deferred = []
        with self._mode_lock:
            if self._external_busy():
                logger.info("Rejected playback of %s: continuous clicking is active", name)
                return False
            started = self._player.play(name, loop, deferred)
        run_deferred(deferred)
        return started

    def stop_playback(self) -> None:
        """Stop playback. Idempotent; safe from listener callbacks."""
        self._player.stop()

    def pause_resume_playback(self) -> None:
        """Toggle pause while playing; ignored otherwise."""
        self._player.pause_resume()

    # -- state -----------------------------------------------------------

    def is_recording(self) -> bool:
        return self._recorder.is_recording()

    def is_playing(self) -> bool:
        return self._player.is_playing()

    def is_paused(self) -> bool:
        return self._player.is_paused()

    def is_active(self) -> bool:
        """Check if a pattern is being recorded or played."""
        return self.is_recording() or self.is_playing()

    def get_current_pattern(self) -> Optional[Pattern]:
        """Returns the pattern being recorded or played, else the last one used."""
        if self._recorder.is_recording():
            return self._recorder.current_pattern
        if self._player.is_playing():
            return self._player.current_pattern
        return self._player.current_pattern or self._recorder.current_pattern

    @property
    def mode_lock(self) -> threading.Lock:
        """Held only while a mode is checked and switched on; never during notifications."""
        return self._mode_lock

    @property
    def player(self) -> PatternPlayer:
        return self._player

    @property
    def recorder(self) -> EventRecorder:
        return self._recorder

    def cleanup(self) -> None:
        """Stop recording and playback."""
        if self.is_recording():
            self.stop_recording()
        if self.is_playing():
            self.stop_playback()

    def _notify_pattern_list_changed(self) -> None:
        names = self._store.list_names()
        self._listeners.notify(lambda listener: listener.on_pattern_list_changed(names))
