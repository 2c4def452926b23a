"""Platform-agnostic hotkey manager built on top of pynput."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

try:
    from pynput import keyboard  # type: ignore
except Exception:  # pragma: no cover - environment dependent
    keyboard = None  # type: ignore


logger = logging.getLogger(__name__)

TOGGLE = "toggle"
PAUSE = "pause"
RECORD = "record"
PLAYBACK = "playback"


class HotkeyManager:
    """Maps named actions (toggle, pause, record, playback) to global hotkeys."""

    _SPECIAL_KEY_ALIASES: Dict[str, str] = {
        "ctrl": "ctrl",
        "control": "ctrl",
        "alt": "alt",
        "shift": "shift",
        "win": "cmd",
        "cmd": "cmd",
        "command": "cmd",
        "option": "alt",
        "super": "cmd",
        "esc": "esc",
        "escape": "esc",
        "space": "space",
        "tab": "tab",
        "enter": "enter",
    }

    def __init__(self, hotkeys: Optional[Dict[str, str]] = None) -> None:
        self._hotkeys: Dict[str, str] = dict(hotkeys or {TOGGLE: "F6", PAUSE: "F7"})
        self._callbacks: Dict[str, Callable[[], None]] = {}
        self._listener: Optional[object] = None
        self._is_registered = False

    def register_callback(self, action: str, callback: Callable[[], None]) -> None:
        self._callbacks[action] = callback

    def is_registered(self) -> bool:
        return self._is_registered

    def get_hotkey(self, action: str) -> Optional[str]:
        return self._hotkeys.get(action)

    def build_hotkey_map(self) -> Dict[str, Callable[[], None]]:
        """Translate configured hotkeys into the pynput GlobalHotKeys mapping."""
        hotkey_map: Dict[str, Callable[[], None]] = {}
        for action, callback in self._callbacks.items():
            hotkey_text = self._hotkeys.get(action)
            if not hotkey_text:
                continue
            hotkey = self._to_pynput_hotkey(hotkey_text)
            if hotkey in hotkey_map:
                raise ValueError(f"Hotkey {hotkey_text} is assigned twice")
            hotkey_map[hotkey] = callback
        return hotkey_map

    def enable_hotkeys(self) -> bool:
        if self._is_registered:
            return True

        try:
            hotkey_map = self.build_hotkey_map()
        except ValueError as exc:
            logger.error("Invalid hotkey definition: %s", exc)
            return False

        if not hotkey_map:
            return False

        if keyboard is None:
            logger.warning("pynput/keyboard backend not available; global hotkeys disabled")
            self._listener = None
            self._is_registered = False
            return False
        try:
            self._listener = keyboard.GlobalHotKeys(hotkey_map)
            self._listener.start()
            self._is_registered = True
            logger.info("Hotkeys enabled: %s", ", ".join(f"{a}={k}" for a, k in self._hotkeys.items()))
            return True
        except Exception as exc:  # pragma: no cover - system specific
            logger.error("Failed to register hotkeys: %s", exc)
            self._listener = None
            self._is_registered = False
            return False

    def disable_hotkeys(self) -> None:
        if not self._is_registered:
            return

        if self._listener is not None:
            try:
                self._listener.stop()  # type: ignore[attr-defined]
            except Exception as exc:  # pragma: no cover - system specific
                logger.warning("Failed to stop hotkey listener: %s", exc)
            self._listener = None

        self._is_registered = False

    def update_hotkeys(self, hotkeys: Dict[str, str]) -> bool:
        was_registered = self._is_registered
        if was_registered:
            self.disable_hotkeys()

        self._hotkeys.update(hotkeys)

        if was_registered:
            return self.enable_hotkeys()
        return True

    def _to_pynput_hotkey(self, hotkey: str) -> str:
        if not hotkey:
            raise ValueError("Empty hotkey string")

        tokens = [token.strip() for token in hotkey.replace("+", " ").split() if token.strip()]
        if not tokens:
            raise ValueError("Hotkey contains no tokens")

        parsed: list[str] = []
        for token in tokens:
            lower_token = token.lower()

            if lower_token in self._SPECIAL_KEY_ALIASES:
                parsed.append(f"<{self._SPECIAL_KEY_ALIASES[lower_token]}>")
                continue

            if lower_token.startswith("f") and lower_token[1:].isdigit():
                parsed.append(f"<{lower_token}>")
                continue

            if len(lower_token) == 1:
                parsed.append(lower_token)
                continue

            raise ValueError(f"Unknown key: {token}")

        return "+".join(parsed)
