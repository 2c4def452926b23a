"""
Main entry point: headless, hotkey-driven auto clicker.

Usage:
    python main.py [settings.json]
"""

import logging
import sys
import time
from pathlib import Path

import hotkey_manager
from click_executor import ExecutorUnavailableError, create_click_executor
from controller import AutoClickerController
from hotkey_manager import HotkeyManager
from logger import configure_logging
from pattern_store import PatternStore
from settings_manager import SettingsManager


logger = logging.getLogger("multiclicker")

REFRESH_INTERVAL_SECONDS = 1.0


def build_hotkeys(controller: AutoClickerController) -> HotkeyManager:
    settings = controller.settings
    manager = HotkeyManager({
        hotkey_manager.TOGGLE: settings.toggle_hotkey,
        hotkey_manager.PAUSE: settings.pause_hotkey,
        hotkey_manager.RECORD: settings.record_hotkey,
        hotkey_manager.PLAYBACK: settings.playback_hotkey,
    })
    manager.register_callback(hotkey_manager.TOGGLE, controller.toggle_clicking)
    manager.register_callback(hotkey_manager.PAUSE, controller.toggle_pause)
    manager.register_callback(hotkey_manager.RECORD, controller.toggle_recording)
    manager.register_callback(hotkey_manager.PLAYBACK, controller.toggle_playback)
    return manager


def main() -> int:
    """Wire settings, executor, controller and hotkeys, then run until Ctrl+C."""
    configure_logging()
    settings_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    settings_manager = SettingsManager(settings_path)
    settings = settings_manager.load()

    try:
        executor = create_click_executor()
    except ExecutorUnavailableError as exc:
        logger.critical("%s", exc)
        return 1

    controller = AutoClickerController(
        executor,
        settings=settings,
        store=PatternStore(),
        settings_manager=settings_manager,
    )
    controller.load_patterns()

    controller.start_mouse_hook()
    hotkeys = build_hotkeys(controller)
    if not hotkeys.enable_hotkeys():
        logger.warning("Running without global hotkeys")

    logger.info(
        "Ready. %s toggles clicking at %.1f CPS, %s pauses, %s records, %s plays. Ctrl+C quits.",
        settings.toggle_hotkey, settings.click_rate_per_second,
        settings.pause_hotkey, settings.record_hotkey, settings.playback_hotkey,
    )

    try:
        while True:
            time.sleep(REFRESH_INTERVAL_SECONDS)
            if controller.is_running() and controller.update_measured_cps():
                logger.info(
                    "CPS %.1f (avg %.1f, max %.1f, accuracy %.0f%%), session clicks %d",
                    controller.get_measured_cps(),
                    controller.get_average_cps(),
                    controller.get_max_cps(),
                    controller.get_click_accuracy() * 100,
                    controller.get_session_clicks(),
                )
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        hotkeys.disable_hotkeys()
        controller.cleanup()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
