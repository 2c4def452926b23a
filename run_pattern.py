"""
Small CLI to replay a stored click pattern without hotkeys.

Usage:
    python run_pattern.py NAME [--loop]
"""

from __future__ import annotations

import logging
import sys
import time

from click_executor import ExecutorUnavailableError, create_click_executor
from listeners import PatternListener
from logger import configure_logging
from pattern_service import PatternService
from pattern_store import PatternStore


logger = logging.getLogger("run_pattern")


class _PrintingListener(PatternListener):
    def on_playback_state_changed(self, playing: bool, paused: bool) -> None:
        print(f"playing={playing} paused={paused}")


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    loop = "--loop" in args
    names = [arg for arg in args if arg != "--loop"]
    if not names:
        print("Provide the name of a stored pattern.")
        return 2

    configure_logging()
    store = PatternStore()
    store.load_all()
    name = names[0]
    if store.get(name) is None:
        print(f"Pattern not found: {name}. Known patterns: {', '.join(store.list_names()) or '-'}")
        return 2

    try:
        executor = create_click_executor()
    except ExecutorUnavailableError as exc:
        logger.critical("%s", exc)
        return 1

    service = PatternService(executor, store)
    service.add_listener(_PrintingListener())
    if not service.play_pattern(name, loop):
        return 1

    try:
        while service.is_playing():
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        service.cleanup()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
