import time

import pytest

from listeners import ListenerRegistry, PatternListener, run_deferred
from models import ClickEvent, ClickTiming, MouseButton, Pattern
from pattern_player import PatternPlayer

from conftest import RecordingExecutor, wait_for

NO_DELAYS = ClickTiming(settle_ms=0, press_ms=0, gap_ms=0)


def store_pattern(store, name, delays):
    events = [ClickEvent(x=i + 1, y=i + 1, delay_millis=d) for i, d in enumerate(delays)]
    store.put(Pattern(name=name, events=events))


class StateLog(PatternListener):
    def __init__(self):
        self.states = []

    def on_playback_state_changed(self, playing, paused):
        self.states.append((playing, paused))


@pytest.fixture
def player(executor, store):
    engine = PatternPlayer(executor, store, timing=NO_DELAYS)
    yield engine
    engine.stop()


def test_replays_with_recorded_timing(player, executor, store):
    store_pattern(store, "farm", [0, 120, 80])
    assert player.play("farm")
    assert wait_for(lambda: not player.is_playing(), timeout=3.0)

    times = [t for t, _ in executor.clicks]
    offsets = [(t - times[0]) * 1000 for t in times]
    assert len(offsets) == 3
    assert offsets[1] == pytest.approx(120, abs=30)
    assert offsets[2] == pytest.approx(200, abs=30)
    assert executor.positions() == [(1, 1), (2, 2), (3, 3)]


def test_click_moves_to_recorded_position(player, executor, store):
    store.put(Pattern("one", [ClickEvent(7, 9, 0, MouseButton.RIGHT)]))
    player.play("one")
    assert wait_for(lambda: not player.is_playing())
    assert executor.actions == [("move", 7, 9), ("press", MouseButton.RIGHT), ("release", MouseButton.RIGHT)]


def test_looping_plays_cycles_in_order(store):
    holder = {}

    def stop_after_six(count):
        if count == 6:
            holder["player"].stop()

    executor = RecordingExecutor(on_click=stop_after_six)
    player = PatternPlayer(executor, store, timing=NO_DELAYS)
    holder["player"] = player
    store_pattern(store, "pair", [0, 5])

    assert player.play("pair", loop=True)
    assert store.get("pair").looping
    assert wait_for(lambda: not player.is_playing(), timeout=3.0)
    time.sleep(0.1)
    assert executor.positions() == [(1, 1), (2, 2)] * 3


def test_end_of_pattern_stops_and_notifies(executor, store):
    registry = ListenerRegistry()
    log = StateLog()
    registry.add(log)
    player = PatternPlayer(executor, store, listeners=registry, timing=NO_DELAYS)
    store_pattern(store, "farm", [0, 10])
    player.play("farm")
    assert wait_for(lambda: not player.is_playing())
    assert log.states == [(True, False), (False, False)]
    assert executor.click_count == 2


def test_pause_holds_cursor_and_resume_continues(player, executor, store):
    store_pattern(store, "farm", [0, 200, 0])
    player.play("farm")
    assert wait_for(lambda: executor.click_count == 1)
    player.pause_resume()
    assert player.is_paused()
    time.sleep(0.4)
    assert executor.click_count == 1
    assert player.get_state().cursor == 1

    player.pause_resume()
    assert not player.is_paused()
    assert wait_for(lambda: not player.is_playing(), timeout=3.0)
    assert executor.positions() == [(1, 1), (2, 2), (3, 3)]


def test_pause_resume_is_noop_when_idle(player):
    player.pause_resume()
    assert not player.is_paused()


def test_failed_click_still_advances(store):
    executor = RecordingExecutor(fail_on=lambda spec: spec.x == 1)
    player = PatternPlayer(executor, store, timing=NO_DELAYS)
    store_pattern(store, "farm", [0, 0, 0])
    player.play("farm")
    assert wait_for(lambda: not player.is_playing())
    assert player.clicks_attempted == 3
    assert executor.positions() == [(1, 1), (2, 2), (3, 3)]


def test_rejects_missing_empty_and_busy(player, store):
    assert not player.play("missing")
    store.put(Pattern("empty"))
    assert not player.play("empty")

    store_pattern(store, "slow", [0, 5000])
    assert player.play("slow")
    assert not player.play("slow")
    player.stop()
    assert not player.is_playing()
    player.stop()


def test_stop_is_prompt(player, executor, store):
    store_pattern(store, "slow", [0, 5000])
    player.play("slow")
    assert wait_for(lambda: executor.click_count == 1)
    started = time.monotonic()
    player.stop()
    assert time.monotonic() - started < 0.5
    assert executor.click_count == 1


def test_blocked_player_does_not_start(executor, store):
    store_pattern(store, "farm", [0])
    player = PatternPlayer(executor, store, is_blocked=lambda: True)
    assert not player.play("farm")


def test_deferred_play_launches_only_when_run(executor, store):
    registry = ListenerRegistry()
    log = StateLog()
    registry.add(log)
    player = PatternPlayer(executor, store, listeners=registry, timing=NO_DELAYS)
    store_pattern(store, "farm", [0])

    deferred = []
    assert player.play("farm", deferred=deferred)
    assert player.is_playing()
    time.sleep(0.1)
    assert log.states == []
    assert executor.click_count == 0

    run_deferred(deferred)
    assert wait_for(lambda: not player.is_playing())
    assert log.states == [(True, False), (False, False)]
    assert executor.click_count == 1


def test_stop_before_deferred_launch_never_clicks(executor, store):
    registry = ListenerRegistry()
    log = StateLog()
    registry.add(log)
    player = PatternPlayer(executor, store, listeners=registry, timing=NO_DELAYS)
    store_pattern(store, "farm", [0])

    deferred = []
    player.play("farm", deferred=deferred)
    player.stop()
    run_deferred(deferred)
    time.sleep(0.1)

    assert executor.click_count == 0
    assert log.states == [(False, False)]
