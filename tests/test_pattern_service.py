import pytest

from listeners import PatternListener
from models import ClickEvent, ClickTiming, MouseButton, Pattern
from pattern_service import PatternService

from conftest import wait_for


class ListLog(PatternListener):
    def __init__(self):
        self.lists = []

    def on_pattern_list_changed(self, names):
        self.lists.append(list(names))


@pytest.fixture
def service(executor, store, clock):
    svc = PatternService(executor, store, clock=clock, timing=ClickTiming(0, 0, 0))
    yield svc
    svc.cleanup()


def test_record_then_play_back(service, executor, clock):
    service.start_recording("farm")
    service.handle_press(5, 5, MouseButton.LEFT)
    clock.advance(120)
    service.handle_press(6, 6, MouseButton.LEFT)
    clock.advance(80)
    service.handle_press(7, 7, MouseButton.LEFT)
    service.handle_release(MouseButton.LEFT)
    service.stop_recording()

    assert service.get_pattern_names() == ["farm"]
    assert service.play_pattern("farm")
    assert service.get_current_pattern().name == "farm"
    assert wait_for(lambda: not service.is_playing(), timeout=3.0)

    times = [t for t, _ in executor.clicks]
    assert executor.positions() == [(5, 5), (6, 6), (7, 7)]
    assert (times[1] - times[0]) * 1000 == pytest.approx(120, abs=30)
    assert (times[2] - times[0]) * 1000 == pytest.approx(200, abs=30)


def test_recording_and_playback_are_exclusive(service, store):
    store.put(Pattern("slow", [ClickEvent(1, 1, 0), ClickEvent(2, 2, 5000)]))

    assert service.start_recording("new")
    assert not service.play_pattern("slow")
    service.stop_recording()

    assert service.play_pattern("slow")
    assert not service.start_recording("other")
    assert not service.is_recording()
    service.stop_playback()


def test_external_busy_blocks_both(executor, store):
    store.put(Pattern("one", [ClickEvent(1, 1, 0)]))
    service = PatternService(executor, store, external_busy=lambda: True)
    assert not service.start_recording("farm")
    assert not service.play_pattern("one")


def test_delete_pattern(service, store):
    log = ListLog()
    service.add_listener(log)
    store.put(Pattern("a", [ClickEvent(1, 1, 0)]))

    assert not service.delete_pattern("unknown")
    assert service.get_pattern_names() == ["a"]
    assert log.lists == []

    assert service.delete_pattern("a")
    assert service.get_pattern("a") is None
    assert log.lists == [[]]


def test_cannot_delete_pattern_while_playing(service, store):
    store.put(Pattern("slow", [ClickEvent(1, 1, 0), ClickEvent(2, 2, 5000)]))
    service.play_pattern("slow")
    assert not service.delete_pattern("slow")
    service.stop_playback()
    assert service.delete_pattern("slow")


def test_load_patterns_notifies(tmp_path, executor):
    from pattern_store import PatternStore

    directory = tmp_path / "p"
    PatternStore(directory).put(Pattern("saved", [ClickEvent(1, 1, 0)]))
    service = PatternService(executor, PatternStore(directory))
    log = ListLog()
    service.add_listener(log)
    assert service.load_patterns() == ["saved"]
    assert log.lists == [["saved"]]


def test_cleanup_stops_recording_and_commits(service, store):
    service.start_recording("farm")
    service.handle_press(1, 1, MouseButton.LEFT)
    service.cleanup()
    assert not service.is_recording()
    assert store.get("farm") is not None


def test_list_listener_may_start_playback(service, store, executor):
    class PlayOnSave(ListLog):
        def on_pattern_list_changed(self, names):
            super().on_pattern_list_changed(names)
            self.started = service.play_pattern("farm")

    listener = PlayOnSave()
    service.add_listener(listener)
    service.start_recording("farm")
    service.handle_press(8, 9, MouseButton.LEFT)
    service.stop_recording()

    assert listener.started is True
    assert wait_for(lambda: executor.click_count == 1)
    assert executor.positions() == [(8, 9)]
