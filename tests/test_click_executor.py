import pytest

from click_executor import ClickExecutionError, ClickExecutor, create_click_executor
from models import ClickMode, ClickSpec, ClickTiming, MouseButton


class PrimitiveExecutor(ClickExecutor):
    def __init__(self, fail_press=False):
        self.sleeps = []
        super().__init__(sleep=self.sleeps.append)
        self.actions = []
        self.fail_press = fail_press

    def move_to(self, x, y):
        self.actions.append(("move", x, y))

    def press(self, button):
        if self.fail_press:
            raise OSError("device gone")
        self.actions.append(("press", button))

    def release(self, button):
        self.actions.append(("release", button))

    def position(self):
        return (100, 100)


def test_single_click_at_current_position_does_not_move():
    executor = PrimitiveExecutor()
    assert executor.click(ClickSpec(x=None, y=None), ClickTiming(0, 0, 0))
    assert executor.actions == [("press", MouseButton.LEFT), ("release", MouseButton.LEFT)]


def test_triple_click_moves_and_uses_timing():
    executor = PrimitiveExecutor()
    spec = ClickSpec(x=5, y=6, button=MouseButton.RIGHT, mode=ClickMode.TRIPLE)
    executor.click(spec, ClickTiming(settle_ms=50, press_ms=20, gap_ms=40))
    assert executor.actions[0] == ("move", 5, 6)
    assert [a[0] for a in executor.actions[1:]] == ["press", "release"] * 3
    assert executor.sleeps == [0.05, 0.02, 0.04, 0.02, 0.04, 0.02]


def test_backend_errors_are_wrapped():
    executor = PrimitiveExecutor(fail_press=True)
    with pytest.raises(ClickExecutionError):
        executor.click(ClickSpec(x=None, y=None))


def test_nudge_moves_relative_to_position():
    executor = PrimitiveExecutor()
    executor.nudge(-2, 3)
    assert executor.actions == [("move", 98, 103)]


def test_factory_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_click_executor("robot")
