from input_hook import MouseHookService, to_mouse_button
from models import MouseButton


class FakeButton:
    def __init__(self, name):
        self.name = name


def test_maps_button_names():
    assert to_mouse_button(FakeButton("right")) is MouseButton.RIGHT
    assert to_mouse_button(FakeButton("middle")) is MouseButton.MIDDLE
    assert to_mouse_button("Button.left") is MouseButton.LEFT
    assert to_mouse_button(FakeButton("x1")) is MouseButton.LEFT


def test_forwards_presses_and_releases():
    presses, releases = [], []
    hook = MouseHookService(lambda x, y, b: presses.append((x, y, b)), releases.append)
    hook.handle_click(10.6, 20.2, FakeButton("right"), True)
    hook.handle_click(10.6, 20.2, FakeButton("right"), False)
    assert presses == [(10, 20, MouseButton.RIGHT)]
    assert releases == [MouseButton.RIGHT]


def test_handler_errors_do_not_escape():
    def boom(x, y, button):
        raise RuntimeError("handler failed")

    hook = MouseHookService(boom)
    hook.handle_click(1, 1, FakeButton("left"), True)
    hook.handle_click(1, 1, FakeButton("left"), False)
    assert not hook.is_running()
