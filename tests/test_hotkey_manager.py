import pytest

import hotkey_manager
from hotkey_manager import HotkeyManager


def test_translates_hotkeys():
    manager = HotkeyManager()
    assert manager._to_pynput_hotkey("F6") == "<f6>"
    assert manager._to_pynput_hotkey("ctrl+shift+F9") == "<ctrl>+<shift>+<f9>"
    assert manager._to_pynput_hotkey("Alt a") == "<alt>+a"


@pytest.mark.parametrize("bad", ["", "   ", "ctrl+hyperdrive"])
def test_rejects_invalid_hotkeys(bad):
    with pytest.raises(ValueError):
        HotkeyManager()._to_pynput_hotkey(bad)


def test_builds_map_for_registered_actions_only():
    manager = HotkeyManager({hotkey_manager.TOGGLE: "F6", hotkey_manager.PAUSE: "F7"})
    toggle = lambda: None
    manager.register_callback(hotkey_manager.TOGGLE, toggle)
    assert manager.build_hotkey_map() == {"<f6>": toggle}


def test_duplicate_hotkeys_are_rejected():
    manager = HotkeyManager({hotkey_manager.TOGGLE: "F6", hotkey_manager.PAUSE: "f6"})
    manager.register_callback(hotkey_manager.TOGGLE, lambda: None)
    manager.register_callback(hotkey_manager.PAUSE, lambda: None)
    with pytest.raises(ValueError):
        manager.build_hotkey_map()
    assert not manager.enable_hotkeys()
    assert not manager.is_registered()


def test_update_hotkeys_when_not_registered():
    manager = HotkeyManager()
    assert manager.update_hotkeys({hotkey_manager.TOGGLE: "F8"})
    assert manager.get_hotkey(hotkey_manager.TOGGLE) == "F8"
    assert manager.get_hotkey(hotkey_manager.PAUSE) == "F7"
