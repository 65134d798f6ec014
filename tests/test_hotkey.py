from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import hotkey
from hotkey import GlobalHotkeyAdapter, key_matches


def test_key_matches_named_and_character_keys() -> None:
    assert key_matches("Key.alt_r", "Key.alt_r") is True
    assert key_matches(SimpleNamespace(char="D"), "d") is True
    assert key_matches(SimpleNamespace(char="x"), "d") is False
    assert key_matches("Key.alt_l", "Key.alt_r") is False


class _NamedKey:
    """Stands in for ``pynput.keyboard.Key`` members, which print as ``Key.<name>``."""

    char = None

    def __init__(self, name: str) -> None:
        self._name = name

    def __str__(self) -> str:
        return f"Key.{self._name}"


@pytest.mark.parametrize(
    "pressed,configured,expected",
    [
        ("alt_r", "Key.alt_r", True),
        ("alt_l", "Key.alt_r", False),
        ("ctrl_l", "Key.ctrl", True),
        ("ctrl_r", "Key.ctrl", True),
        ("ctrl", "Key.ctrl", True),
        ("ctrl_l", "Key.ctrl_r", False),
        ("shift_r", "Key.ctrl", False),
        ("f9", "Key.f9", True),
        ("f1", "Key.f10", False),
        ("ctrl_l", "c", False),
    ],
)
def test_key_matches_modifier_names(pressed: str, configured: str, expected: bool) -> None:
    assert key_matches(_NamedKey(pressed), configured) is expected


@patch("hotkey.keyboard")
def test_auto_repeat_yields_single_press_and_release(mock_keyboard: MagicMock) -> None:
    presses: list[str] = []
    releases: list[str] = []
    adapter = GlobalHotkeyAdapter(hotkey_name="Key.alt_r")

    adapter.start(on_press=lambda: presses.append("down"), on_release=lambda: releases.append("up"))
    callbacks = mock_keyboard.Listener.call_args.kwargs
    on_press, on_release = callbacks["on_press"], callbacks["on_release"]

    on_press("Key.alt_r")
    on_press("Key.alt_r")
    on_press("Key.alt_r")
    on_press("Key.shift")
    on_release("Key.alt_r")
    on_release("Key.alt_r")

    assert presses == ["down"]
    assert releases == ["up"]
    mock_keyboard.Listener.return_value.start.assert_called_once()


@patch("hotkey.keyboard")
def test_stop_stops_listener(mock_keyboard: MagicMock) -> None:
    adapter = GlobalHotkeyAdapter()
    adapter.start(on_press=lambda: None, on_release=lambda: None)

    adapter.stop()
    adapter.stop()

    mock_keyboard.Listener.return_value.stop.assert_called_once()


def test_start_raises_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        GlobalHotkeyAdapter().start(on_press=lambda: None, on_release=lambda: None)
