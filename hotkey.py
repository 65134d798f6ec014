"""Global hold-to-talk hotkey adapter based on pynput."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger(__name__)

HotkeyCallback = Callable[[], None]

_SIDES = ("_l", "_r")


def key_matches(key: object, hotkey_name: str) -> bool:
    """Compare a pynput key with a configured name.

    ``Key.alt_r`` matches only that key. A generic modifier name such as
    ``Key.ctrl`` also matches its left and right variants. A single
    character like ``d`` matches the character key case-insensitively.
    """
    name = str(key)
    if name == hotkey_name:
        return True
    if hotkey_name.startswith("Key.") and any(name == hotkey_name + side for side in _SIDES):
        return True
    char = getattr(key, "char", None)
    return char is not None and len(hotkey_name) == 1 and char.lower() == hotkey_name.lower()


class GlobalHotkeyAdapter:
    """Reports one press and one release per physical hold.

    OS key auto-repeat sends repeated press events while the key is held;
    only the first one is forwarded.
    """

    def __init__(self, hotkey_name: str = "Key.alt_r") -> None:
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._on_press: Optional[HotkeyCallback] = None
        self._on_release: Optional[HotkeyCallback] = None
        self._held = False
        self._lock = threading.Lock()

    @property
    def hotkey_name(self) -> str:
        return self._hotkey_name

    def start(self, on_press: HotkeyCallback, on_release: HotkeyCallback) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._on_press = on_press
        self._on_release = on_release
        self._listener = keyboard.Listener(on_press=self._handle_press, on_release=self._handle_release)
        self._listener.start()
        logger.info("Listening for hotkey %s", self._hotkey_name)

    def join(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.join()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
            logger.info("Hotkey listener stopped")

    # Listener callbacks return None so the listener keeps running.

    def _handle_press(self, key: object) -> None:
        if not key_matches(key, self._hotkey_name):
            return
        with self._lock:
            if self._held:
                return
            self._held = True
        if self._on_press is not None:
            self._on_press()

    def _handle_release(self, key: object) -> None:
        if not key_matches(key, self._hotkey_name):
            return
        with self._lock:
            if not self._held:
                return
            self._held = False
        if self._on_release is not None:
            self._on_release()
