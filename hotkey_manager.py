"""Global stop hotkey for running shortcut plans, built on top of pynput."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

try:
    from pynput import keyboard  # type: ignore
except Exception:  # pragma: no cover - environment dependent
    keyboard = None  # type: ignore

log = logging.getLogger(__name__)

_SPECIAL_KEY_ALIASES: Dict[str, str] = {
    "esc": "esc",
    "escape": "esc",
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "cmd": "cmd",
    "command": "cmd",
    "win": "cmd",
    "super": "cmd",
    "space": "space",
    "tab": "tab",
    "enter": "enter",
    "return": "enter",
}


def to_pynput_hotkey(hotkey: str) -> str:
    """Convert ``"Ctrl+Shift+X"`` style text into pynput's ``"<ctrl>+<shift>+x"``."""
    if not hotkey:
        raise ValueError("Empty hotkey string")

    tokens = [token.strip() for token in hotkey.replace("+", " ").split() if token.strip()]
    if not tokens:
        raise ValueError("Hotkey contains no tokens")

    parsed: list[str] = []
    for token in tokens:
        lower_token = token.lower()
        if lower_token in _SPECIAL_KEY_ALIASES:
            parsed.append(f"<{_SPECIAL_KEY_ALIASES[lower_token]}>")
        elif lower_token.startswith("f") and lower_token[1:].isdigit():
            parsed.append(f"<{lower_token}>")
        elif len(lower_token) == 1:
            parsed.append(lower_token)
        else:
            raise ValueError(f"Unknown key in hotkey: {token!r}")

    return "+".join(parsed)


class CancelHotkey:
    """Listens for a global hotkey while a run is active and calls ``on_trigger``.

    Usable as a context manager around a run.
    """

    def __init__(self, on_trigger: Callable[[], None], hotkey: str = "esc") -> None:
        self._on_trigger = on_trigger
        self._hotkey = hotkey
        self._listener: Optional[object] = None

    @property
    def hotkey(self) -> str:
        return self._hotkey

    @property
    def is_active(self) -> bool:
        return self._listener is not None

    def enable(self) -> bool:
        if self._listener is not None:
            return True

        try:
            combo = to_pynput_hotkey(self._hotkey)
        except ValueError as exc:
            log.warning("Invalid stop hotkey %r: %s", self._hotkey, exc)
            return False

        if keyboard is None:
            log.warning("pynput keyboard backend not available; stop hotkey disabled")
            return False
        try:
            listener = keyboard.GlobalHotKeys({combo: self._trigger})
            listener.start()
        except Exception as exc:  # pragma: no cover - system specific
            log.warning("Failed to register stop hotkey: %s", exc)
            return False
        self._listener = listener
        return True

    def disable(self) -> None:
        listener = self._listener
        if listener is None:
            return
        self._listener = None
        try:
            listener.stop()  # type: ignore[attr-defined]
        except Exception as exc:  # pragma: no cover - system specific
            log.debug("Stopping hotkey listener failed: %s", exc)

    def _trigger(self) -> None:
        log.info("Stop hotkey pressed")
        self._on_trigger()

    def __enter__(self) -> "CancelHotkey":
        self.enable()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disable()
