"""
Shortcut actions: the primitive steps a generated shortcut plan is made of.

Supported actions
-----------------
- KeyPressAction:          one key with an optional set of modifiers
- TypeTextAction:          literal text, typed character by character
- DelayAction:             wait for a number of milliseconds
- SwitchApplicationAction: bring a running application to the front

Actions are immutable values. Each one knows how to run itself against a
``RunContext`` (see ``executor.py``), which owns the OS backends, the timing
settings and the cancellation token of the current run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from .executor import RunContext


class ActionError(Exception):
    """Raised when an action cannot deliver its input to the OS."""


class ActionCancelled(Exception):
    """Raised from a cancellable wait inside an action once the run is cancelled."""


class ModifierKey(Enum):
    COMMAND = "⌘"
    SHIFT = "⇧"
    OPTION = "⌥"
    CONTROL = "⌃"

    @property
    def glyph(self) -> str:
        return self.value


RETURN_KEY = "\r"
TAB_KEY = "\t"
SPACE_KEY = " "
ESCAPE_KEY = "\x1b"

# US layout: symbol -> unshifted key that produces it together with Shift
_SHIFTED_SYMBOLS = {
    "~": "`", "!": "1", "@": "2", "#": "3", "$": "4", "%": "5",
    "^": "6", "&": "7", "*": "8", "(": "9", ")": "0", "_": "-",
    "+": "=", "{": "[", "}": "]", "|": "\\", ":": ";", '"': "'",
    "<": ",", ">": ".", "?": "/",
}

_KEY_LABELS = {
    RETURN_KEY: "↵",
    TAB_KEY: "⇥",
    SPACE_KEY: "Space",
    ESCAPE_KEY: "Esc",
}

_DISPLAY_ORDER = (ModifierKey.CONTROL, ModifierKey.OPTION, ModifierKey.SHIFT, ModifierKey.COMMAND)


def key_for_character(char: str) -> Tuple[str, FrozenSet[ModifierKey]]:
    """Map one character of typed text to the key and modifiers producing it."""
    if char == "\n":
        return RETURN_KEY, frozenset()
    if char.isalpha() and char.isupper():
        return char.lower(), frozenset({ModifierKey.SHIFT})
    if char in _SHIFTED_SYMBOLS:
        return _SHIFTED_SYMBOLS[char], frozenset({ModifierKey.SHIFT})
    return char, frozenset()


class ApplicationTarget:
    """A running application, by bundle identifier and name or by name alone.

    Two targets are equal when their identifiers match; targets without an
    identifier compare by name.
    """

    __slots__ = ("_name", "_bundle_identifier")

    def __init__(self, name: str, bundle_identifier: Optional[str] = None) -> None:
        self._name = name
        self._bundle_identifier = bundle_identifier or None

    @classmethod
    def named(cls, name: str) -> "ApplicationTarget":
        return cls(name=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def bundle_identifier(self) -> Optional[str]:
        return self._bundle_identifier

    def _key(self) -> Tuple[str, str]:
        if self._bundle_identifier:
            return ("id", self._bundle_identifier)
        return ("name", self._name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApplicationTarget):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        if self._bundle_identifier:
            return f"ApplicationTarget({self._name!r}, {self._bundle_identifier!r})"
        return f"ApplicationTarget({self._name!r})"


@dataclass(frozen=True)
class KeyPressAction:
    key: str
    modifiers: FrozenSet[ModifierKey] = frozenset()
    description: str = field(default="", compare=False)

    def run(self, ctx: "RunContext") -> None:
        ctx.press_key(self.key, self.modifiers)


@dataclass(frozen=True)
class TypeTextAction:
    text: str
    description: str = field(default="", compare=False)

    def run(self, ctx: "RunContext") -> None:
        for idx, char in enumerate(self.text):
            if idx > 0:
                ctx.pause_us(ctx.settings.character_delay_us)
            key, modifiers = key_for_character(char)
            ctx.press_key(key, modifiers)


@dataclass(frozen=True)
class DelayAction:
    duration_ms: int
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError("Delay duration cannot be negative")

    def run(self, ctx: "RunContext") -> None:
        if not ctx.sleep_ms(self.duration_ms):
            raise ActionCancelled(f"Cancelled during {self.duration_ms}ms delay")


@dataclass(frozen=True)
class SwitchApplicationAction:
    target: ApplicationTarget
    description: str = field(default="", compare=False)

    def run(self, ctx: "RunContext") -> None:
        ctx.activate(self.target)


Action = Union[KeyPressAction, TypeTextAction, DelayAction, SwitchApplicationAction]


def display_name(action: Action) -> str:
    """Short human label for an action, e.g. ``Wait 500ms``."""
    if isinstance(action, KeyPressAction):
        return "Key Press"
    if isinstance(action, TypeTextAction):
        return "Type Text"
    if isinstance(action, DelayAction):
        return f"Wait {action.duration_ms}ms"
    return f"Switch to {action.target.name}"


def display_keys(action: Action) -> str:
    """Compact key notation for an action, e.g. ``⌘⇧N`` or ``TEXT:hello``."""
    if isinstance(action, KeyPressAction):
        mods = "".join(m.glyph for m in _DISPLAY_ORDER if m in action.modifiers)
        return mods + _KEY_LABELS.get(action.key, action.key.upper())
    if isinstance(action, TypeTextAction):
        text = action.text
        preview = text[:15] + "..." if len(text) > 15 else text
        return f"TEXT:{preview}"
    if isinstance(action, DelayAction):
        return f"DELAY:{action.duration_ms}"
    return "SWITCH APP"
