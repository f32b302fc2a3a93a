"""
Parser for the loosely structured key strings emitted by the shortcut generator.

Grammar (prefixes are case-insensitive and checked in this order)::

    SWITCH_APP:<name>    -> SwitchApplicationAction
    DELAY:<ms>           -> DelayAction
    TEXT:<text>          -> TypeTextAction
    text input           -> TypeTextAction(description)   (legacy form)
    <glyphs> <key>       -> KeyPressAction, e.g. "⌘⇧ N" or "⌃ ⌥ ⌘ Q"
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Protocol

from .actions import (
    ESCAPE_KEY,
    RETURN_KEY,
    SPACE_KEY,
    TAB_KEY,
    Action,
    ApplicationTarget,
    DelayAction,
    KeyPressAction,
    ModifierKey,
    SwitchApplicationAction,
    TypeTextAction,
)

log = logging.getLogger(__name__)

SWITCH_APP_PREFIX = "SWITCH_APP:"
DELAY_PREFIX = "DELAY:"
TEXT_PREFIX = "TEXT:"
LEGACY_TEXT_TOKEN = "text input"

_INTEGER = re.compile(r"[+-]?[0-9]+")
_GLYPHS = {m.value: m for m in ModifierKey}

_KEY_ALIASES = {
    "↵": RETURN_KEY,
    "return": RETURN_KEY,
    "enter": RETURN_KEY,
    "space": SPACE_KEY,
    "tab": TAB_KEY,
    "escape": ESCAPE_KEY,
    "esc": ESCAPE_KEY,
}


class ParseError(ValueError):
    """The instruction could not be turned into an action."""

    def __init__(self, instruction: str, reason: str):
        super().__init__(f"Cannot parse {instruction!r}: {reason}")
        self.instruction = instruction
        self.reason = reason


class ShortcutLike(Protocol):
    keys: str
    description: str


def _strip_prefix(text: str, prefix: str) -> Optional[str]:
    if text[: len(prefix)].upper() == prefix:
        return text[len(prefix):]
    return None


def parse_action(instruction: str, description: str = "") -> Action:
    """Convert one generated instruction into an action.

    Raises ``ParseError`` when no action can be derived. Modifiers without a
    resolvable key are rejected rather than turned into a bare modifier press.
    """
    trimmed = instruction.strip()

    remainder = _strip_prefix(trimmed, SWITCH_APP_PREFIX)
    if remainder is not None:
        name = remainder.strip()
        if not name:
            raise ParseError(instruction, "missing application name")
        return SwitchApplicationAction(ApplicationTarget.named(name), description=description)

    remainder = _strip_prefix(trimmed, DELAY_PREFIX)
    if remainder is not None:
        digits = remainder.strip()
        if not _INTEGER.fullmatch(digits):
            raise ParseError(instruction, "delay is not an integer")
        duration = int(digits)
        if duration < 0:
            raise ParseError(instruction, "delay cannot be negative")
        return DelayAction(duration, description=description)

    remainder = _strip_prefix(trimmed, TEXT_PREFIX)
    if remainder is not None:
        if not remainder:
            raise ParseError(instruction, "empty text")
        return TypeTextAction(remainder, description=description)

    if trimmed.lower() == LEGACY_TEXT_TOKEN:
        text = description.strip()
        if not text:
            raise ParseError(instruction, "legacy text input without description")
        return TypeTextAction(text, description=description)

    return _parse_key_combo(instruction, trimmed, description)


def _parse_key_combo(instruction: str, trimmed: str, description: str) -> KeyPressAction:
    modifiers = set()
    key = ""
    for token in trimmed.split():
        residual = ""
        for char in token:
            if char in _GLYPHS:
                modifiers.add(_GLYPHS[char])
            else:
                residual += char
        if residual:
            key = residual

    # Whole-string aliases win over whatever residual was found
    whole = trimmed.lower()
    if whole in _KEY_ALIASES:
        key = _KEY_ALIASES[whole]
    elif key.lower() in _KEY_ALIASES:
        key = _KEY_ALIASES[key.lower()]

    if not key:
        raise ParseError(instruction, "no key found")
    if len(key) != 1:
        raise ParseError(instruction, f"unknown key {key!r}")
    return KeyPressAction(key, frozenset(modifiers), description=description)


def try_parse_action(instruction: str, description: str = "") -> Optional[Action]:
    """Like ``parse_action`` but returns ``None`` on failure."""
    try:
        return parse_action(instruction, description)
    except ParseError as e:
        log.debug("%s", e)
        return None


def parse_shortcuts(shortcuts: Iterable[ShortcutLike]) -> List[Action]:
    """Parse generated shortcuts in order, leaving out the ones that do not parse."""
    actions: List[Action] = []
    for shortcut in shortcuts:
        action = try_parse_action(shortcut.keys, shortcut.description)
        if action is None:
            log.info("Skipping unparseable shortcut %r", shortcut.keys)
            continue
        actions.append(action)
    return actions
