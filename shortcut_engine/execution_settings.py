"""Timing configuration for shortcut execution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


@dataclass(frozen=True)
class ExecutionSettings:
    """
    Delays applied while running a shortcut plan.

    action_delay_ms:     pause after each non-final action
    app_switch_delay_ms: pause after an application switch (focus needs to settle)
    key_event_delay_us:  gap between key-down and key-up
    character_delay_us:  gap between typed characters
    """
    action_delay_ms: int = 150
    app_switch_delay_ms: int = 500
    key_event_delay_us: int = 10_000
    character_delay_us: int = 20_000

    def __post_init__(self):
        for name in ("action_delay_ms", "app_switch_delay_ms", "key_event_delay_us", "character_delay_us"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

        if self.app_switch_delay_ms < self.action_delay_ms:
            raise ValueError("App switch delay must be at least the action delay")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_delay_ms": self.action_delay_ms,
            "app_switch_delay_ms": self.app_switch_delay_ms,
            "key_event_delay_us": self.key_event_delay_us,
            "character_delay_us": self.character_delay_us,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExecutionSettings":
        defaults = ExecutionSettings()
        return ExecutionSettings(
            action_delay_ms=int(data.get("action_delay_ms", defaults.action_delay_ms)),
            app_switch_delay_ms=int(data.get("app_switch_delay_ms", defaults.app_switch_delay_ms)),
            key_event_delay_us=int(data.get("key_event_delay_us", defaults.key_event_delay_us)),
            character_delay_us=int(data.get("character_delay_us", defaults.character_delay_us)),
        )


class ExecutionSpeed(Enum):
    """Named timing presets."""
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def execution_settings(self) -> ExecutionSettings:
        return _PRESETS[self]


_PRESETS = {
    ExecutionSpeed.SLOW: ExecutionSettings(300, 800, 20_000, 40_000),
    ExecutionSpeed.NORMAL: ExecutionSettings(150, 500, 10_000, 20_000),
    ExecutionSpeed.FAST: ExecutionSettings(50, 250, 5_000, 10_000),
}

_DESCRIPTIONS = {
    ExecutionSpeed.SLOW: "Most reliable. Use for multi-application workflows or slow apps.",
    ExecutionSpeed.NORMAL: "Balanced timing for most workflows.",
    ExecutionSpeed.FAST: "Minimal delays. Use only if actions run without issues.",
}
