"""
Persisted preferences for the shortcut runner.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from shortcut_engine.execution_settings import ExecutionSettings, ExecutionSpeed


@dataclass
class ApplicationSettings:
    """Persisted application preferences."""

    execution_speed: ExecutionSpeed = ExecutionSpeed.NORMAL
    custom_settings: Optional[ExecutionSettings] = None
    stop_hotkey: str = "esc"
    restore_previous_application: bool = True

    @property
    def execution_settings(self) -> ExecutionSettings:
        """Custom timing if configured, otherwise the speed preset."""
        if self.custom_settings is not None:
            return self.custom_settings
        return self.execution_speed.execution_settings

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to primitive types for JSON storage."""
        return {
            "execution_speed": self.execution_speed.value,
            "custom_settings": self.custom_settings.to_dict() if self.custom_settings else None,
            "stop_hotkey": self.stop_hotkey,
            "restore_previous_application": self.restore_previous_application,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ApplicationSettings":
        """Create settings instance from JSON dictionary."""
        custom_raw = data.get("custom_settings")
        custom = ExecutionSettings.from_dict(custom_raw) if isinstance(custom_raw, dict) else None

        return ApplicationSettings(
            execution_speed=ExecutionSpeed(str(data.get("execution_speed", ExecutionSpeed.NORMAL.value))),
            custom_settings=custom,
            stop_hotkey=str(data.get("stop_hotkey", "esc") or "esc"),
            restore_previous_application=bool(data.get("restore_previous_application", True)),
        )
