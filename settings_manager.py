"""Persistence utilities for shortcut runner settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from models import ApplicationSettings

log = logging.getLogger(__name__)


class SettingsManager:
    """Handles loading and saving application settings to disk."""

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        package_root = Path(__file__).resolve().parent
        self._storage_path = storage_path or package_root / "settings.json"

    @property
    def storage_path(self) -> Path:
        """Absolute path to the settings file."""
        return self._storage_path

    def load(self) -> ApplicationSettings:
        """Load settings from disk, returning defaults if the file is missing or corrupt."""
        path = self.storage_path
        if not path.exists():
            return ApplicationSettings()

        try:
            raw_data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw_data, dict):
                raise ValueError("Settings file has invalid structure")
            return ApplicationSettings.from_dict(raw_data)
        except (OSError, TypeError, ValueError) as e:
            # Keep the broken file around as .bak for inspection
            log.warning("Ignoring unreadable settings file %s: %s", path, e)
            try:
                path.replace(path.with_suffix(".bak"))
            except OSError as backup_error:
                log.warning("Could not back up settings file: %s", backup_error)
            return ApplicationSettings()

    def save(self, settings: ApplicationSettings) -> None:
        """Persist settings atomically to disk."""
        path = self.storage_path
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = path.with_suffix(".tmp")
        payload = json.dumps(settings.to_dict(), indent=2, ensure_ascii=False)
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)

    def clear(self) -> ApplicationSettings:
        """Reset to defaults and persist them."""
        settings = ApplicationSettings()
        self.save(settings)
        return settings
