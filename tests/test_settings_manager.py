import json

from models import ApplicationSettings
from settings_manager import SettingsManager
from shortcut_engine.execution_settings import ExecutionSettings, ExecutionSpeed


def test_missing_file_gives_defaults(tmp_path):
    settings = SettingsManager(tmp_path / "settings.json").load()
    assert settings == ApplicationSettings()
    assert settings.execution_settings == ExecutionSpeed.NORMAL.execution_settings


def test_save_and_load(tmp_path):
    manager = SettingsManager(tmp_path / "nested" / "settings.json")
    saved = ApplicationSettings(execution_speed=ExecutionSpeed.FAST, stop_hotkey="ctrl+shift+x",
                                restore_previous_application=False)
    manager.save(saved)
    assert manager.load() == saved
    assert not manager.storage_path.with_suffix(".tmp").exists()


def test_custom_settings_override_preset(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    custom = ExecutionSettings(5, 10, 0, 0)
    manager.save(ApplicationSettings(execution_speed=ExecutionSpeed.SLOW, custom_settings=custom))
    assert manager.load().execution_settings == custom


def test_corrupt_file_is_moved_aside(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{ definitely not json", encoding="utf-8")
    assert SettingsManager(path).load() == ApplicationSettings()
    assert path.with_suffix(".bak").exists()
    assert not path.exists()


def test_unknown_speed_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"execution_speed": "warp"}), encoding="utf-8")
    assert SettingsManager(path).load() == ApplicationSettings()


def test_clear_resets(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.save(ApplicationSettings(execution_speed=ExecutionSpeed.SLOW))
    assert manager.clear() == ApplicationSettings()
    assert manager.load().execution_speed == ExecutionSpeed.NORMAL
