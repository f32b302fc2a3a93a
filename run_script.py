"""
Small CLI to run a generated shortcut list without any UI.

Usage:
    python run_script.py shortcuts.json [--speed=slow|normal|fast] [--dry-run] [--log=run.log]

The file holds either the generator's JSON document
({"shortcuts": [{"name": ..., "keys": ..., "description": ...}]}) or its raw
reply text, code fences included.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from hotkey_manager import CancelHotkey
from logger import StatusLogger
from settings_manager import SettingsManager
from shortcut_engine import (
    ExecutionCallbacks,
    ExecutionSpeed,
    ShortcutExecutor,
    ShortcutRunner,
    parse_shortcuts,
    shortcuts_from_text,
)
from shortcut_engine.actions import ESCAPE_KEY, KeyPressAction, display_keys, display_name
from shortcut_engine.tracker import ApplicationTracker

USAGE = "Usage: run_script.py <shortcuts file> [--speed=slow|normal|fast] [--dry-run] [--log=<path>]"


def _parse_args(argv: List[str]) -> Optional[Dict[str, str]]:
    options: Dict[str, str] = {}
    positional: List[str] = []
    for arg in argv:
        if arg == "--dry-run":
            options["dry_run"] = "1"
        elif arg.startswith("--speed="):
            options["speed"] = arg.split("=", 1)[1]
        elif arg.startswith("--log="):
            options["log"] = arg.split("=", 1)[1]
        elif arg.startswith("--"):
            return None
        else:
            positional.append(arg)
    if len(positional) != 1:
        return None
    options["path"] = positional[0]
    return options


def main(argv: Optional[List[str]] = None) -> int:
    options = _parse_args(sys.argv[1:] if argv is None else argv)
    if options is None:
        print(USAGE)
        return 2

    path = Path(options["path"])
    if not path.exists():
        print(f"File not found: {path}")
        return 2

    app_settings = SettingsManager().load()
    if "speed" in options:
        try:
            app_settings.execution_speed = ExecutionSpeed(options["speed"].lower())
            app_settings.custom_settings = None
        except ValueError:
            print(f"Unknown speed: {options['speed']}")
            return 2

    status = StatusLogger()
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] [%(levelname)s] %(message)s")
    logging.getLogger("shortcut_engine").addHandler(status.handler())

    shortcuts = shortcuts_from_text(path.read_text(encoding="utf-8"))
    actions = parse_shortcuts(shortcuts)
    if not actions:
        print("No executable shortcuts found.")
        return 1

    if app_settings.custom_settings is None:
        speed = app_settings.execution_speed
        print(f"Speed: {speed.display_name} - {speed.description}")
    else:
        print("Speed: Custom")
    for idx, action in enumerate(actions):
        print(f"{idx + 1:>3}. {display_name(action):<24} {display_keys(action)}")
    if "dry_run" in options:
        return 0

    callbacks = ExecutionCallbacks(
        on_start=lambda: status.update_status("Executing shortcuts"),
        on_step_start=lambda i, a: status.update_status(f"Step {i + 1}/{len(actions)}: {display_name(a)}"),
        on_cancelled=lambda i: status.log_warning(f"Cancelled before step {i + 1}"),
        on_complete=lambda ok, msg: status.update_status(msg) if ok else status.log_error(msg),
    )
    executor = ShortcutExecutor.create_default()
    tracker = None
    if app_settings.restore_previous_application and executor.controller is not None:
        tracker = ApplicationTracker(executor.controller)
        tracker.capture_previous_application()
    runner = ShortcutRunner(actions, executor=executor, settings=app_settings.execution_settings,
                            callbacks=callbacks, tracker=tracker)

    # A plan that presses Escape would trip an Escape stop hotkey on its own input
    presses_escape = any(isinstance(a, KeyPressAction) and a.key == ESCAPE_KEY for a in actions)
    hotkey = CancelHotkey(runner.session.cancel, app_settings.stop_hotkey)
    if not (presses_escape and hotkey.hotkey.lower() in ("esc", "escape")):
        hotkey.enable()
        print(f"Press {hotkey.hotkey} to stop.")
    try:
        runner.start()
        ok, message = runner.wait() or (False, "No result")
    except KeyboardInterrupt:
        runner.cancel()
        ok, message = runner.result or (False, "Execution cancelled")
    finally:
        hotkey.disable()

    print(f"DONE: {ok} - {message}")
    if "log" in options:
        status.export_logs_to_file(options["log"])
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
