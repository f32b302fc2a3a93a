"""
Shortcut engine: run generated keyboard shortcut plans against other applications.

A natural-language request is turned into a list of shortcuts by an external
generator. This package parses those shortcuts into typed actions and runs
them, one at a time, with cancel support.

Key parts
---------
- actions:            Action classes (key press, type text, delay, switch app)
- parser:             Key string mini-language -> actions
- shortcut_list:      Shortcut lists as returned by the generator
- execution_settings: Timing presets
- session:            Observable, cancellable state of one run
- activation:         Find an application and bring it to the front
- backends:           pynput/pyautogui key sinks, AppKit/pywinauto process directories
- executor:           Sequential executor
- tracker:            Previously focused application
- runner:             Worker thread around one run
"""

from .actions import (
    ApplicationTarget,
    DelayAction,
    KeyPressAction,
    ModifierKey,
    SwitchApplicationAction,
    TypeTextAction,
)
from .execution_settings import ExecutionSettings, ExecutionSpeed
from .executor import ExecutionCallbacks, ShortcutExecutor
from .parser import ParseError, parse_action, parse_shortcuts
from .runner import ShortcutRunner
from .session import ExecutionSession
from .shortcut_list import KeyboardShortcut, shortcuts_from_text

__all__ = [
    "ApplicationTarget",
    "DelayAction",
    "ExecutionCallbacks",
    "ExecutionSession",
    "ExecutionSettings",
    "ExecutionSpeed",
    "KeyPressAction",
    "KeyboardShortcut",
    "ModifierKey",
    "ParseError",
    "ShortcutExecutor",
    "ShortcutRunner",
    "SwitchApplicationAction",
    "TypeTextAction",
    "parse_action",
    "parse_shortcuts",
    "shortcuts_from_text",
]
