"""
OS backends: keyboard event sinks, process directories and permission checks.

Notes
-----
- Keyboard input prefers pynput and falls back to pyautogui, both imported
  lazily so that importing this package never requires a display.
- Application switching uses AppKit (pyobjc) on macOS and psutil + pywinauto
  on Windows. Other platforms have no process directory.
- On platforms other than macOS the Command modifier is sent as Control, the
  key that carries the same shortcuts there.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .actions import ESCAPE_KEY, RETURN_KEY, SPACE_KEY, TAB_KEY, ActionError, ModifierKey
from .activation import ProcessDirectory, RunningApplication

log = logging.getLogger(__name__)

PERMISSION_MESSAGE = (
    "Accessibility permissions required. Please enable in "
    "System Settings > Privacy & Security > Accessibility"
)

_MODIFIER_ORDER = (ModifierKey.CONTROL, ModifierKey.OPTION, ModifierKey.SHIFT, ModifierKey.COMMAND)


def _is_mac() -> bool:
    return sys.platform == "darwin"


def _ordered(modifiers: Iterable[ModifierKey]) -> List[ModifierKey]:
    wanted = set(modifiers)
    return [m for m in _MODIFIER_ORDER if m in wanted]


class KeySink:
    """Posts low-level key events to whatever application has focus."""

    name = "abstract"

    def key_down(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def key_up(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class PynputKeySink(KeySink):
    name = "pynput"

    def __init__(self) -> None:
        kb_cls, key_mod = _get_pynput()
        if kb_cls is None or key_mod is None:
            raise ActionError("No keyboard backend available (install pynput)")
        self._kb = kb_cls()
        self._special = {
            RETURN_KEY: key_mod.enter,
            TAB_KEY: key_mod.tab,
            ESCAPE_KEY: key_mod.esc,
            SPACE_KEY: key_mod.space,
        }
        self._modifiers = {
            ModifierKey.COMMAND: key_mod.cmd if _is_mac() else key_mod.ctrl,
            ModifierKey.SHIFT: key_mod.shift,
            ModifierKey.OPTION: key_mod.alt,
            ModifierKey.CONTROL: key_mod.ctrl,
        }

    def _resolve(self, key: str) -> Any:
        if key in self._special:
            return self._special[key]
        return key.lower() if key.isalpha() else key

    def key_down(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:
        try:
            for mod in _ordered(modifiers):
                self._kb.press(self._modifiers[mod])
            self._kb.press(self._resolve(key))
        except Exception as e:
            raise ActionError(f"Failed to send key down for {key!r}: {e}") from e

    def key_up(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:
        try:
            self._kb.release(self._resolve(key))
            for mod in reversed(_ordered(modifiers)):
                self._kb.release(self._modifiers[mod])
        except Exception as e:
            raise ActionError(f"Failed to send key up for {key!r}: {e}") from e


class PyAutoGUIKeySink(KeySink):
    name = "pyautogui"

    _SPECIAL = {RETURN_KEY: "enter", TAB_KEY: "tab", ESCAPE_KEY: "esc", SPACE_KEY: "space"}

    def __init__(self) -> None:
        try:
            import pyautogui  # local import to avoid hard dep at import time
        except Exception as e:
            raise ActionError(f"No keyboard backend available (install pyautogui): {e}")
        pyautogui.PAUSE = 0.0  # timing is driven by ExecutionSettings
        self._gui = pyautogui
        self._modifiers = {
            ModifierKey.COMMAND: "command" if _is_mac() else "ctrl",
            ModifierKey.SHIFT: "shift",
            ModifierKey.OPTION: "option" if _is_mac() else "alt",
            ModifierKey.CONTROL: "ctrl",
        }

    def _resolve(self, key: str) -> str:
        return self._SPECIAL.get(key, key.lower() if key.isalpha() else key)

    def key_down(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:
        try:
            for mod in _ordered(modifiers):
                self._gui.keyDown(self._modifiers[mod])
            self._gui.keyDown(self._resolve(key))
        except Exception as e:
            raise ActionError(f"Failed to send key down for {key!r}: {e}") from e

    def key_up(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:
        try:
            self._gui.keyUp(self._resolve(key))
            for mod in reversed(_ordered(modifiers)):
                self._gui.keyUp(self._modifiers[mod])
        except Exception as e:
            raise ActionError(f"Failed to send key up for {key!r}: {e}") from e


def create_key_sink() -> KeySink:
    """Prefer pynput; fall back to pyautogui."""
    try:
        sink: KeySink = PynputKeySink()
    except ActionError as e:
        log.info("pynput unavailable, falling back to pyautogui: %s", e)
        sink = PyAutoGUIKeySink()
    log.debug("Using %s key sink", sink.name)
    return sink


def _get_pynput() -> Tuple[Optional[Any], Optional[Any]]:
    """Import pynput lazily and return (KeyboardControllerClass, KeyModule)."""
    try:
        from pynput.keyboard import Controller as KeyboardController, Key as KeyModule  # type: ignore
        return KeyboardController, KeyModule
    except Exception:
        return None, None


# -- permissions -------------------------------------------------------------

def accessibility_permission_granted(prompt: bool = False) -> bool:
    """Whether this process may inject input into other applications.

    Only macOS gates synthetic input behind a permission; with ``prompt`` the
    system may show its accessibility dialog.
    """
    if not _is_mac():
        return True
    try:
        from ApplicationServices import (  # type: ignore
            AXIsProcessTrustedWithOptions,
            kAXTrustedCheckOptionPrompt,
        )
    except ImportError:
        log.warning("pyobjc ApplicationServices not installed; cannot confirm accessibility permission")
        return False
    return bool(AXIsProcessTrustedWithOptions({kAXTrustedCheckOptionPrompt: prompt}))


# -- process directories -----------------------------------------------------

_UNMINIMIZE_SCRIPT = """
tell application "System Events"
    try
        tell process "{name}"
            set visible to true
            set foundMinimized to false
            repeat with w in windows
                if value of attribute "AXMinimized" of w is true then
                    set value of attribute "AXMinimized" of w to false
                    set foundMinimized to true
                end if
            end repeat
            return foundMinimized
        end tell
    on error
        return false
    end try
end tell
"""


class MacProcessDirectory(ProcessDirectory):
    """NSWorkspace-backed directory; window restore goes through System Events."""

    def __init__(self, script_runner: Optional[Callable[[List[str]], str]] = None) -> None:
        try:
            from AppKit import (  # type: ignore
                NSApplicationActivateIgnoringOtherApps,
                NSApplicationActivationPolicyRegular,
                NSRunningApplication,
                NSWorkspace,
            )
        except ImportError as e:
            raise RuntimeError("Application switching on macOS requires pyobjc (AppKit)") from e
        self._workspace = NSWorkspace.sharedWorkspace()
        self._ns_running_app = NSRunningApplication
        self._ignoring_other_apps = NSApplicationActivateIgnoringOtherApps
        self._regular_policy = NSApplicationActivationPolicyRegular
        self._run_script = script_runner or _run_osascript

    def running_applications(self) -> List[RunningApplication]:
        apps: List[RunningApplication] = []
        for ns_app in self._workspace.runningApplications():
            if ns_app.isTerminated():
                continue
            bundle_id = ns_app.bundleIdentifier()
            apps.append(RunningApplication(
                pid=int(ns_app.processIdentifier()),
                name=str(ns_app.localizedName() or "Unknown"),
                bundle_identifier=str(bundle_id) if bundle_id else None,
                is_hidden=bool(ns_app.isHidden()),
                is_regular=ns_app.activationPolicy() == self._regular_policy,
            ))
        return apps

    def frontmost_pid(self) -> Optional[int]:
        front = self._workspace.frontmostApplication()
        return int(front.processIdentifier()) if front is not None else None

    def _lookup(self, app: RunningApplication) -> Any:
        return self._ns_running_app.runningApplicationWithProcessIdentifier_(app.pid)

    def unhide(self, app: RunningApplication) -> None:
        ns_app = self._lookup(app)
        if ns_app is not None:
            ns_app.unhide()

    def restore_minimized_windows(self, app: RunningApplication) -> bool:
        script = _UNMINIMIZE_SCRIPT.format(name=app.name.replace('"', '\\"'))
        output = self._run_script(["osascript", "-e", script])
        return output.strip().lower() == "true"

    def activate(self, app: RunningApplication) -> bool:
        ns_app = self._lookup(app)
        if ns_app is None:
            return False
        return bool(ns_app.activateWithOptions_(self._ignoring_other_apps))


def _run_osascript(command: List[str]) -> str:
    result = subprocess.run(command, capture_output=True, text=True, timeout=5.0, check=True)
    return result.stdout


class WindowsProcessDirectory(ProcessDirectory):
    """Applications with top-level windows, via psutil and pywinauto."""

    def __init__(self) -> None:
        try:
            import psutil  # type: ignore
            from pywinauto import Application, findwindows, handleprops, win32functions  # type: ignore
        except ImportError as e:
            raise RuntimeError("Application switching on Windows requires psutil and pywinauto") from e
        self._psutil = psutil
        self._application_cls = Application
        self._findwindows = findwindows
        self._handleprops = handleprops
        self._win32functions = win32functions

    def running_applications(self) -> List[RunningApplication]:
        seen: Dict[int, RunningApplication] = {}
        for element in self._findwindows.find_elements(top_level_only=True):
            pid = element.process_id
            if pid in seen:
                continue
            try:
                proc = self._psutil.Process(pid)
                exe_name = proc.name()
            except (self._psutil.NoSuchProcess, self._psutil.AccessDenied):
                continue
            stem = exe_name.rsplit(".", 1)[0]
            seen[pid] = RunningApplication(pid=pid, name=stem, bundle_identifier=exe_name.lower())
        return list(seen.values())

    def frontmost_pid(self) -> Optional[int]:
        hwnd = self._win32functions.GetForegroundWindow()
        if not hwnd:
            return None
        return int(self._handleprops.processid(hwnd))

    def _connect(self, app: RunningApplication) -> Any:
        return self._application_cls(backend="win32").connect(process=app.pid)

    def unhide(self, app: RunningApplication) -> None:
        # Windows has no application-level hide
        return None

    def restore_minimized_windows(self, app: RunningApplication) -> bool:
        restored = False
        for window in self._connect(app).windows():
            if window.is_minimized():
                window.restore()
                restored = True
        return restored

    def activate(self, app: RunningApplication) -> bool:
        try:
            self._connect(app).top_window().set_focus()
            return True
        except Exception as e:
            log.warning("set_focus failed for %s: %s", app.name, e)
            return False


def default_process_directory() -> ProcessDirectory:
    if _is_mac():
        return MacProcessDirectory()
    if sys.platform.startswith("win"):
        return WindowsProcessDirectory()
    raise RuntimeError(f"Application switching is not supported on {sys.platform}")
