import threading
from typing import Dict, FrozenSet, List, Optional, Tuple

import pytest

from shortcut_engine.actions import ModifierKey
from shortcut_engine.activation import ApplicationController, ProcessDirectory, RunningApplication
from shortcut_engine.backends import KeySink
from shortcut_engine.execution_settings import ExecutionSettings


class FakeKeySink(KeySink):
    """Records key events instead of posting them."""

    name = "fake"

    def __init__(self):
        self.events: List[Tuple[str, str, FrozenSet[ModifierKey]]] = []
        self.fail_on: Optional[str] = None

    def key_down(self, key, modifiers):
        if key == self.fail_on:
            raise RuntimeError(f"cannot press {key!r}")
        self.events.append(("down", key, frozenset(modifiers)))

    def key_up(self, key, modifiers):
        self.events.append(("up", key, frozenset(modifiers)))

    def presses(self):
        return [(key, mods) for kind, key, mods in self.events if kind == "down"]


class FakeProcessDirectory(ProcessDirectory):
    """Scriptable set of running applications and a frontmost pid."""

    def __init__(self, apps=None):
        self.apps: List[RunningApplication] = list(apps or [])
        self.front: Optional[int] = None
        self.calls: List[Tuple[str, int]] = []
        self.refuse_activation = False
        self.never_frontmost = False
        self.minimized: Dict[int, bool] = {}
        self.restore_raises = False

    def running_applications(self):
        return list(self.apps)

    def frontmost_pid(self):
        return self.front

    def unhide(self, app):
        self.calls.append(("unhide", app.pid))

    def restore_minimized_windows(self, app):
        self.calls.append(("restore", app.pid))
        if self.restore_raises:
            raise RuntimeError("window enumeration not supported")
        restored = self.minimized.pop(app.pid, False)
        return restored

    def activate(self, app):
        self.calls.append(("activate", app.pid))
        if self.refuse_activation:
            return False
        if not self.never_frontmost:
            self.front = app.pid
        return True


class RecordingSleep:
    """Sleep hook that records requested pauses without waiting."""

    def __init__(self):
        self.pauses: List[float] = []
        self.on_sleep = None

    def __call__(self, seconds):
        self.pauses.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.pauses))


NOTES = RunningApplication(pid=101, name="Notes", bundle_identifier="com.apple.Notes")
EXCEL = RunningApplication(pid=202, name="Microsoft Excel", bundle_identifier="com.microsoft.Excel")
FINDER = RunningApplication(pid=303, name="Finder", bundle_identifier="com.apple.finder")
DAEMON = RunningApplication(pid=404, name="Helper", bundle_identifier="com.example.helper", is_regular=False)


@pytest.fixture
def key_sink():
    return FakeKeySink()


@pytest.fixture
def directory():
    return FakeProcessDirectory([NOTES, EXCEL, FINDER, DAEMON])


@pytest.fixture
def controller(directory):
    return ApplicationController(
        directory,
        default_timeout=0.2,
        poll_interval=0.01,
        unhide_settle=0.0,
        unminimize_settle=0.0,
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def quick_settings():
    return ExecutionSettings(
        action_delay_ms=10,
        app_switch_delay_ms=20,
        key_event_delay_us=0,
        character_delay_us=0,
    )


@pytest.fixture
def cancel_event():
    return threading.Event()
