import threading
import time

import pytest

from conftest import EXCEL, NOTES
from shortcut_engine.actions import (
    ApplicationTarget,
    DelayAction,
    KeyPressAction,
    ModifierKey,
    SwitchApplicationAction,
    TypeTextAction,
)
from shortcut_engine.backends import PERMISSION_MESSAGE
from shortcut_engine.execution_settings import ExecutionSettings
from shortcut_engine.executor import CANCELLED_MESSAGE, ExecutionCallbacks, ShortcutExecutor
from shortcut_engine.session import ExecutionSession

CMD = frozenset({ModifierKey.COMMAND})


def switch(name):
    return SwitchApplicationAction(ApplicationTarget.named(name))


class CallbackLog:
    def __init__(self):
        self.events = []

    def callbacks(self):
        return ExecutionCallbacks(
            on_start=lambda: self.events.append(("start",)),
            on_step_start=lambda i, a: self.events.append(("step_start", i)),
            on_step_complete=lambda i: self.events.append(("step_complete", i)),
            on_cancelled=lambda i: self.events.append(("cancelled", i)),
            on_complete=lambda ok, msg: self.events.append(("complete", ok, msg)),
        )

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def executor(key_sink, controller, recording_sleep):
    return ShortcutExecutor(
        key_sink=key_sink,
        controller=controller,
        permission_check=lambda: True,
        sleep_hook=recording_sleep,
    )


def test_copy_paste_between_apps_scenario(executor, key_sink, directory, recording_sleep):
    actions = [
        switch("Notes"),
        KeyPressAction("a", CMD),
        KeyPressAction("c", CMD),
        switch("Excel"),
        KeyPressAction("v", CMD),
    ]
    log = CallbackLog()
    session = ExecutionSession()
    settings = ExecutionSettings()

    result = executor.run(actions, session, settings, log.callbacks())

    assert result == (True, "Successfully executed 5 actions")
    expected = [("start",)]
    for i in range(5):
        expected += [("step_start", i), ("step_complete", i)]
    expected.append(("complete", True, "Successfully executed 5 actions"))
    assert log.events == expected

    switch_pause = settings.app_switch_delay_ms / 1000
    action_pause = settings.action_delay_ms / 1000
    assert recording_sleep.pauses == [switch_pause, action_pause, action_pause, switch_pause]

    assert key_sink.presses() == [("a", CMD), ("c", CMD), ("v", CMD)]
    assert [c for c in directory.calls if c[0] == "activate"] == [("activate", NOTES.pid), ("activate", EXCEL.pid)]
    assert directory.front == EXCEL.pid
    assert session.is_complete
    assert session.error is None
    assert session.current_step_index == 4


def test_key_press_sends_down_then_up_with_modifiers(executor, key_sink, quick_settings):
    executor.run([KeyPressAction("c", CMD)], ExecutionSession(), quick_settings)
    assert key_sink.events == [("down", "c", CMD), ("up", "c", CMD)]


def test_type_text_adds_shift_where_needed(executor, key_sink, quick_settings):
    executor.run([TypeTextAction("Hi!")], ExecutionSession(), quick_settings)
    shift = frozenset({ModifierKey.SHIFT})
    assert key_sink.events == [
        ("down", "h", shift), ("up", "h", shift),
        ("down", "i", frozenset()), ("up", "i", frozenset()),
        ("down", "1", shift), ("up", "1", shift),
    ]


def test_delay_action_sleeps_for_its_duration(executor, recording_sleep, quick_settings):
    ok, _ = executor.run([DelayAction(250), KeyPressAction("x")], ExecutionSession(), quick_settings)
    assert ok
    assert recording_sleep.pauses == [0.25, quick_settings.action_delay_ms / 1000]


def test_no_pause_after_last_action(executor, recording_sleep, quick_settings):
    executor.run([KeyPressAction("x"), KeyPressAction("y")], ExecutionSession(), quick_settings)
    assert len(recording_sleep.pauses) == 1


def test_empty_plan_succeeds(executor):
    session = ExecutionSession()
    assert executor.run([], session) == (True, "Successfully executed 0 actions")
    assert session.is_complete


def test_cancel_before_start_runs_nothing(executor, key_sink, quick_settings):
    session = ExecutionSession()
    session.cancel()
    log = CallbackLog()

    ok, message = executor.run([KeyPressAction("a"), KeyPressAction("b")], session, quick_settings, log.callbacks())

    assert (ok, message) == (False, CANCELLED_MESSAGE)
    assert log.of("step_start") == []
    assert log.of("cancelled") == [("cancelled", 0)]
    assert log.events[-1] == ("complete", False, CANCELLED_MESSAGE)
    assert key_sink.events == []
    assert session.error is None
    assert not session.is_complete


def test_cancel_before_start_with_empty_plan(executor, quick_settings):
    session = ExecutionSession()
    session.cancel()
    log = CallbackLog()

    assert executor.run([], session, quick_settings, log.callbacks()) == (False, CANCELLED_MESSAGE)
    assert log.of("cancelled") == [("cancelled", 0)]
    assert log.events[-1] == ("complete", False, CANCELLED_MESSAGE)
    assert not session.is_complete


def test_empty_plan_succeeds(executor, quick_settings):
    session = ExecutionSession()
    assert executor.run([], session, quick_settings) == (True, "Successfully executed 0 actions")
    assert session.is_complete


def test_cancel_during_pause_between_actions(executor, key_sink, recording_sleep, quick_settings):
    session = ExecutionSession()
    recording_sleep.on_sleep = lambda count: session.cancel()
    log = CallbackLog()

    ok, message = executor.run(
        [KeyPressAction("a"), KeyPressAction("b"), KeyPressAction("c")],
        session, quick_settings, log.callbacks(),
    )

    assert (ok, message) == (False, CANCELLED_MESSAGE)
    assert key_sink.presses() == [("a", frozenset())]
    assert log.of("step_complete") == [("step_complete", 0)]
    assert log.of("cancelled") == [("cancelled", 1)]
    assert session.error is None


def test_cancel_interrupts_delay_action(key_sink, controller, quick_settings):
    executor = ShortcutExecutor(key_sink=key_sink, controller=controller, permission_check=lambda: True)
    session = ExecutionSession()
    threading.Timer(0.05, session.cancel).start()
    log = CallbackLog()

    started = time.monotonic()
    ok, message = executor.run([DelayAction(10_000), KeyPressAction("x")], session, quick_settings, log.callbacks())

    assert time.monotonic() - started < 5.0
    assert (ok, message) == (False, CANCELLED_MESSAGE)
    assert log.of("step_complete") == []
    assert log.of("cancelled") == [("cancelled", 0)]
    assert key_sink.events == []


def test_cancel_while_waiting_for_app_to_activate(key_sink, controller, directory, quick_settings):
    directory.never_frontmost = True
    executor = ShortcutExecutor(
        key_sink=key_sink, controller=controller, permission_check=lambda: True, activation_timeout=10.0,
    )
    session = ExecutionSession()
    threading.Timer(0.05, session.cancel).start()

    ok, message = executor.run([switch("Notes"), KeyPressAction("x")], session, quick_settings)

    assert (ok, message) == (False, CANCELLED_MESSAGE)
    assert session.error is None
    assert key_sink.events == []


def test_failed_step_stops_the_run(executor, key_sink, quick_settings):
    session = ExecutionSession()
    log = CallbackLog()
    actions = [KeyPressAction("a"), switch("Keynote"), KeyPressAction("b"), KeyPressAction("c")]

    ok, message = executor.run(actions, session, quick_settings, log.callbacks())

    assert not ok
    assert message == "Application 'Keynote' not found. Make sure it's running."
    assert session.error == message
    assert key_sink.presses() == [("a", frozenset())]
    assert log.of("step_start") == [("step_start", 0), ("step_start", 1)]
    assert log.of("step_complete") == [("step_complete", 0)]
    assert log.events[-1] == ("complete", False, message)


def test_activation_timeout_fails_the_step(key_sink, controller, directory, quick_settings):
    directory.never_frontmost = True
    executor = ShortcutExecutor(
        key_sink=key_sink, controller=controller, permission_check=lambda: True, activation_timeout=0.05,
    )
    session = ExecutionSession()
    ok, message = executor.run([switch("Excel")], session, quick_settings)
    assert not ok
    assert message == "Timeout waiting for 'Microsoft Excel' to become active."
    assert session.error == message


def test_backend_error_reports_step_number(executor, key_sink, quick_settings):
    key_sink.fail_on = "b"
    session = ExecutionSession()
    ok, message = executor.run([KeyPressAction("a"), KeyPressAction("b")], session, quick_settings)
    assert not ok
    assert message.startswith("Failed to execute action at step 2")
    assert session.error == message


def test_switch_without_controller_fails(key_sink, quick_settings):
    executor = ShortcutExecutor(key_sink=key_sink, controller=None, permission_check=lambda: True)
    ok, message = executor.run([switch("Notes")], ExecutionSession(), quick_settings)
    assert not ok
    assert "not available" in message


def test_permission_denied(key_sink, controller, quick_settings):
    executor = ShortcutExecutor(key_sink=key_sink, controller=controller, permission_check=lambda: False)
    session = ExecutionSession()
    log = CallbackLog()

    result = executor.run([KeyPressAction("a")], session, quick_settings, log.callbacks())

    assert result == (False, PERMISSION_MESSAGE)
    assert log.events == [("complete", False, PERMISSION_MESSAGE)]
    assert key_sink.events == []
    assert session.current_step_index == -1


def test_permission_check_error_counts_as_denied(key_sink, quick_settings):
    def broken():
        raise OSError("no accessibility API")

    executor = ShortcutExecutor(key_sink=key_sink, permission_check=broken)
    assert executor.run([KeyPressAction("a")], ExecutionSession(), quick_settings) == (False, PERMISSION_MESSAGE)


def test_observer_errors_do_not_break_the_run(executor, quick_settings):
    def boom(*_):
        raise RuntimeError("ui crashed")

    callbacks = ExecutionCallbacks(on_start=boom, on_step_start=boom, on_step_complete=boom, on_complete=boom)
    ok, _ = executor.run([KeyPressAction("a"), KeyPressAction("b")], ExecutionSession(), quick_settings, callbacks)
    assert ok
