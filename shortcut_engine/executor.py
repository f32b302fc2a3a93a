"""
Sequential executor: runs a shortcut plan one action at a time.

Cancellation is cooperative. It is checked before every action, during the
pause between actions, inside delay actions and while waiting for an
application to come to the front. A key event pair always completes once
started.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, Optional, Tuple

from .actions import (
    Action,
    ActionCancelled,
    ActionError,
    ApplicationTarget,
    ModifierKey,
    SwitchApplicationAction,
    display_keys,
    display_name,
)
from .activation import ActivationCancelled, ActivationError, ApplicationController
from .backends import (
    PERMISSION_MESSAGE,
    KeySink,
    accessibility_permission_granted,
    create_key_sink,
    default_process_directory,
)
from .execution_settings import ExecutionSettings
from .session import ExecutionSession

log = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Execution cancelled"


@dataclass
class ExecutionCallbacks:
    """Observers for one run. Exceptions raised here never affect the run."""
    on_start: Optional[Callable[[], None]] = None
    on_step_start: Optional[Callable[[int, Action], None]] = None
    on_step_complete: Optional[Callable[[int], None]] = None
    on_cancelled: Optional[Callable[[int], None]] = None
    on_complete: Optional[Callable[[bool, str], None]] = None


class RunContext:
    """Runtime services handed to each action."""

    def __init__(
        self,
        session: ExecutionSession,
        settings: ExecutionSettings,
        key_sink_factory: Callable[[], KeySink],
        controller: Optional[ApplicationController] = None,
        activation_timeout: Optional[float] = None,
        sleep_hook: Optional[Callable[[float], None]] = None,
    ):
        self.session = session
        self.settings = settings
        self._key_sink_factory = key_sink_factory
        self._key_sink: Optional[KeySink] = None
        self._controller = controller
        self._activation_timeout = activation_timeout
        self._sleep = sleep_hook

    @property
    def key_sink(self) -> KeySink:
        if self._key_sink is None:
            self._key_sink = self._key_sink_factory()
        return self._key_sink

    def press_key(self, key: str, modifiers: FrozenSet[ModifierKey]) -> None:
        sink = self.key_sink
        sink.key_down(key, modifiers)
        self.pause_us(self.settings.key_event_delay_us)
        sink.key_up(key, modifiers)

    def pause_us(self, microseconds: int) -> None:
        """Uninterruptible micro pause between low-level events."""
        if microseconds > 0:
            time.sleep(microseconds / 1_000_000)

    def sleep(self, seconds: float) -> bool:
        """Cancellable sleep. Returns False if the run was cancelled meanwhile."""
        if self._sleep:
            self._sleep(seconds)
            return not self.session.is_cancelled
        return not self.session.wait_for_cancel(seconds)

    def sleep_ms(self, ms: int) -> bool:
        return self.sleep(max(ms, 0) / 1000.0)

    def activate(self, target: ApplicationTarget) -> None:
        if self._controller is None:
            raise ActionError("Application switching is not available on this platform")
        try:
            self._controller.activate(
                target,
                timeout=self._activation_timeout,
                cancel_event=self.session.cancel_event,
            )
        except ActivationCancelled as e:
            raise ActionCancelled(str(e)) from e


class ShortcutExecutor:
    """Runs action lists against the OS through injected backends."""

    def __init__(
        self,
        key_sink: Optional[KeySink] = None,
        controller: Optional[ApplicationController] = None,
        permission_check: Callable[[], bool] = accessibility_permission_granted,
        activation_timeout: Optional[float] = None,
        sleep_hook: Optional[Callable[[float], None]] = None,
    ):
        self._key_sink = key_sink
        self._controller = controller
        self._permission_check = permission_check
        self._activation_timeout = activation_timeout
        self._sleep_hook = sleep_hook

    @classmethod
    def create_default(cls) -> "ShortcutExecutor":
        """Executor wired to the real keyboard and process backends of this platform."""
        try:
            controller: Optional[ApplicationController] = ApplicationController(default_process_directory())
        except RuntimeError as e:
            log.warning("Application switching disabled: %s", e)
            controller = None
        return cls(controller=controller)

    @property
    def controller(self) -> Optional[ApplicationController]:
        return self._controller

    def _sink_factory(self) -> KeySink:
        if self._key_sink is None:
            self._key_sink = create_key_sink()
        return self._key_sink

    def run(
        self,
        actions: Iterable[Action],
        session: ExecutionSession,
        settings: Optional[ExecutionSettings] = None,
        callbacks: Optional[ExecutionCallbacks] = None,
    ) -> Tuple[bool, str]:
        """Execute ``actions`` in order and return ``(success, message)``.

        Never raises; every failure is reported through the result, the
        session and ``callbacks.on_complete``.
        """
        plan = list(actions)
        settings = settings or ExecutionSettings()
        callbacks = callbacks or ExecutionCallbacks()

        try:
            granted = bool(self._permission_check())
        except Exception as e:
            log.warning("Permission check failed: %s", e)
            granted = False
        if not granted:
            session.mark_failed(PERMISSION_MESSAGE)
            return self._finish(callbacks, False, PERMISSION_MESSAGE)

        notify(callbacks.on_start)
        if session.is_cancelled:
            return self._cancelled(callbacks, 0)

        ctx = RunContext(
            session,
            settings,
            self._sink_factory,
            controller=self._controller,
            activation_timeout=self._activation_timeout,
            sleep_hook=self._sleep_hook,
        )

        last = len(plan) - 1
        for idx, action in enumerate(plan):
            if session.is_cancelled:
                return self._cancelled(callbacks, idx)

            session.set_current_step(idx)
            notify(callbacks.on_step_start, idx, action)
            log.info("[%d/%d] %s %s", idx + 1, len(plan), display_name(action), display_keys(action))

            try:
                action.run(ctx)
            except ActionCancelled as e:
                log.info("%s", e)
                return self._cancelled(callbacks, idx)
            except ActivationError as e:
                return self._failed(session, callbacks, str(e))
            except Exception as e:
                return self._failed(session, callbacks, f"Failed to execute action at step {idx + 1}: {e}")

            notify(callbacks.on_step_complete, idx)

            if idx < last:
                delay = settings.app_switch_delay_ms if isinstance(action, SwitchApplicationAction) else settings.action_delay_ms
                if not ctx.sleep_ms(delay):
                    return self._cancelled(callbacks, idx + 1)

        session.mark_complete()
        return self._finish(callbacks, True, f"Successfully executed {len(plan)} actions")

    def _failed(self, session: ExecutionSession, callbacks: ExecutionCallbacks, message: str) -> Tuple[bool, str]:
        log.error("%s", message)
        session.mark_failed(message)
        return self._finish(callbacks, False, message)

    def _cancelled(self, callbacks: ExecutionCallbacks, index: int) -> Tuple[bool, str]:
        log.info("Execution cancelled before step %d", index + 1)
        notify(callbacks.on_cancelled, index)
        return self._finish(callbacks, False, CANCELLED_MESSAGE)

    def _finish(self, callbacks: ExecutionCallbacks, ok: bool, message: str) -> Tuple[bool, str]:
        notify(callbacks.on_complete, ok, message)
        return ok, message


def notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        log.debug("Execution callback raised: %s", e)
