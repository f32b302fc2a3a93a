"""
Runner that executes one shortcut plan in a worker thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Tuple

from .actions import Action, SwitchApplicationAction
from .execution_settings import ExecutionSettings
from .executor import ExecutionCallbacks, ShortcutExecutor, notify
from .session import ExecutionSession
from .tracker import ApplicationTracker

log = logging.getLogger(__name__)

RESTORE_FAILED_MESSAGE = "Failed to activate target application"


class ShortcutRunner:
    """Owns one session and the thread running it. Not reusable across runs."""

    def __init__(
        self,
        actions: Iterable[Action],
        executor: Optional[ShortcutExecutor] = None,
        settings: Optional[ExecutionSettings] = None,
        callbacks: Optional[ExecutionCallbacks] = None,
        tracker: Optional[ApplicationTracker] = None,
    ):
        self._actions = list(actions)
        self._executor = executor
        self._settings = settings or ExecutionSettings()
        self._callbacks = callbacks or ExecutionCallbacks()
        self._tracker = tracker
        self._session = ExecutionSession()
        self._thread: Optional[threading.Thread] = None
        self._result: Optional[Tuple[bool, str]] = None

    @property
    def session(self) -> ExecutionSession:
        return self._session

    @property
    def result(self) -> Optional[Tuple[bool, str]]:
        return self._result

    def start(self) -> ExecutionSession:
        if self._thread is not None:
            raise RuntimeError("ShortcutRunner can only be started once")
        self._thread = threading.Thread(target=self._worker, name="shortcut-runner", daemon=True)
        self._thread.start()
        return self._session

    def run(self) -> Tuple[bool, str]:
        """Run in the calling thread."""
        if self._thread is not None:
            raise RuntimeError("ShortcutRunner can only be started once")
        self._thread = threading.current_thread()
        self._worker()
        assert self._result is not None
        return self._result

    def cancel(self, timeout: Optional[float] = 2.0) -> None:
        self._session.cancel()
        self.wait(timeout)

    def wait(self, timeout: Optional[float] = None) -> Optional[Tuple[bool, str]]:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=timeout)
        return self._result

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and self._result is None)

    def _needs_restore(self) -> bool:
        if self._tracker is None or self._tracker.previous_application is None:
            return False
        return bool(self._actions) and not isinstance(self._actions[0], SwitchApplicationAction)

    def _worker(self) -> None:
        if self._executor is None:
            self._executor = ShortcutExecutor.create_default()

        if self._needs_restore() and not self._session.is_cancelled:
            assert self._tracker is not None
            if not self._tracker.activate_previous_application():
                self._session.mark_failed(RESTORE_FAILED_MESSAGE)
                notify(self._callbacks.on_complete, False, RESTORE_FAILED_MESSAGE)
                self._result = (False, RESTORE_FAILED_MESSAGE)
                return

        self._result = self._executor.run(self._actions, self._session, self._settings, self._callbacks)
        log.info("Run finished: %s", self._result[1])
