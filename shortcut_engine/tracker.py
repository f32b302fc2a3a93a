"""Remembers which application was in front before the shortcut UI took focus."""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from .activation import ActivationError, ApplicationController, RunningApplication

log = logging.getLogger(__name__)


class ApplicationTracker:
    def __init__(self, controller: ApplicationController, own_pid: Optional[int] = None, settle: float = 0.1):
        self._controller = controller
        self._own_pid = os.getpid() if own_pid is None else own_pid
        self._settle = settle
        self._previous: Optional[RunningApplication] = None

    @property
    def previous_application(self) -> Optional[RunningApplication]:
        return self._previous

    def set_previous_application(self, app: Optional[RunningApplication]) -> None:
        self._previous = app

    def capture_previous_application(self) -> Optional[RunningApplication]:
        """Record the frontmost application unless it is this process. Call before showing any UI."""
        front = self._controller.frontmost_application()
        if front is not None and front.pid != self._own_pid:
            self._previous = front
            log.info("Captured previous app: %s", front.name)
        return self._previous

    def activate_previous_application(self) -> bool:
        app = self._previous
        if app is None:
            log.warning("No previous application to activate")
            return False

        log.info("Activating %s...", app.name)
        try:
            self._controller.activate_application(app, self._controller.default_timeout)
        except ActivationError as e:
            log.error("Failed to activate %s: %s", app.name, e)
            return False

        time.sleep(self._settle)
        log.info("Successfully activated %s", app.name)
        return True

    def clear_previous_application(self) -> None:
        self._previous = None
