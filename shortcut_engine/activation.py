"""
Application switching: find a running application and make it frontmost.

The controller talks to the OS only through a ``ProcessDirectory`` backend,
see ``backends.py`` for the real ones. Activation is confirmed by polling the
frontmost process, since "did become active" notifications are not reliable
for every kind of application.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional

from .actions import ApplicationTarget

log = logging.getLogger(__name__)

DEFAULT_ACTIVATION_TIMEOUT = 2.0
ACTIVATION_POLL_INTERVAL = 0.05
UNHIDE_SETTLE_DELAY = 0.1
UNMINIMIZE_SETTLE_DELAY = 0.2


class ActivationError(Exception):
    """Base class for application switching failures."""

    def __init__(self, app_name: str, message: str):
        super().__init__(message)
        self.app_name = app_name


class ApplicationNotFound(ActivationError):
    def __init__(self, app_name: str):
        super().__init__(app_name, f"Application '{app_name}' not found. Make sure it's running.")


class ActivationFailed(ActivationError):
    def __init__(self, app_name: str):
        super().__init__(app_name, f"Failed to activate '{app_name}'. The app may not accept focus.")


class ActivationTimeout(ActivationError):
    def __init__(self, app_name: str):
        super().__init__(app_name, f"Timeout waiting for '{app_name}' to become active.")


class ActivationCancelled(ActivationError):
    def __init__(self, app_name: str):
        super().__init__(app_name, f"Switching to '{app_name}' was cancelled.")


@dataclass(frozen=True)
class RunningApplication:
    """Snapshot of one running application as reported by the OS."""
    pid: int
    name: str
    bundle_identifier: Optional[str] = None
    is_hidden: bool = False
    is_regular: bool = True


class ProcessDirectory:
    """OS backend for listing and focusing applications."""

    def running_applications(self) -> List[RunningApplication]:  # pragma: no cover - interface
        raise NotImplementedError

    def frontmost_pid(self) -> Optional[int]:  # pragma: no cover - interface
        raise NotImplementedError

    def unhide(self, app: RunningApplication) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def restore_minimized_windows(self, app: RunningApplication) -> bool:  # pragma: no cover - interface
        """Un-minimize all windows; True if at least one window was restored."""
        raise NotImplementedError

    def activate(self, app: RunningApplication) -> bool:  # pragma: no cover - interface
        """Ask the OS to bring ``app`` in front of all others; False if refused."""
        raise NotImplementedError


class ApplicationController:
    def __init__(
        self,
        directory: ProcessDirectory,
        *,
        default_timeout: float = DEFAULT_ACTIVATION_TIMEOUT,
        poll_interval: float = ACTIVATION_POLL_INTERVAL,
        unhide_settle: float = UNHIDE_SETTLE_DELAY,
        unminimize_settle: float = UNMINIMIZE_SETTLE_DELAY,
    ):
        self._directory = directory
        self.default_timeout = default_timeout
        self.poll_interval = poll_interval
        self.unhide_settle = unhide_settle
        self.unminimize_settle = unminimize_settle

    @property
    def directory(self) -> ProcessDirectory:
        return self._directory

    # -- lookup ----------------------------------------------------------

    def running_applications(self, regular_only: bool = True) -> List[RunningApplication]:
        apps = self._directory.running_applications()
        if regular_only:
            apps = [a for a in apps if a.is_regular]
        return apps

    def find_by_bundle_identifier(self, bundle_identifier: str) -> Optional[RunningApplication]:
        for app in self._directory.running_applications():
            if app.bundle_identifier == bundle_identifier:
                return app
        return None

    def find_by_name(self, name: str) -> Optional[RunningApplication]:
        """Exact name, then name substring, then bundle identifier substring (all case-insensitive)."""
        wanted = name.lower()
        apps = self._directory.running_applications()

        for app in apps:
            if app.name.lower() == wanted:
                return app
        for app in apps:
            if wanted in app.name.lower():
                return app
        for app in apps:
            if app.bundle_identifier and wanted in app.bundle_identifier.lower():
                return app
        return None

    def find_application(self, target: ApplicationTarget) -> Optional[RunningApplication]:
        if target.bundle_identifier:
            return self.find_by_bundle_identifier(target.bundle_identifier)
        return self.find_by_name(target.name)

    def is_application_running(self, name: str) -> bool:
        return self.find_by_name(name) is not None

    def frontmost_application(self) -> Optional[RunningApplication]:
        pid = self._directory.frontmost_pid()
        if pid is None:
            return None
        for app in self._directory.running_applications():
            if app.pid == pid:
                return app
        return None

    def is_frontmost(self, app: RunningApplication) -> bool:
        return self._directory.frontmost_pid() == app.pid

    # -- activation ------------------------------------------------------

    def activate(
        self,
        target: ApplicationTarget,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RunningApplication:
        """Resolve ``target`` and make it frontmost.

        Raises ``ApplicationNotFound``, ``ActivationFailed``,
        ``ActivationTimeout``, or ``ActivationCancelled`` when ``cancel_event``
        is set while waiting for the application to come to the front.
        """
        app = self.find_application(target)
        if app is None:
            raise ApplicationNotFound(target.name)
        self.activate_application(
            app,
            timeout=self.default_timeout if timeout is None else timeout,
            cancel_event=cancel_event,
        )
        return app

    def switch_to(self, name: str) -> RunningApplication:
        return self.activate(ApplicationTarget.named(name))

    def activate_application(
        self,
        app: RunningApplication,
        timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        started = time.monotonic()
        log.info("Switching to application: %s", app.name)

        if app.is_hidden:
            log.debug("%s is hidden, unhiding", app.name)
            self._directory.unhide(app)
            time.sleep(self.unhide_settle)

        if self._restore_minimized_windows(app):
            time.sleep(self.unminimize_settle)

        if not self._directory.activate(app):
            raise ActivationFailed(app.name)

        waited_from = time.monotonic()
        result = self._wait_for_activation(app, timeout, cancel_event)
        log.debug("Wait for activation took %dms", (time.monotonic() - waited_from) * 1000)

        if result is None:
            raise ActivationCancelled(app.name)
        if not result:
            raise ActivationTimeout(app.name)

        log.info("Switched to %s in %dms", app.name, (time.monotonic() - started) * 1000)

    def _restore_minimized_windows(self, app: RunningApplication) -> bool:
        # Some applications do not support window enumeration at all
        try:
            restored = bool(self._directory.restore_minimized_windows(app))
        except Exception as e:
            log.warning("Failed to un-minimize windows for %s: %s", app.name, e)
            return False
        if restored:
            log.info("Un-minimized windows for %s", app.name)
        return restored

    def _wait_for_activation(
        self,
        app: RunningApplication,
        timeout: float,
        cancel_event: Optional[threading.Event],
    ) -> Optional[bool]:
        """True once frontmost, False on timeout, None if cancelled."""
        deadline = time.monotonic() + timeout
        while True:
            if self.is_frontmost(app):
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            pause = min(self.poll_interval, remaining)
            if cancel_event is not None:
                if cancel_event.wait(pause):
                    return None
            else:
                time.sleep(pause)
