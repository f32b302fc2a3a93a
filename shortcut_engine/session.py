"""
Execution session: the observable state of one shortcut run.

The caller owns ``cancel``; every other field is written only by the executor.
Cancellation is a ``threading.Event`` so it can be requested from any thread
without blocking, and progress fields sit behind a lock.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional


class ExecutionSession:
    def __init__(self) -> None:
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._current_step_index = -1
        self._is_complete = False
        self._error: Optional[str] = None
        self._observers: List[Callable[["ExecutionSession"], None]] = []

    # -- observation -----------------------------------------------------

    @property
    def is_cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def current_step_index(self) -> int:
        with self._lock:
            return self._current_step_index

    @property
    def is_complete(self) -> bool:
        with self._lock:
            return self._is_complete

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def cancel_event(self) -> threading.Event:
        """The cancellation token, for waits that must wake up on cancel."""
        return self._cancel

    def subscribe(self, callback: Callable[["ExecutionSession"], None]) -> None:
        """Register a callback invoked after every state change."""
        with self._lock:
            self._observers.append(callback)

    # -- caller side -----------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation. Safe from any thread, idempotent."""
        with self._lock:
            if self._cancel.is_set():
                return
            self._cancel.set()
        self._notify()

    def wait_for_cancel(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if the session got cancelled."""
        if timeout <= 0:
            return self._cancel.is_set()
        return self._cancel.wait(timeout)

    # -- executor side ---------------------------------------------------

    def set_current_step(self, index: int) -> None:
        with self._lock:
            if index < self._current_step_index:
                raise ValueError(
                    f"Step index cannot go backwards ({self._current_step_index} -> {index})"
                )
            self._current_step_index = index
        self._notify()

    def mark_complete(self) -> None:
        with self._lock:
            if self._is_complete or self._error is not None:
                return
            self._is_complete = True
        self._notify()

    def mark_failed(self, message: str) -> None:
        with self._lock:
            if self._error is not None or self._is_complete:
                return
            self._error = message
        self._notify()

    def _notify(self) -> None:
        with self._lock:
            observers = list(self._observers)
        for callback in observers:
            try:
                callback(self)
            except Exception:
                pass

    def __repr__(self) -> str:
        return (
            f"ExecutionSession(step={self.current_step_index}, cancelled={self.is_cancelled}, "
            f"complete={self.is_complete}, error={self.error!r})"
        )
