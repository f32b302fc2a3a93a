"""
Status Logger - run history of the shortcut runner.

Keeps a bounded in-memory list of entries plus the current status line, and
can collect records from the ``logging`` hierarchy of the engine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List


@dataclass
class LogEntry:
    """A single line of run history."""
    timestamp: datetime
    message: str
    level: str = "INFO"

    def __str__(self) -> str:
        time_str = self.timestamp.strftime("%H:%M:%S")
        return f"[{time_str}] {self.level}: {self.message}"


class StatusLogger:
    """Status line and history for one or more shortcut runs."""

    def __init__(self, max_entries: int = 200):
        """
        Args:
            max_entries: Maximum number of entries kept in memory
        """
        self._log_entries: List[LogEntry] = []
        self._max_entries = max_entries
        self._current_status = "Ready"

    def log_info(self, message: str) -> None:
        self._add_entry(message, "INFO")

    def log_warning(self, message: str) -> None:
        self._add_entry(message, "WARNING")

    def log_error(self, message: str) -> None:
        self._add_entry(message, "ERROR")

    def update_status(self, status: str) -> None:
        """Replace the status line and record it in the history."""
        self._current_status = status
        self.log_info(status)

    def get_current_status(self) -> str:
        return self._current_status

    def get_recent_logs(self, count: int = 10) -> List[LogEntry]:
        return self._log_entries[-count:]

    def get_all_logs(self) -> List[LogEntry]:
        return self._log_entries.copy()

    def _add_entry(self, message: str, level: str) -> None:
        self._log_entries.append(LogEntry(timestamp=datetime.now(), message=message, level=level))
        if len(self._log_entries) > self._max_entries:
            self._log_entries = self._log_entries[-self._max_entries:]

    def export_logs_to_file(self, filepath: str) -> bool:
        """
        Write the history to a text file.

        Returns:
            bool: True if export was successful
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Shortcut Runner - Log Export\n")
                f.write(f"Generated: {datetime.now()}\n")
                f.write("=" * 50 + "\n\n")
                for entry in self._log_entries:
                    time_str = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
                    f.write(f"[{time_str}] {entry.level}: {entry.message}\n")
            return True
        except OSError as e:
            logging.getLogger(__name__).error("Failed to export logs: %s", e)
            return False

    def handler(self, level: int = logging.INFO) -> logging.Handler:
        """A logging handler that records into this history."""
        return _StatusLogHandler(self, level)


class _StatusLogHandler(logging.Handler):
    def __init__(self, status_logger: StatusLogger, level: int):
        super().__init__(level)
        self._status_logger = status_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        level = "ERROR" if record.levelno >= logging.ERROR else "WARNING" if record.levelno >= logging.WARNING else "INFO"
        self._status_logger._add_entry(message, level)
