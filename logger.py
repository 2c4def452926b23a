"""
Status Logger - keeps a short in-memory history of engine log records.

StatusLogger is a logging.Handler: engines log through the standard
`logging` module and the history/status view is fed automatically.
"""

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime
from typing import List, Optional
from dataclasses import dataclass


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class LogEntry:
    """A single log entry."""
    timestamp: datetime
    message: str
    level: str = "INFO"

    def __str__(self) -> str:
        time_str = self.timestamp.strftime("%H:%M:%S")
        return f"[{time_str}] {self.level}: {self.message}"


class StatusLogger(logging.Handler):
    """
    Manages status updates and maintains a log history.

    The most recent INFO-or-higher message becomes the current status.
    """

    def __init__(self, max_entries: int = 100, level: int = logging.INFO):
        """
        Initialize the logger.

        Args:
            max_entries: Maximum number of log entries to keep in memory
            level: Minimum level of records kept in the history
        """
        super().__init__(level=level)
        self._log_entries: List[LogEntry] = []
        self._max_entries = max_entries
        self._current_status = "Ready"
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self._add_entry(message, record.levelname, datetime.fromtimestamp(record.created))

    def update_status(self, status: str) -> None:
        """Set the current status and record it in the history."""
        self._add_entry(status, "INFO", datetime.now())

    def get_current_status(self) -> str:
        """Returns the current status message."""
        with self._entries_lock:
            return self._current_status

    def get_recent_logs(self, count: int = 10) -> List[LogEntry]:
        """
        Get the most recent log entries.

        Args:
            count: Number of recent entries to return

        Returns:
            List of recent log entries
        """
        with self._entries_lock:
            return self._log_entries[-count:]

    def get_all_logs(self) -> List[LogEntry]:
        """Returns all log entries."""
        with self._entries_lock:
            return self._log_entries.copy()

    def clear_logs(self) -> None:
        """Clear all log entries."""
        with self._entries_lock:
            self._log_entries.clear()
        self.update_status("Log history cleared")

    def _add_entry(self, message: str, level: str, timestamp: datetime) -> None:
        entry = LogEntry(timestamp=timestamp, message=message, level=level)

        with self._entries_lock:
            self._log_entries.append(entry)
            self._current_status = message

            # Trim old entries if we exceed max
            if len(self._log_entries) > self._max_entries:
                self._log_entries = self._log_entries[-self._max_entries:]

    def export_logs_to_file(self, filepath: str) -> bool:
        """
        Export all logs to a text file.

        Args:
            filepath: Path where the log file should be saved

        Returns:
            bool: True if export was successful
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Multi Auto Clicker - Log Export\n")
                f.write(f"Generated: {datetime.now()}\n")
                f.write("=" * 50 + "\n\n")

                for entry in self.get_all_logs():
                    time_str = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
                    f.write(f"[{time_str}] {entry.level}: {entry.message}\n")

            return True
        except OSError as e:
            logging.getLogger(__name__).error("Failed to export logs: %s", e)
            return False


def configure_logging(level: int = logging.INFO, status_logger: Optional[StatusLogger] = None) -> StatusLogger:
    """Install a console handler and a StatusLogger on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    status = status_logger or StatusLogger()
    root.addHandler(status)
    return status
