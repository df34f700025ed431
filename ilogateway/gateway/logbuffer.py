"""In-memory ring buffer of recent log lines, exposed for debugging."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any

from loguru import logger

PACKAGE = "ilogateway"
MAX_ENTRIES = 200

_LEVELS = {"WARNING": "warn", "ERROR": "error", "CRITICAL": "error"}


class RecentLogBuffer:
    """A loguru sink keeping the last *max_entries* records."""

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self._entries: deque[dict[str, str]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._sink_id: int | None = None

    def write(self, message: Any) -> None:
        record = message.record
        entry = {
            "timestamp": record["time"].isoformat(),
            "level": _LEVELS.get(record["level"].name, "info"),
            "message": record["message"],
        }
        with self._lock:
            self._entries.append(entry)

    def install(self, level: str = "INFO") -> int:
        """Register this buffer as a loguru sink; returns the sink id.

        Also enables the package logger, which is disabled on import.
        """
        logger.enable(PACKAGE)
        if self._sink_id is None:
            self._sink_id = logger.add(self.write, level=level, format="{message}")
        return self._sink_id

    def uninstall(self) -> None:
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None

    def entries(self, limit: int | None = None) -> list[dict[str, str]]:
        with self._lock:
            items = list(self._entries)
        return items[-limit:] if limit else items

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
