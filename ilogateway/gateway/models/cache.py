"""Per-domain cache slots with last-known-good semantics."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Domain(str, Enum):
    """Independently fetched telemetry categories, in fetch order."""

    IDENTITY = "identity"
    POWER = "power"
    LOGS = "logs"
    PID = "pid"


@dataclass
class CacheEntry(Generic[T]):
    """``data`` is replaced only on success; a failure keeps the previous data."""

    data: T | None = None
    error: str | None = None
    last_updated: datetime = EPOCH

    def succeed(self, data: T) -> None:
        self.data = data
        self.error = None

    def fail(self, error: str) -> None:
        self.error = error

    def touch(self, when: datetime) -> None:
        """Advance ``last_updated``; it never moves backwards."""
        if when > self.last_updated:
            self.last_updated = when

    def age(self, now: datetime) -> float:
        return (now - self.last_updated).total_seconds()

    def snapshot(self) -> "CacheEntry[T]":
        return replace(self, data=copy.deepcopy(self.data))


class DomainCache:
    """One :class:`CacheEntry` per :class:`Domain`, guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[Domain, CacheEntry[Any]] = {domain: CacheEntry() for domain in Domain}

    def get(self, domain: Domain) -> CacheEntry[Any]:
        """Return a copy of the entry for *domain*."""
        with self._lock:
            return self._entries[domain].snapshot()

    def succeed(self, domain: Domain, data: Any) -> None:
        with self._lock:
            self._entries[domain].succeed(data)

    def fail(self, domain: Domain, error: str) -> None:
        with self._lock:
            self._entries[domain].fail(error)

    def touch_all(self, when: datetime) -> None:
        with self._lock:
            for entry in self._entries.values():
                entry.touch(when)

    def last_updated(self) -> datetime:
        with self._lock:
            return max(entry.last_updated for entry in self._entries.values())
