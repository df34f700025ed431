"""Integrated Management Log records and the incremental fetch window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable

DEFAULT_WINDOW_SIZE = 5

_DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%b %d %Y", "%d/%m/%Y")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


class LogSeverity(str, Enum):
    CAUTION = "Caution"
    CRITICAL = "Critical"
    INFORMATIONAL = "Informational"
    OK = "OK"

    @classmethod
    def parse(cls, value: str) -> "LogSeverity":
        """Map device severity text to a member, defaulting to Informational."""
        for member in cls:
            if member.value == value.strip():
                return member
        return cls.INFORMATIONAL


@dataclass(frozen=True)
class SystemLogRecord:
    """One log record. Identified by its sequence number."""

    number: int
    severity: LogSeverity
    date: str
    time: str
    description: str

    def timestamp(self) -> datetime | None:
        """Parse ``date`` and ``time``; None when the format is not recognised."""
        for date_fmt in _DATE_FORMATS:
            for time_fmt in _TIME_FORMATS:
                try:
                    return datetime.strptime(f"{self.date.strip()} {self.time.strip()}", f"{date_fmt} {time_fmt}")
                except ValueError:
                    continue
        return None


def sort_records_newest_first(records: Iterable[SystemLogRecord]) -> list[SystemLogRecord]:
    """Sort by date/time descending.

    Records whose timestamp does not parse rank below every dated record and
    keep their relative order.
    """
    indexed = list(records)
    dated = [r for r in indexed if r.timestamp() is not None]
    undated = [r for r in indexed if r.timestamp() is None]
    dated.sort(key=lambda r: r.timestamp(), reverse=True)  # type: ignore[arg-type, return-value]
    return dated + undated


class LogRecordWindow:
    """The most recent record numbers on the device plus their cached records.

    The record map never holds a number outside :attr:`numbers`; moving the
    window with :meth:`shift` evicts everything that fell out of it.
    """

    def __init__(self, size: int = DEFAULT_WINDOW_SIZE):
        self.size = size
        self.numbers: list[int] = []
        self._records: dict[int, SystemLogRecord] = {}

    def select(self, enumerated: Iterable[int]) -> list[int]:
        """Pick the last ``size`` distinct numbers in emitted order."""
        unique: list[int] = []
        seen: set[int] = set()
        for number in enumerated:
            if number not in seen:
                seen.add(number)
                unique.append(number)
        return unique[-self.size :]

    def is_unchanged(self, recent: list[int]) -> bool:
        """True if *recent* is the current window and every record is cached."""
        return set(recent) == set(self.numbers) and all(n in self._records for n in recent)

    def missing(self, recent: list[int]) -> list[int]:
        """Numbers in *recent* that have no cached record."""
        return [n for n in recent if n not in self._records]

    def shift(self, recent: list[int]) -> list[int]:
        """Move the window to *recent*; return the evicted numbers."""
        keep = set(recent)
        evicted = sorted(n for n in self._records if n not in keep)
        for number in evicted:
            del self._records[number]
        self.numbers = list(recent)
        return evicted

    def store(self, number: int, record: SystemLogRecord) -> bool:
        """Cache *record* under *number* if the number is inside the window."""
        if number not in self.numbers:
            return False
        self._records[number] = record
        return True

    def get(self, number: int) -> SystemLogRecord | None:
        return self._records.get(number)

    def records(self) -> list[SystemLogRecord]:
        """Cached records in window order."""
        return [self._records[n] for n in self.numbers if n in self._records]

    def cached_numbers(self) -> list[int]:
        return sorted(self._records)

    def clear(self) -> None:
        self.numbers = []
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
