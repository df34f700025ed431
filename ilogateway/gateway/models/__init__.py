"""Data models for the gateway."""

from ilogateway.gateway.models.cache import CacheEntry, Domain, DomainCache
from ilogateway.gateway.models.logs import LogRecordWindow, LogSeverity, SystemLogRecord, sort_records_newest_first
from ilogateway.gateway.models.system import PowerSnapshot, SystemIdentity
from ilogateway.gateway.models.thermal import ActuatorControllerEntry, FanReading, PidEntry, SensorReading

__all__ = [
    "CacheEntry",
    "Domain",
    "DomainCache",
    "LogRecordWindow",
    "LogSeverity",
    "SystemLogRecord",
    "sort_records_newest_first",
    "PowerSnapshot",
    "SystemIdentity",
    "ActuatorControllerEntry",
    "PidEntry",
    "FanReading",
    "SensorReading",
]
