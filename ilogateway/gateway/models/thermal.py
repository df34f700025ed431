"""Thermal data models: temperature sensors, fans and the controller PID bank."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SensorReading:
    """One temperature sensor reading from the status API."""

    name: str
    category: str = "temperature"
    status: str = "Unknown"
    reading: float = 0.0
    context: str | None = None
    critical: float | None = None
    fatal: float | None = None


@dataclass
class FanReading:
    """Current state of one fan."""

    name: str
    speed: float = 0.0
    status: str = ""
    health: str | None = None


@dataclass
class ActuatorControllerEntry:
    """One entry of the controller's internal PID bank (observed, read-only)."""

    number: int
    is_active: bool = False
    set_point: float = 0.0
    current_reading: float = 0.0
    output: float = 0.0


PidEntry = ActuatorControllerEntry
