"""Sensor and fan access plus the fan write commands.

Reads come from the Redfish thermal resource, cached for a short TTL.
Writes go through the SSH command channel and are fire-and-forget: a write
succeeded if the controller wrote nothing to stderr.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import replace
from typing import Any

from loguru import logger

from ilogateway.gateway.exceptions import GatewayError
from ilogateway.gateway.models.thermal import FanReading, SensorReading
from ilogateway.gateway.parsing import parse_thermal_fans, parse_thermal_sensors
from ilogateway.gateway.transport.redfish import RedfishClient
from ilogateway.gateway.transport.ssh import SSHCommandChannel

MIN_PWM = 25
MAX_PWM = 255

UNLOCK_COMMAND = "fan p global unlock"
LOCK_COMMAND = "fan p {fan_id} lock {pwm}"
PID_LOW_LIMIT_COMMAND = "fan pid {pid_id} lo {value}"
FAN_INFO_COMMAND = "fan info"
PID_INFO_COMMAND = "fan info a"
GROUP_INFO_COMMAND = "fan info g"


def percent_to_pwm(percent: float) -> int:
    """Convert a duty cycle in percent to the controller's PWM value (25–255)."""
    _check_percent(percent)
    return max(MIN_PWM, int(math.floor(percent / 100 * MAX_PWM + 0.5)))


def _check_percent(value: float, name: str = "speed") -> None:
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")


class ThermalManager:
    """Thermal reads via Redfish, fan control via the SSH CLI."""

    def __init__(self, channel: SSHCommandChannel, redfish: RedfishClient, cache_ttl: float = 30.0):
        self._channel = channel
        self._redfish = redfish
        self.cache_ttl = cache_ttl

        self._lock = threading.Lock()
        self._thermal: dict[str, Any] | None = None
        self._fetched_at = 0.0

        self.sensor_overrides: dict[str, float] = {}
        self.fan_overrides: dict[str, float] = {}

    # ── reads ─────────────────────────────────────────────────────────

    def invalidate(self) -> None:
        """Force the next read to hit the controller."""
        with self._lock:
            self._thermal = None
            self._fetched_at = 0.0

    def thermal(self, live: bool = False) -> dict[str, Any]:
        """Return the Redfish thermal resource.

        Cached for ``cache_ttl`` seconds. If a refresh fails while an older
        copy exists, the older copy is returned and the error is logged.
        ``live=True`` always goes to the controller and never falls back.
        """
        if live:
            return self._redfish.get_thermal()

        with self._lock:
            cached, fetched_at = self._thermal, self._fetched_at
        if cached is not None and time.monotonic() - fetched_at <= self.cache_ttl:
            return cached

        try:
            data = self._redfish.get_thermal()
        except GatewayError as e:
            if cached is None:
                raise
            logger.warning(f"Failed to fetch thermal data, using cached copy: {e}")
            return cached

        with self._lock:
            self._thermal = data
            self._fetched_at = time.monotonic()
        return data

    def get_sensors(self, live: bool = False) -> list[SensorReading]:
        """Temperature sensors with display overrides applied (not for ``live``)."""
        sensors = parse_thermal_sensors(self.thermal(live=live))
        if live:
            return sensors
        return [
            replace(s, reading=self.sensor_overrides[s.name]) if s.name in self.sensor_overrides else s
            for s in sensors
        ]

    def get_fans(self, live: bool = False) -> list[FanReading]:
        """Fans with display overrides applied (not for ``live``)."""
        fans = parse_thermal_fans(self.thermal(live=live))
        if live:
            return fans
        return [replace(f, speed=self.fan_overrides[f.name]) if f.name in self.fan_overrides else f for f in fans]

    # ── display overrides ─────────────────────────────────────────────

    def override_sensor(self, name: str, value: float) -> None:
        self.sensor_overrides[name] = value

    def override_fan(self, name: str, speed: float) -> None:
        self.fan_overrides[name] = speed

    def reset_sensor_overrides(self) -> None:
        self.sensor_overrides = {}

    def reset_fan_overrides(self) -> None:
        self.fan_overrides = {}

    # ── writes ────────────────────────────────────────────────────────

    def unlock_fans(self) -> None:
        """Release manual fan control back to the controller."""
        self._channel.execute(UNLOCK_COMMAND)
        self.invalidate()
        logger.info("Fan control unlocked")

    def lock_fan(self, fan_id: int, percent: float) -> int:
        """Lock one fan at *percent*; returns the PWM value sent."""
        pwm = percent_to_pwm(percent)
        self._channel.execute(LOCK_COMMAND.format(fan_id=fan_id, pwm=pwm))
        self.invalidate()
        logger.info(f"Fan {fan_id} locked at {percent}% (pwm {pwm})")
        return pwm

    def set_all_fans(self, percent: float) -> None:
        """Unlock, then lock every present fan at *percent*.

        On failure the speed is recorded as a display override for every
        known fan and the error is re-raised.
        """
        _check_percent(percent)
        try:
            fan_count = len(self.get_fans(live=True))
            self.unlock_fans()
            for fan_id in range(fan_count):
                self.lock_fan(fan_id, percent)
        except GatewayError as e:
            logger.error(f"Failed to set all fans to {percent}%: {e}")
            try:
                fans = self.get_fans()
            except GatewayError:
                fans = []
            for fan in fans:
                self.fan_overrides[fan.name] = percent
            raise
        logger.info(f"All {fan_count} fans set to {percent}%")

    def set_pid_low_limit(self, pid_id: int, percent: float) -> None:
        """Set a PID bank's low limit; the controller expects percent * 100."""
        _check_percent(percent, name="low limit")
        value = int(round(percent * 100))
        self._channel.execute(PID_LOW_LIMIT_COMMAND.format(pid_id=pid_id, value=value))
        logger.info(f"PID {pid_id} low limit set to {percent}%")

    # ── raw dumps ─────────────────────────────────────────────────────

    def fan_info(self) -> str:
        return self._channel.execute(FAN_INFO_COMMAND)

    def pid_info(self) -> str:
        return self._channel.execute(PID_INFO_COMMAND)

    def group_info(self) -> str:
        return self._channel.execute(GROUP_INFO_COMMAND)
