"""System identity and power data models."""

from __future__ import annotations

from dataclasses import dataclass

UNKNOWN = "Unknown"


def _version_with_date(version: str, date: str) -> str:
    if version and date:
        return f"{version} ({date})"
    return version or date or UNKNOWN


@dataclass
class SystemIdentity:
    """Server model, serial number and firmware versions."""

    model: str = UNKNOWN
    serial_number: str = UNKNOWN
    controller_generation: str = UNKNOWN
    controller_firmware_version: str = ""
    controller_firmware_date: str = ""
    host_firmware_version: str = ""
    host_firmware_date: str = ""

    @property
    def controller_firmware(self) -> str:
        """Controller firmware as ``VERSION (DATE)``."""
        return _version_with_date(self.controller_firmware_version, self.controller_firmware_date)

    @property
    def host_firmware(self) -> str:
        """System ROM as ``VERSION (DATE)``."""
        return _version_with_date(self.host_firmware_version, self.host_firmware_date)


@dataclass
class PowerSnapshot:
    """Power regulation and consumption values, all watts unless noted."""

    power_regulation: str = ""
    power_cap: float = 0.0
    present_power: float = 0.0
    average_power: float = 0.0
    max_power: float = 0.0
    min_power: float = 0.0
    power_supply_capacity: float = 0.0
    server_max_power: float = 0.0
    server_min_power: float = 0.0
    warning_type: str = ""
    warning_threshold: float = 0.0
    warning_duration: float = 0.0
    power_micro_version: str = ""
    auto_power_restore: str = ""
