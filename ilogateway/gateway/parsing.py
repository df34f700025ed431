"""Parsers for controller CLI text and Redfish thermal JSON.

All functions here are pure. A parser that cannot find its minimum fields
returns None (single records) or skips the row (tables and lists); nothing
raises on malformed device output.

The CLI speaks SMASH-CLP style ``key=value`` properties::

    /system1/firmware1
      Targets
      Properties
        version=J02
        date=05/24/2019
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

from ilogateway.gateway.models.logs import LogSeverity, SystemLogRecord
from ilogateway.gateway.models.system import UNKNOWN, PowerSnapshot, SystemIdentity
from ilogateway.gateway.models.thermal import ActuatorControllerEntry, FanReading, SensorReading

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_QUOTES = "\"'"

PID_HEADER_MARKERS = ("No.", "prev_drive", "output")
PID_MIN_FIELDS = 8

POWER_KEYS = {
    "power_regulation": "oemhp_powerreg=",
    "power_cap": "oemhp_pwrcap=",
    "present_power": "oemhp_PresentPower=",
    "average_power": "oemhp_AvgPower=",
    "max_power": "oemhp_MaxPower=",
    "min_power": "oemhp_MinPower=",
    "power_supply_capacity": "oemhp_powersupplycapacity=",
    "server_max_power": "oemhp_servermaxpower=",
    "server_min_power": "oemhp_serverminpower=",
    "warning_type": "warning_type=",
    "warning_threshold": "warning_threshold=",
    "warning_duration": "warning_duration=",
    "power_micro_version": "oemhp_power_micro_ver=",
    "auto_power_restore": "oemhp_auto_pwr=",
}
_POWER_TEXT_FIELDS = {"power_regulation", "warning_type", "power_micro_version", "auto_power_restore"}


# ── property extraction ───────────────────────────────────────────────


def _strip_quotes(value: str) -> str:
    if value[:1] in _QUOTES:
        value = value[1:]
    if value[-1:] in _QUOTES:
        value = value[:-1]
    return value


def parse_property(output: str, key: str) -> str | None:
    """Return the value of the first line starting with *key* (e.g. ``"name="``).

    The value is trimmed and one pair of surrounding quotes is removed.
    """
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(key):
            return _strip_quotes(line[len(key) :].strip())
    return None


def parse_numeric_property(output: str, key: str, default: float = 0.0) -> float:
    """Return the first number inside the value of *key*.

    ``oemhp_PresentPower=120 Watts`` yields ``120.0``.
    """
    value = parse_property(output, key)
    if value is None:
        return default
    match = _NUMBER_RE.search(value)
    return float(match.group(0)) if match else default


def parse_properties(output: str) -> dict[str, str]:
    """Collect every ``key=value`` line into a dict (first occurrence wins)."""
    props: dict[str, str] = {}
    for line in output.splitlines():
        line = line.strip()
        if "=" not in line or line.startswith("="):
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if " " in key or key in props:
            continue
        props[key] = _strip_quotes(value.strip())
    return props


# ── record enumeration ────────────────────────────────────────────────


def extract_record_numbers(output: str, prefix: str = "record") -> list[int]:
    """Return the ``<prefix><digits>`` numbers found at line start, in emitted order."""
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)")
    numbers: list[int] = []
    for line in output.splitlines():
        match = pattern.match(line.strip())
        if match:
            numbers.append(int(match.group(1)))
    return numbers


# ── tabular extraction ────────────────────────────────────────────────


def to_int(value: str, default: int | None = None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Float conversion with *default* for missing, malformed or NaN values."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(result) else result


def _is_separator(line: str) -> bool:
    return line.startswith("--") or "===" in line


def find_header(output: str, header_markers: Iterable[str]) -> int:
    """Index of the first line containing every marker, or -1."""
    markers = tuple(header_markers)
    for i, line in enumerate(output.splitlines()):
        if all(marker in line for marker in markers):
            return i
    return -1


def parse_table(output: str, header_markers: Iterable[str], min_fields: int = 1) -> list[list[str]]:
    """Split the rows below a header line into whitespace-delimited fields.

    The header is the first line containing every string in *header_markers*.
    Blank lines, separator lines and rows with fewer than *min_fields* fields
    are skipped. Returns [] when no header is found.
    """
    header = find_header(output, header_markers)
    if header == -1:
        return []

    rows: list[list[str]] = []
    for line in output.splitlines()[header + 1 :]:
        line = line.strip()
        if not line or _is_separator(line):
            continue
        fields = line.split()
        if len(fields) < min_fields:
            continue
        rows.append(fields)
    return rows


# ── domain parsers ────────────────────────────────────────────────────


def parse_system_identity(system_output: str, controller_fw_output: str, host_fw_output: str) -> SystemIdentity | None:
    """Build a SystemIdentity from ``show system1``, ``show /map1/firmware1``
    and ``show system1/firmware1`` output.

    Returns None when ``show system1`` carries neither model nor serial number.
    """
    model = parse_property(system_output, "name=")
    serial = parse_property(system_output, "number=")
    if not model and not serial:
        return None

    return SystemIdentity(
        model=model or UNKNOWN,
        serial_number=serial or UNKNOWN,
        controller_generation=parse_property(controller_fw_output, "name=") or UNKNOWN,
        controller_firmware_version=parse_property(controller_fw_output, "version=") or "",
        controller_firmware_date=parse_property(controller_fw_output, "date=") or "",
        host_firmware_version=parse_property(host_fw_output, "version=") or "",
        host_firmware_date=parse_property(host_fw_output, "date=") or "",
    )


def parse_power_snapshot(output: str) -> PowerSnapshot | None:
    """Parse ``show /system1/oemhp_power1`` output; None if no power key is present."""
    if not any(parse_property(output, key) is not None for key in POWER_KEYS.values()):
        return None

    values: dict[str, Any] = {}
    for field_name, key in POWER_KEYS.items():
        if field_name in _POWER_TEXT_FIELDS:
            values[field_name] = parse_property(output, key) or ""
        else:
            values[field_name] = parse_numeric_property(output, key)
    return PowerSnapshot(**values)


def parse_log_record(output: str, record_number: int) -> SystemLogRecord | None:
    """Parse ``show system1/log1/record<N>``.

    ``number=`` overrides *record_number* when present. date, time and
    description are required.
    """
    number = to_int(parse_property(output, "number=") or "", record_number)
    severity = LogSeverity.parse(parse_property(output, "severity=") or "")
    date = parse_property(output, "date=")
    time_ = parse_property(output, "time=")
    description = parse_property(output, "description=")

    if not (date and time_ and description):
        return None
    return SystemLogRecord(
        number=number if number is not None else record_number,
        severity=severity,
        date=date,
        time=time_,
        description=description,
    )


def parse_pid_table(output: str) -> list[ActuatorControllerEntry]:
    """Parse the PID table from ``fan info a``.

    Expected format::

        No.  state   prev_drive  setpoint  reading  error  output  lo  hi
        ---  ------  ----------  --------  -------  -----  ------  --  --
        0    Active  32          45.00     38.00    -7.00  36.00   16  100
    """
    entries: list[ActuatorControllerEntry] = []
    for fields in parse_table(output, PID_HEADER_MARKERS, min_fields=PID_MIN_FIELDS):
        number = to_int(fields[0])
        if number is None:
            continue
        entries.append(
            ActuatorControllerEntry(
                number=number,
                is_active=fields[1] == "Active",
                set_point=to_float(fields[3]),
                current_reading=to_float(fields[4]),
                output=to_float(fields[6]),
            )
        )
    return entries


def _status(item: dict[str, Any]) -> dict[str, Any]:
    status = item.get("Status")
    return status if isinstance(status, dict) else {}


def parse_thermal_sensors(thermal: dict[str, Any]) -> list[SensorReading]:
    """Enabled temperature sensors with a numeric ``ReadingCelsius``."""
    sensors: list[SensorReading] = []
    for temp in thermal.get("Temperatures") or []:
        if not isinstance(temp, dict):
            continue
        status = _status(temp)
        reading = temp.get("ReadingCelsius")
        if status.get("State") != "Enabled" or not isinstance(reading, (int, float)) or isinstance(reading, bool):
            continue
        critical = temp.get("UpperThresholdCritical")
        fatal = temp.get("UpperThresholdFatal")
        sensors.append(
            SensorReading(
                name=str(temp.get("Name", "")),
                category="temperature",
                status=status.get("Health") or "Unknown",
                reading=float(reading),
                context=temp.get("PhysicalContext"),
                critical=float(critical) if isinstance(critical, (int, float)) else None,
                fatal=float(fatal) if isinstance(fatal, (int, float)) else None,
            )
        )
    return sensors


def parse_thermal_fans(thermal: dict[str, Any]) -> list[FanReading]:
    """Fans whose state is not ``Absent``."""
    fans: list[FanReading] = []
    for fan in thermal.get("Fans") or []:
        if not isinstance(fan, dict):
            continue
        status = _status(fan)
        if status.get("State") == "Absent":
            continue
        fans.append(
            FanReading(
                name=str(fan.get("FanName") or fan.get("Name") or ""),
                speed=to_float(fan.get("CurrentReading")),
                status=status.get("State") or "",
                health=status.get("Health"),
            )
        )
    return fans
