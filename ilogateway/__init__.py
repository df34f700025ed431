"""iLO telemetry and fan-control gateway.

Talks to a server's management controller over its SSH command-line
interface and its Redfish thermal endpoint, keeps a per-domain cache of
identity, power, log and PID data, and can drive the fans from live
temperature readings.
"""

__version__ = "0.0.1"

import os
import sys
from typing import Any, Callable, Dict

from loguru import logger as glogger

glogger.disable(__name__)


def _loguru_skiplog_filter(record: dict) -> bool:  # type: ignore[type-arg]
    """Filter function to hide records with ``extra['skiplog']`` set."""
    return not record.get("extra", {}).get("skiplog", False)


def configure_logging(
    loguru_filter: Callable[[Dict[str, Any]], bool] = _loguru_skiplog_filter,
) -> None:
    """Configure a default ``loguru`` sink with a convenient format and filter."""
    os.environ["LOGURU_LEVEL"] = os.getenv("LOGURU_LEVEL", "DEBUG")
    glogger.remove()
    logger_fmt: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    glogger.add(sys.stderr, level=os.getenv("LOGURU_LEVEL"), format=logger_fmt, filter=loguru_filter)  # type: ignore[arg-type]
    glogger.configure(extra={"skiplog": False})
    glogger.enable(__name__)


from ilogateway.gateway.automation import AutomationLoop  # noqa: E402
from ilogateway.gateway.config import AutomationThresholds, GatewaySettings, ManagementCredentials  # noqa: E402
from ilogateway.gateway.context import GatewayContext  # noqa: E402
from ilogateway.gateway.exceptions import (  # noqa: E402
    AuthenticationError,
    CommandError,
    ConfigurationError,
    GatewayError,
    TransportError,
)
from ilogateway.gateway.fetcher import DataFetcher  # noqa: E402

__all__ = [
    "glogger",
    "configure_logging",
    "AutomationLoop",
    "AutomationThresholds",
    "DataFetcher",
    "GatewayContext",
    "GatewaySettings",
    "ManagementCredentials",
    "GatewayError",
    "ConfigurationError",
    "TransportError",
    "AuthenticationError",
    "CommandError",
]
