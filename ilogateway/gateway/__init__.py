"""Gateway core: controller transports, parsers, the fetch scheduler and fan automation."""

from ilogateway.gateway.automation import AutomationLoop, select_fan_speed
from ilogateway.gateway.context import GatewayContext
from ilogateway.gateway.exceptions import (
    AuthenticationError,
    CommandError,
    ConfigurationError,
    GatewayError,
    TransportError,
)
from ilogateway.gateway.fetcher import DataFetcher
from ilogateway.gateway.thermal import ThermalManager
from ilogateway.gateway.transport import RedfishClient, SSHCommandChannel

__all__ = [
    "AutomationLoop",
    "select_fan_speed",
    "GatewayContext",
    "DataFetcher",
    "ThermalManager",
    "RedfishClient",
    "SSHCommandChannel",
    "GatewayError",
    "ConfigurationError",
    "TransportError",
    "AuthenticationError",
    "CommandError",
]
