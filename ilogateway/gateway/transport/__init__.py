"""Controller transports: SSH command channel and Redfish client."""

from ilogateway.gateway.transport.redfish import RedfishClient
from ilogateway.gateway.transport.ssh import SSHCommandChannel

__all__ = ["SSHCommandChannel", "RedfishClient"]
