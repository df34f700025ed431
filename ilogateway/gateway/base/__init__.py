"""Abstract base classes for controller transports."""

from ilogateway.gateway.base.transport import BaseTransport

__all__ = ["BaseTransport"]
