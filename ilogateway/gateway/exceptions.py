"""Exception hierarchy for the management-controller gateway."""


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class ConfigurationError(GatewayError):
    """No management-controller credentials are configured."""


class TransportError(GatewayError):
    """Connection, SSH or HTTP request to the controller failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(TransportError):
    """The controller rejected the credentials."""


class CommandError(TransportError):
    """A CLI command produced output on stderr."""

    def __init__(self, stderr: str, command: str = ""):
        self.stderr = stderr
        self.command = command
        super().__init__(stderr.strip() or f"command failed: {command}")


_RESET_MARKERS = ("econnreset", "connection reset")


def is_connection_reset(exc: BaseException) -> bool:
    """Return True if *exc* (or anything in its cause chain) is a connection reset."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionResetError):
            return True
        message = str(current).lower()
        if any(marker in message for marker in _RESET_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False
