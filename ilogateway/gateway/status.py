"""Boundary contract for the request-routing layer.

The router reads cache entries through these helpers so that "not yet
fetched", "fetch failed" and "not configured" map to distinct responses.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from ilogateway.gateway.exceptions import ConfigurationError, GatewayError
from ilogateway.gateway.models.cache import CacheEntry, Domain

if TYPE_CHECKING:
    from ilogateway.gateway.context import GatewayContext

INITIALIZING_GRACE = 30.0


class DomainState(str, Enum):
    AVAILABLE = "available"
    STALE = "stale"
    FAILED = "failed"
    INITIALIZING = "initializing"
    UNAVAILABLE = "unavailable"
    NOT_RUNNING = "not_running"
    NOT_CONFIGURED = "not_configured"


_RESPONSES: dict[DomainState, tuple[int, str]] = {
    DomainState.AVAILABLE: (200, "{label} available"),
    DomainState.STALE: (200, "{label} shown from last successful fetch"),
    DomainState.FAILED: (502, "Failed to get {label}"),
    DomainState.INITIALIZING: (503, "{label} is being fetched. Please try again in a moment."),
    DomainState.UNAVAILABLE: (503, "No {label} available. Please check the controller connection."),
    DomainState.NOT_RUNNING: (503, "{label} service is not running. Please check the controller configuration."),
    DomainState.NOT_CONFIGURED: (409, "Management controller not configured. Please set it up in Settings."),
}

_LABELS = {
    Domain.IDENTITY: "System information",
    Domain.POWER: "Power information",
    Domain.LOGS: "System logs",
    Domain.PID: "PID data",
}


def classify_entry(
    entry: CacheEntry[Any],
    now: datetime | None = None,
    running: bool = True,
    configured: bool = True,
    grace: float = INITIALIZING_GRACE,
) -> DomainState:
    """Classify a cache entry for the router.

    An entry without data is INITIALIZING while ``last_updated`` is younger
    than *grace* seconds and UNAVAILABLE afterwards.
    """
    if not configured:
        return DomainState.NOT_CONFIGURED
    if entry.data is not None:
        return DomainState.STALE if entry.error else DomainState.AVAILABLE
    if entry.error:
        return DomainState.FAILED
    if not running:
        return DomainState.NOT_RUNNING
    now = now or datetime.now(timezone.utc)
    return DomainState.INITIALIZING if entry.age(now) < grace else DomainState.UNAVAILABLE


def describe(domain: Domain, state: DomainState, error: str | None = None) -> tuple[int, str]:
    """HTTP status code and message for *state*."""
    code, template = _RESPONSES[state]
    message = template.format(label=_LABELS[domain])
    if error and state in (DomainState.FAILED, DomainState.STALE):
        message = f"{message}: {error}"
    return code, message


def domain_response(ctx: "GatewayContext", domain: Domain, now: datetime | None = None) -> tuple[int, dict[str, Any]]:
    """Status code and JSON-ready body for one domain read."""
    entry = ctx.fetcher.get(domain)
    state = classify_entry(
        entry,
        now=now,
        running=ctx.fetcher.is_running(),
        configured=ctx.is_configured(),
        grace=ctx.settings.initializing_grace,
    )
    code, message = describe(domain, state, entry.error)
    body: dict[str, Any] = {
        "state": state.value,
        "message": message,
        "lastUpdated": entry.last_updated.isoformat(),
    }
    if entry.data is not None:
        body["data"] = entry.data
    if entry.error:
        body["error"] = entry.error
    return code, body


def gateway_status(ctx: "GatewayContext") -> dict[str, Any]:
    """Overall status summary: configuration, background tasks, per-domain state."""
    domains: dict[str, Any] = {}
    for domain in Domain:
        entry = ctx.fetcher.get(domain)
        item: dict[str, Any] = {"available": entry.data is not None, "error": entry.error}
        if isinstance(entry.data, list):
            item["count"] = len(entry.data)
        domains[domain.value] = item

    return {
        "configured": ctx.is_configured(),
        "fetcherRunning": ctx.fetcher.is_running(),
        "automationRunning": ctx.automation.is_running(),
        "lastDataUpdate": ctx.fetcher.cache.last_updated().isoformat(),
        "dataStatus": domains,
    }


def write_result(operation: Callable[[], Any], success_message: str) -> tuple[int, dict[str, Any]]:
    """Run a fire-and-forget write and build the router response."""
    try:
        operation()
    except ValueError as e:
        return 400, {"success": False, "error": str(e)}
    except ConfigurationError as e:
        return 409, {"success": False, "error": str(e)}
    except GatewayError as e:
        logger.error(f"Write operation failed: {e}")
        return 500, {"success": False, "error": str(e)}
    return 200, {"success": True, "message": success_message}
