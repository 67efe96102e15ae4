"""Health check endpoint for infrastructure status."""

from typing import Literal

from pydantic import BaseModel

from backend.app.api.ai import AIContainer


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "down"]
    checks: dict[str, Literal["ok", "down"]]


async def get_health(container: AIContainer) -> HealthStatus:
    """
    Check health of the orchestration dependencies.

    Checks:
    - Redis: Attempts to PING (skipped when caching is disabled)
    - Providers: At least one model backend is registered

    Returns:
        HealthStatus with overall status and individual check results
    """
    checks: dict[str, Literal["ok", "down"]] = {}

    if container.cache is not None:
        checks["redis"] = "ok" if await container.cache.ping() else "down"

    checks["providers"] = "ok" if container.service.registered_providers else "down"

    # Overall status - down if any check is down
    overall_status: Literal["ok", "down"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "down"
    )

    return HealthStatus(status=overall_status, checks=checks)
