"""Connection-limit and expiration enforcement tools."""

import logging
from typing import Any

from shellfleet.config import LimitCheckSettings
from shellfleet.services.state import get_deps

logger = logging.getLogger(__name__)


async def run_limit_check() -> dict[str, Any]:
    """Run one connection-limit check now.

    Returns ``skipped: true`` when a scheduled check is already running.
    """
    report = await get_deps().enforcer.run_cycle()
    return report.to_dict()


async def check_expired() -> dict[str, Any]:
    """Block every active account whose expiration date has passed."""
    outcomes = await get_deps().fleet.block_expired()
    return {
        "count": len(outcomes),
        "blocked": sum(o.success for o in outcomes),
        "results": [o.to_dict() for o in outcomes],
    }


async def get_limit_check() -> dict[str, Any]:
    """Show the connection-limit schedule and whether it is running."""
    deps = get_deps()
    settings = await deps.settings_store.get_limit_check()
    return {
        "enabled": settings.enabled,
        "interval_minutes": settings.interval_minutes,
        "running": deps.enforcer.running,
    }


async def configure_limit_check(
    enabled: bool | None = None,
    interval_minutes: int | None = None,
) -> dict[str, Any] | str:
    """Change the connection-limit schedule and apply it immediately.

    Args:
        enabled: Turn periodic checks on or off.
        interval_minutes: Minutes between checks, 1-59.
    """
    deps = get_deps()
    current = await deps.settings_store.get_limit_check()
    try:
        updated = LimitCheckSettings(
            enabled=current.enabled if enabled is None else enabled,
            interval_minutes=(
                current.interval_minutes if interval_minutes is None else interval_minutes
            ),
        )
    except ValueError as e:
        return f"Error: {e}"

    await deps.settings_store.set_limit_check(updated)
    await deps.enforcer.restart()
    logger.info(
        "Limit check reconfigured: enabled=%s, interval=%d",
        updated.enabled,
        updated.interval_minutes,
    )
    return await get_limit_check()
