"""Host inventory, telemetry and maintenance tools."""

import logging
from typing import Any

from shellfleet.models import Host
from shellfleet.services.errors import ShellfleetError
from shellfleet.services.state import get_deps

logger = logging.getLogger(__name__)


def host_summary(host: Host) -> dict[str, Any]:
    """Host fields safe to return to a client. Credentials are omitted."""
    return {
        "id": host.id,
        "name": host.name,
        "address": host.address,
        "port": host.port,
        "user": host.user,
        "status": host.status.value,
        "last_check": host.last_check.isoformat() if host.last_check else None,
    }


async def list_hosts() -> list[dict[str, Any]]:
    """List managed hosts with their last known reachability."""
    return [host_summary(h) for h in await get_deps().hosts.list_all()]


async def host_status(host_id: int) -> dict[str, Any] | str:
    """Collect CPU, memory, disk, uptime, load and listening ports from a host.

    An unreachable host yields a snapshot with status 'error'.
    """
    try:
        snapshot = await get_deps().fleet.host_status(host_id)
    except ShellfleetError as e:
        return f"Error: {e}"
    return snapshot.to_dict()


async def fleet_status() -> list[dict[str, Any]]:
    """Collect telemetry from every host concurrently."""
    return [s.to_dict() for s in await get_deps().fleet.fleet_status()]


async def active_sessions(host_id: int) -> list[dict[str, Any]] | str:
    """List logged-in users on a host with their session counts."""
    try:
        return await get_deps().fleet.active_sessions(host_id)
    except ShellfleetError as e:
        return f"Error: {e}"


async def clean_logs(host_ids: list[int]) -> dict[str, Any] | str:
    """Truncate system logs and remove proxy and web server logs."""
    try:
        outcomes = await get_deps().fleet.clean_logs(host_ids)
    except ValueError as e:
        return f"Error: {e}"
    return {"results": [o.to_dict() for o in outcomes]}


async def restart_hosts(host_ids: list[int]) -> dict[str, Any] | str:
    """Reboot hosts. Returns once the reboot is issued."""
    try:
        outcomes = await get_deps().fleet.restart_hosts(host_ids)
    except ValueError as e:
        return f"Error: {e}"
    return {"results": [o.to_dict() for o in outcomes]}


async def stats() -> dict[str, Any]:
    """Host online/offline and account active/blocked/expired counts."""
    return await get_deps().fleet.stats()


async def recent_activity(limit: int = 20) -> list[dict[str, Any]] | str:
    """Most recent audit log entries, newest first."""
    if limit < 1:
        return f"Error: limit must be at least 1, got {limit}"
    return [e.to_dict() for e in get_deps().audit.recent(limit)]
