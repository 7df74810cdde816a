"""Host telemetry collection.

Each probe is parsed in isolation: a probe that fails or prints something
unexpected leaves its fields at their defaults and never aborts the snapshot.
"""

import logging
import math
from typing import TYPE_CHECKING, Any

from shellfleet.models import Host, SystemSnapshot
from shellfleet.services import commands
from shellfleet.services.errors import ExecutionError, ShellfleetError
from shellfleet.services.session import scoped_session

if TYPE_CHECKING:
    from shellfleet.protocols import SessionOpener

logger = logging.getLogger(__name__)


def _to_float(value: str) -> float:
    """Parse a number, tolerating a trailing '%'. Returns 0.0 on failure."""
    try:
        number = float(value.strip().rstrip("%"))
    except (ValueError, AttributeError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_cpu(output: str) -> float:
    """Parse CPU utilization percentage, e.g. '3.1'."""
    lines = output.strip().splitlines()
    return _to_float(lines[0]) if lines else 0.0


def parse_ram(output: str) -> tuple[float, float, float]:
    """Parse 'usage% total_mb used_mb'."""
    parts = output.strip().split()
    values = [_to_float(p) for p in parts[:3]]
    values += [0.0] * (3 - len(values))
    return values[0], values[1], values[2]


def parse_disk(output: str) -> tuple[float, str, str]:
    """Parse 'use% size used' as printed by df -h, e.g. '42% 20G 8.1G'."""
    parts = output.strip().split()
    usage = _to_float(parts[0]) if parts else 0.0
    total = parts[1] if len(parts) > 1 else "0G"
    used = parts[2] if len(parts) > 2 else "0G"
    return usage, total, used


def parse_uptime(output: str) -> str:
    """Strip the leading 'up ' from uptime -p."""
    text = output.strip()
    return text[3:] if text.startswith("up ") else text


def parse_ports(output: str) -> list[int]:
    """Parse one port per line; non-numeric lines are skipped."""
    ports = set()
    for line in output.split("\n"):
        line = line.strip()
        if line.isdigit():
            ports.add(int(line))
    return sorted(ports)


def parse_load(output: str) -> tuple[float, float, float]:
    """Parse the first three fields of /proc/loadavg."""
    parts = output.strip().split()
    if len(parts) < 3:
        return (0.0, 0.0, 0.0)
    return (_to_float(parts[0]), _to_float(parts[1]), _to_float(parts[2]))


class TelemetryCollector:
    """Builds a SystemSnapshot from read-only probes over one session."""

    def __init__(self, sessions: "SessionOpener") -> None:
        self._sessions = sessions

    async def _probe(self, session: Any, host: Host, command: str) -> str:
        """Run one probe; a transport error yields empty output."""
        try:
            result = await self._sessions.exec(session, command)
        except ExecutionError as e:
            logger.warning("Probe failed on %s: %s", host.name, e)
            return ""
        return result.stdout

    async def get_system_info(self, host: Host) -> SystemSnapshot:
        """Collect CPU, RAM, disk, uptime, listening ports and load average.

        Never raises: a connection failure is returned as a snapshot with
        ``status="error"``.
        """
        snapshot = SystemSnapshot(host_id=host.id, host_name=host.name)

        try:
            async with scoped_session(self._sessions, host) as session:
                snapshot.cpu_usage = parse_cpu(
                    await self._probe(session, host, commands.CPU_PROBE)
                )
                snapshot.ram_usage, snapshot.ram_total, snapshot.ram_used = parse_ram(
                    await self._probe(session, host, commands.RAM_PROBE)
                )
                snapshot.disk_usage, snapshot.disk_total, snapshot.disk_used = (
                    parse_disk(await self._probe(session, host, commands.DISK_PROBE))
                )
                snapshot.uptime = parse_uptime(
                    await self._probe(session, host, commands.UPTIME_PROBE)
                )
                snapshot.ports = parse_ports(
                    await self._probe(session, host, commands.PORTS_PROBE)
                )
                snapshot.load_average = parse_load(
                    await self._probe(session, host, commands.LOAD_PROBE)
                )
        except ShellfleetError as e:
            logger.error("Error collecting system info from %s: %s", host.name, e)
            return SystemSnapshot(
                host_id=host.id,
                host_name=host.name,
                status="error",
                error=str(e),
            )

        return snapshot
