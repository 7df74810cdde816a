"""Host telemetry snapshot."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class SystemSnapshot:
    """Defensively parsed telemetry for one host at one point in time.

    ``status`` is ``"online"`` when a session was opened, ``"error"`` when
    the connection failed (``error`` then carries the reason).
    """

    host_id: int
    host_name: str
    status: str = "online"
    cpu_usage: float = 0.0
    ram_usage: float = 0.0
    ram_total: float = 0.0
    ram_used: float = 0.0
    disk_usage: float = 0.0
    disk_total: str = "0G"
    disk_used: str = "0G"
    uptime: str = ""
    ports: list[int] = field(default_factory=list)
    load_average: tuple[float, float, float] = (0.0, 0.0, 0.0)
    error: str | None = None
    collected_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON responses."""
        data = asdict(self)
        data["load_average"] = list(self.load_average)
        data["collected_at"] = self.collected_at.isoformat()
        return data
