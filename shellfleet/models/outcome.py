"""Results of multi-host and enforcement operations."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class HostOutcome:
    """Result from a single host in a batch operation."""

    host_id: int
    host_name: str
    success: bool
    error: str | None = None
    account_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BlockedAccount:
    """An account blocked by an enforcement cycle."""

    host_name: str
    username: str
    connections: int
    limit: int


@dataclass
class ScanReport:
    """Summary of one enforcement cycle."""

    skipped: bool = False
    checked: int = 0
    blocked: list[BlockedAccount] = field(default_factory=list)
    failed_hosts: dict[str, str] = field(default_factory=dict)
    missing_hosts: list[int] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
