"""Audit event data model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class AuditEvent:
    """One appended entry in the operation log."""

    operation: str
    detail: str
    host_id: int | None = None
    account_id: int | None = None
    outcome: str = "success"
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "detail": self.detail,
            "host_id": self.host_id,
            "account_id": self.account_id,
            "outcome": self.outcome,
            "created_at": self.created_at.isoformat(),
        }
