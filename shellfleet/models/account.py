"""Shell account data models."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class AccountStatus(str, Enum):
    """Lifecycle state of a provisioned account."""

    ACTIVE = "active"
    BLOCKED = "blocked"


@dataclass
class Account:
    """A shell login provisioned on one host.

    ``connection_limit`` of ``None`` means unlimited concurrent sessions.
    """

    id: int
    host_id: int
    username: str
    password: str
    expiration_date: date
    connection_limit: int | None = None
    status: AccountStatus = AccountStatus.ACTIVE
    blocked_reason: str | None = None

    @property
    def has_limit(self) -> bool:
        return self.connection_limit is not None

    def is_expired(self, today: date) -> bool:
        """True once the expiration date lies strictly before ``today``."""
        return self.expiration_date < today
