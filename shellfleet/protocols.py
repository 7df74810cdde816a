"""Protocol interfaces for dependency inversion.

Services depend on these abstractions rather than on asyncssh or on a
database, so tests can substitute a scripted transport and in-memory
registries.

Usage Example:

    from shellfleet.protocols import SessionOpener

    async def uptime(sessions: SessionOpener, host: Host) -> str:
        session = await sessions.open(host)
        try:
            result = await sessions.exec(session, "uptime -p")
            return result.stdout
        finally:
            await sessions.close(session)
"""

from datetime import date
from typing import Any, Protocol, runtime_checkable

from shellfleet.config import LimitCheckSettings
from shellfleet.models import (
    Account,
    AccountStatus,
    AuditEvent,
    CommandResult,
    Host,
    HostStatus,
)


@runtime_checkable
class SessionOpener(Protocol):
    """Opens, drives and releases one remote shell session per operation."""

    async def open(self, host: Host) -> Any:
        """Authenticate to ``host`` and return a session handle.

        Raises:
            ConnectionError: If the host cannot be reached or rejects auth
        """
        ...

    async def exec(
        self,
        session: Any,
        command: str,
        input: str | None = None,
    ) -> CommandResult:
        """Run one command to completion.

        Args:
            session: Handle returned by ``open``
            command: Shell command line
            input: Optional data written to the command's stdin

        Raises:
            ExecutionError: On a transport fault, never on a non-zero exit
        """
        ...

    async def close(self, session: Any) -> None:
        """Release the session. Safe to call more than once."""
        ...


@runtime_checkable
class HostRegistry(Protocol):
    """Fleet registry: owner of host records."""

    async def get(self, host_id: int) -> Host | None: ...

    async def list_all(self) -> list[Host]: ...

    async def get_many(self, host_ids: list[int]) -> list[Host]: ...

    async def update_status(self, host_id: int, status: HostStatus) -> None:
        """Record the outcome of a connection attempt and stamp last_check."""
        ...


@runtime_checkable
class AccountRegistry(Protocol):
    """Account registry: owner of account records."""

    async def get(self, account_id: int) -> Account | None: ...

    async def list_all(self) -> list[Account]: ...

    async def get_by_username(self, host_id: int, username: str) -> Account | None: ...

    async def list_limited_active(self) -> list[Account]:
        """Active accounts that carry a connection limit."""
        ...

    async def list_expired_active(self, today: date) -> list[Account]:
        """Active accounts whose expiration date is before ``today``."""
        ...

    async def add(self, account: Account) -> Account:
        """Persist a new account and return it with its assigned id."""
        ...

    async def update(self, account: Account) -> None: ...

    async def update_status(
        self,
        account_id: int,
        status: AccountStatus,
        reason: str | None = None,
    ) -> None: ...

    async def delete(self, account_id: int) -> None: ...


@runtime_checkable
class AuditLog(Protocol):
    """Append-only operation log."""

    async def append(self, event: AuditEvent) -> None: ...


@runtime_checkable
class SettingsStore(Protocol):
    """Holds the enforcement schedule."""

    async def get_limit_check(self) -> LimitCheckSettings: ...

    async def set_limit_check(self, settings: LimitCheckSettings) -> None: ...


__all__ = [
    "AccountRegistry",
    "AuditLog",
    "HostRegistry",
    "SessionOpener",
    "SettingsStore",
]
