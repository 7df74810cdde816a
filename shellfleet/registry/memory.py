"""In-memory registries.

Process-local implementations of the registry protocols. Records live in
dicts keyed by id; writes are last-writer-wins.
"""

import logging
from datetime import date, datetime

from shellfleet.config import LimitCheckSettings
from shellfleet.models import Account, AccountStatus, AuditEvent, Host, HostStatus

logger = logging.getLogger(__name__)


class InMemoryHostRegistry:
    """Fleet registry backed by a dict."""

    def __init__(self, hosts: list[Host] | None = None) -> None:
        self._hosts: dict[int, Host] = {host.id: host for host in hosts or []}

    async def get(self, host_id: int) -> Host | None:
        return self._hosts.get(host_id)

    async def list_all(self) -> list[Host]:
        return sorted(self._hosts.values(), key=lambda h: h.id)

    async def get_many(self, host_ids: list[int]) -> list[Host]:
        """Hosts in request order; unknown ids are skipped."""
        return [self._hosts[i] for i in dict.fromkeys(host_ids) if i in self._hosts]

    async def update_status(self, host_id: int, status: HostStatus) -> None:
        host = self._hosts.get(host_id)
        if host is None:
            logger.debug("Status update for unknown host %d ignored", host_id)
            return
        host.status = status
        host.last_check = datetime.now()


class InMemoryAccountRegistry:
    """Account registry backed by a dict."""

    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._accounts: dict[int, Account] = {a.id: a for a in accounts or []}

    def _next_id(self) -> int:
        return max(self._accounts, default=0) + 1

    async def get(self, account_id: int) -> Account | None:
        return self._accounts.get(account_id)

    async def list_all(self) -> list[Account]:
        return sorted(self._accounts.values(), key=lambda a: a.id)

    async def get_by_username(self, host_id: int, username: str) -> Account | None:
        for account in self._accounts.values():
            if account.host_id == host_id and account.username == username:
                return account
        return None

    async def list_limited_active(self) -> list[Account]:
        return [
            a
            for a in await self.list_all()
            if a.has_limit and a.status == AccountStatus.ACTIVE
        ]

    async def list_expired_active(self, today: date) -> list[Account]:
        return [
            a
            for a in await self.list_all()
            if a.status == AccountStatus.ACTIVE and a.is_expired(today)
        ]

    async def add(self, account: Account) -> Account:
        """Store a new account. An id <= 0 is replaced by the next free id."""
        if account.id <= 0:
            account.id = self._next_id()
        if account.id in self._accounts:
            raise ValueError(f"Account id {account.id} already exists")
        self._accounts[account.id] = account
        return account

    async def update(self, account: Account) -> None:
        if account.id not in self._accounts:
            raise KeyError(f"Unknown account {account.id}")
        self._accounts[account.id] = account

    async def update_status(
        self,
        account_id: int,
        status: AccountStatus,
        reason: str | None = None,
    ) -> None:
        account = self._accounts.get(account_id)
        if account is None:
            raise KeyError(f"Unknown account {account_id}")
        account.status = status
        account.blocked_reason = reason

    async def delete(self, account_id: int) -> None:
        self._accounts.pop(account_id, None)


class InMemoryAuditLog:
    """Append-only list of audit events, mirrored to the log."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def append(self, event: AuditEvent) -> None:
        self.events.append(event)
        logger.info(
            "audit %s [%s] host=%s account=%s: %s",
            event.operation,
            event.outcome,
            event.host_id,
            event.account_id,
            event.detail,
        )

    def recent(self, limit: int = 100) -> list[AuditEvent]:
        """Newest first."""
        return list(reversed(self.events[-limit:]))


class InMemorySettingsStore:
    """Holds the enforcement schedule."""

    def __init__(self, limit_check: LimitCheckSettings | None = None) -> None:
        self._limit_check = limit_check or LimitCheckSettings()

    async def get_limit_check(self) -> LimitCheckSettings:
        return self._limit_check

    async def set_limit_check(self, settings: LimitCheckSettings) -> None:
        self._limit_check = settings
