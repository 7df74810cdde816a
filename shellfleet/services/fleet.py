"""Fleet-level operations.

Combines the remote services with the registries: every operation runs its
remote step first, then persists the result and appends an audit event.
Multi-host operations report one outcome per host and never let a failure
on one host stop the rest.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from shellfleet.models import (
    Account,
    AccountStatus,
    AuditEvent,
    Host,
    HostOutcome,
    HostStatus,
    SystemSnapshot,
)
from shellfleet.services.errors import NotFoundError, ShellfleetError
from shellfleet.utils.passwords import generate_password
from shellfleet.utils.validation import validate_password, validate_username

if TYPE_CHECKING:
    from shellfleet.protocols import AccountRegistry, AuditLog, HostRegistry
    from shellfleet.services.accounts import AccountProvisioner
    from shellfleet.services.maintenance import MaintenanceRunner
    from shellfleet.services.telemetry import TelemetryCollector

logger = logging.getLogger(__name__)

EXPIRED_REASON = "expired"
MANUAL_BLOCK_REASON = "blocked manually"


def _validate_days(days: int) -> int:
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    return days


def _validate_limit(limit: int | None) -> int | None:
    if limit is not None and limit < 1:
        raise ValueError(f"connection_limit must be at least 1, got {limit}")
    return limit


class FleetOperations:
    """Account lifecycle, telemetry and maintenance across the fleet."""

    def __init__(
        self,
        provisioner: "AccountProvisioner",
        telemetry: "TelemetryCollector",
        maintenance: "MaintenanceRunner",
        hosts: "HostRegistry",
        accounts: "AccountRegistry",
        audit: "AuditLog",
        today: Callable[[], date] = date.today,
    ) -> None:
        self.provisioner = provisioner
        self.telemetry = telemetry
        self.maintenance = maintenance
        self.hosts = hosts
        self.accounts = accounts
        self.audit = audit
        self._today = today

    async def _record(
        self,
        operation: str,
        detail: str,
        host_id: int | None = None,
        account_id: int | None = None,
        outcome: str = "success",
    ) -> None:
        await self.audit.append(
            AuditEvent(
                operation=operation,
                detail=detail,
                host_id=host_id,
                account_id=account_id,
                outcome=outcome,
            )
        )

    async def _get_host(self, host_id: int) -> Host:
        host = await self.hosts.get(host_id)
        if host is None:
            raise NotFoundError("host", host_id)
        return host

    async def _resolve(self, account_id: int) -> tuple[Account, Host]:
        """Look up an account and the host it lives on.

        Raises:
            NotFoundError: If either record is missing
        """
        account = await self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return account, await self._get_host(account.host_id)

    # Accounts

    async def create_account(
        self,
        host_ids: list[int],
        username: str,
        days: int,
        password: str | None = None,
        connection_limit: int | None = None,
    ) -> tuple[list[HostOutcome], str | None]:
        """Create the same account on several hosts.

        Args:
            host_ids: Target hosts
            username: Login name, validated before any host is contacted
            days: Validity period counted from today
            password: Password to set; generated when omitted
            connection_limit: Maximum concurrent sessions, None for unlimited

        Returns:
            Tuple of (per-host outcomes, generated password or None)

        Raises:
            ValueError: If username, password, days or limit is invalid
            NotFoundError: If none of the hosts exist
        """
        validate_username(username)
        _validate_days(days)
        _validate_limit(connection_limit)
        generated = None
        if password is None:
            password = generated = generate_password(12)
        validate_password(password)

        hosts = await self.hosts.get_many(host_ids)
        if not hosts:
            raise NotFoundError("host", host_ids[0] if host_ids else 0)

        expiration = self._today() + timedelta(days=days)
        outcomes = []
        for host in hosts:
            if await self.accounts.get_by_username(host.id, username) is not None:
                outcomes.append(
                    HostOutcome(
                        host_id=host.id,
                        host_name=host.name,
                        success=False,
                        error="Account already exists on this host",
                    )
                )
                continue

            try:
                await self.provisioner.create(host, username, password, expiration)
            except ShellfleetError as e:
                logger.error("Creating %s on %s failed: %s", username, host.name, e)
                await self._record(
                    "account_create", str(e), host_id=host.id, outcome="failure"
                )
                outcomes.append(
                    HostOutcome(host_id=host.id, host_name=host.name, success=False, error=str(e))
                )
                continue

            account = await self.accounts.add(
                Account(
                    id=0,
                    host_id=host.id,
                    username=username,
                    password=password,
                    expiration_date=expiration,
                    connection_limit=connection_limit,
                )
            )
            await self._record(
                "account_create",
                f"Account {username} created on {host.name}",
                host_id=host.id,
                account_id=account.id,
            )
            outcomes.append(
                HostOutcome(
                    host_id=host.id,
                    host_name=host.name,
                    success=True,
                    account_id=account.id,
                )
            )

        return outcomes, generated

    async def delete_account(self, account_id: int) -> None:
        account, host = await self._resolve(account_id)
        await self.provisioner.delete(host, account.username)
        await self.accounts.delete(account.id)
        await self._record(
            "account_delete",
            f"Account {account.username} deleted",
            host_id=host.id,
            account_id=account.id,
        )

    async def change_password(self, account_id: int, password: str | None = None) -> str:
        """Set a new password, generating one when omitted.

        Returns:
            The password now in effect
        """
        account, host = await self._resolve(account_id)
        if password is None:
            password = generate_password(12)
        await self.provisioner.set_password(host, account.username, password)
        account.password = password
        await self.accounts.update(account)
        await self._record(
            "account_password",
            f"Password changed for {account.username}",
            host_id=host.id,
            account_id=account.id,
        )
        return password

    async def renew_account(
        self,
        account_id: int,
        days: int | None = None,
        from_expiration: bool = False,
        expiration_date: date | None = None,
    ) -> date:
        """Push the expiration date forward, or set it outright.

        Args:
            account_id: Account to renew
            days: Days to add
            from_expiration: Count from the current expiration date instead
                of today
            expiration_date: Exact new expiration date, used instead of
                ``days``

        Returns:
            The new expiration date

        Raises:
            ValueError: If both or neither of ``days`` and
                ``expiration_date`` are given, or ``days`` is below 1
        """
        if (days is None) == (expiration_date is None):
            raise ValueError("Give either days or expiration_date")
        if days is not None:
            _validate_days(days)
        account, host = await self._resolve(account_id)
        if expiration_date is not None:
            new_expiration = expiration_date
            detail = f"Account {account.username} expiration set to {expiration_date}"
        else:
            base = account.expiration_date if from_expiration else self._today()
            new_expiration = base + timedelta(days=days)
            detail = f"Account {account.username} renewed for {days} days"

        await self.provisioner.set_expiration(host, account.username, new_expiration)
        account.expiration_date = new_expiration
        await self.accounts.update(account)
        await self._record("account_renew", detail, host_id=host.id, account_id=account.id)
        return new_expiration

    async def set_connection_limit(self, account_id: int, limit: int | None) -> None:
        """Change the concurrent session limit. Registry-only, no remote step."""
        _validate_limit(limit)
        account = await self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        account.connection_limit = limit
        await self.accounts.update(account)
        await self._record(
            "account_update",
            f"Connection limit for {account.username} set to {limit}",
            host_id=account.host_id,
            account_id=account.id,
        )

    async def block_account(self, account_id: int, reason: str | None = None) -> None:
        account, host = await self._resolve(account_id)
        await self.provisioner.block(host, account.username)
        await self.accounts.update_status(
            account.id, AccountStatus.BLOCKED, reason or MANUAL_BLOCK_REASON
        )
        await self._record(
            "account_block",
            f"Account {account.username} blocked",
            host_id=host.id,
            account_id=account.id,
        )

    async def unblock_account(self, account_id: int) -> None:
        account, host = await self._resolve(account_id)
        await self.provisioner.unblock(host, account.username)
        await self.accounts.update_status(account.id, AccountStatus.ACTIVE, None)
        await self._record(
            "account_unblock",
            f"Account {account.username} unblocked",
            host_id=host.id,
            account_id=account.id,
        )

    async def account_connections(self, account_id: int) -> dict[str, Any]:
        account, host = await self._resolve(account_id)
        connections = await self.provisioner.count_connections(host, account.username)
        return {
            "username": account.username,
            "connections": connections,
            "limit": account.connection_limit,
        }

    async def active_sessions(self, host_id: int) -> list[dict[str, Any]]:
        host = await self._get_host(host_id)
        return await self.provisioner.list_active_sessions(host)

    async def block_expired(self) -> list[HostOutcome]:
        """Block every active account whose expiration date has passed.

        Each account is handled on its own; one failure does not stop the
        rest.
        """
        expired = await self.accounts.list_expired_active(self._today())
        outcomes = []
        for account in expired:
            host = await self.hosts.get(account.host_id)
            if host is None:
                outcomes.append(
                    HostOutcome(
                        host_id=account.host_id,
                        host_name="",
                        success=False,
                        error=f"Host {account.host_id} not found",
                        account_id=account.id,
                    )
                )
                continue

            try:
                await self.provisioner.block(host, account.username)
            except (ShellfleetError, ValueError) as e:
                logger.error(
                    "Blocking expired account %s on %s failed: %s",
                    account.username,
                    host.name,
                    e,
                )
                outcomes.append(
                    HostOutcome(
                        host_id=host.id,
                        host_name=host.name,
                        success=False,
                        error=str(e),
                        account_id=account.id,
                    )
                )
                continue

            await self.accounts.update_status(account.id, AccountStatus.BLOCKED, EXPIRED_REASON)
            await self._record(
                "auto_block",
                f"Account {account.username} blocked: expired",
                host_id=host.id,
                account_id=account.id,
            )
            outcomes.append(
                HostOutcome(
                    host_id=host.id,
                    host_name=host.name,
                    success=True,
                    account_id=account.id,
                )
            )

        if expired:
            logger.info(
                "Expired account check blocked %d of %d",
                sum(o.success for o in outcomes),
                len(expired),
            )
        return outcomes

    # Hosts

    async def host_status(self, host_id: int) -> SystemSnapshot:
        host = await self._get_host(host_id)
        return await self.telemetry.get_system_info(host)

    async def fleet_status(self) -> list[SystemSnapshot]:
        """Collect telemetry from every host concurrently."""
        hosts = await self.hosts.list_all()
        return list(await asyncio.gather(*(self.telemetry.get_system_info(h) for h in hosts)))

    async def _per_host(
        self,
        host_ids: list[int],
        operation: str,
        action: Callable[[Host], Any],
        detail: str,
    ) -> list[HostOutcome]:
        if not host_ids:
            raise ValueError("At least one host must be selected")

        outcomes = []
        for host in await self.hosts.get_many(host_ids):
            try:
                await action(host)
            except ShellfleetError as e:
                logger.error("%s on %s failed: %s", operation, host.name, e)
                outcomes.append(
                    HostOutcome(host_id=host.id, host_name=host.name, success=False, error=str(e))
                )
                continue
            await self._record(operation, detail.format(host=host.name), host_id=host.id)
            outcomes.append(HostOutcome(host_id=host.id, host_name=host.name, success=True))
        return outcomes

    async def clean_logs(self, host_ids: list[int]) -> list[HostOutcome]:
        return await self._per_host(
            host_ids, "clean_logs", self.maintenance.clean_logs, "Logs cleaned on {host}"
        )

    async def restart_hosts(self, host_ids: list[int]) -> list[HostOutcome]:
        return await self._per_host(
            host_ids, "restart_host", self.maintenance.restart, "Host {host} restarted"
        )

    async def stats(self) -> dict[str, Any]:
        """Host and account counters."""
        hosts = await self.hosts.list_all()
        accounts = await self.accounts.list_all()
        today = self._today()
        return {
            "hosts": {
                "total": len(hosts),
                "online": sum(h.status == HostStatus.ONLINE for h in hosts),
                "offline": sum(h.status == HostStatus.OFFLINE for h in hosts),
            },
            "accounts": {
                "total": len(accounts),
                "active": sum(a.status == AccountStatus.ACTIVE for a in accounts),
                "blocked": sum(a.status == AccountStatus.BLOCKED for a in accounts),
                "expired": sum(
                    a.status == AccountStatus.ACTIVE and a.is_expired(today) for a in accounts
                ),
            },
        }
