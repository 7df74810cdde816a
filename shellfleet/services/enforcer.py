"""Connection-limit enforcement.

One cycle loads every active account that carries a connection limit,
groups the accounts by host and, host by host, blocks each account whose
live SSH process count exceeds its limit. Hosts and accounts are processed
sequentially; a failure on one host never stops the others.

Only one cycle runs at a time. A trigger that fires while a cycle is in
progress is dropped, not queued.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from shellfleet.models import (
    Account,
    AccountStatus,
    AuditEvent,
    BlockedAccount,
    Host,
    ScanReport,
)
from shellfleet.services.errors import ShellfleetError
from shellfleet.services.scheduler import PeriodicTrigger

if TYPE_CHECKING:
    from shellfleet.protocols import (
        AccountRegistry,
        AuditLog,
        HostRegistry,
        SettingsStore,
    )
    from shellfleet.services.accounts import AccountProvisioner

logger = logging.getLogger(__name__)

TriggerFactory = Callable[[Callable[[], Awaitable[Any]], int], PeriodicTrigger]


class LimitEnforcer:
    """Single-flight scanner that blocks accounts over their connection limit."""

    def __init__(
        self,
        provisioner: "AccountProvisioner",
        hosts: "HostRegistry",
        accounts: "AccountRegistry",
        audit: "AuditLog",
        settings: "SettingsStore",
        host_pause: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        trigger_factory: TriggerFactory = PeriodicTrigger,
    ) -> None:
        """Initialize the enforcer.

        Args:
            provisioner: Used to count connections and block accounts
            hosts: Fleet registry
            accounts: Account registry
            audit: Receives one event per automatic block
            settings: Source of the enabled flag and interval, read at start()
            host_pause: Seconds to wait between two hosts within a cycle
            sleep: Coroutine used for the pause between hosts
            trigger_factory: Builds the periodic trigger from (callback, minutes)
        """
        self._provisioner = provisioner
        self._hosts = hosts
        self._accounts = accounts
        self._audit = audit
        self._settings = settings
        self.host_pause = host_pause
        self._sleep = sleep
        self._trigger_factory = trigger_factory
        self._trigger: PeriodicTrigger | None = None
        self._scanning = False

    @property
    def scanning(self) -> bool:
        return self._scanning

    @property
    def running(self) -> bool:
        """True while a periodic trigger is registered."""
        return self._trigger is not None and self._trigger.running

    async def run_cycle(self) -> ScanReport:
        """Run one enforcement cycle unless one is already in progress.

        Returns:
            ScanReport; ``skipped`` is True when another cycle was running.
        """
        if self._scanning:
            logger.info("Limit check already in progress, skipping")
            return ScanReport(skipped=True)

        self._scanning = True
        try:
            return await self._scan()
        except Exception as e:
            logger.exception("Connection limit check failed")
            return ScanReport(error=str(e))
        finally:
            self._scanning = False

    async def _scan(self) -> ScanReport:
        report = ScanReport()
        logger.info("Starting connection limit check")

        limited = [
            account
            for account in await self._accounts.list_limited_active()
            if account.has_limit and account.status == AccountStatus.ACTIVE
        ]
        if not limited:
            logger.info("No accounts with a connection limit to check")
            return report

        by_host: dict[int, list[Account]] = defaultdict(list)
        for account in limited:
            by_host[account.host_id].append(account)

        for index, (host_id, host_accounts) in enumerate(by_host.items()):
            if index > 0:
                await self._sleep(self.host_pause)

            label = f"host {host_id}"
            try:
                host = await self._hosts.get(host_id)
                if host is None:
                    logger.warning(
                        "Host %d not found, skipping %d account(s)",
                        host_id,
                        len(host_accounts),
                    )
                    report.missing_hosts.append(host_id)
                    continue
                label = host.name
                await self._check_host(host, host_accounts, report)
            except ShellfleetError as e:
                logger.error("Error checking accounts on %s: %s", label, e)
                report.failed_hosts[label] = str(e)
            except Exception as e:
                logger.exception("Unexpected error checking accounts on %s", label)
                report.failed_hosts[label] = str(e)

        logger.info(
            "Connection limit check completed: %d checked, %d blocked, %d host(s) failed",
            report.checked,
            len(report.blocked),
            len(report.failed_hosts),
        )
        return report

    async def _check_host(
        self,
        host: Host,
        accounts: list[Account],
        report: ScanReport,
    ) -> None:
        for account in accounts:
            limit = account.connection_limit
            if limit is None:
                continue
            report.checked += 1

            connections = await self._provisioner.count_connections(host, account.username)
            if connections <= limit:
                continue

            await self._provisioner.block(host, account.username)
            reason = f"exceeded connection limit ({connections}/{limit})"
            await self._accounts.update_status(account.id, AccountStatus.BLOCKED, reason)
            await self._audit.append(
                AuditEvent(
                    operation="auto_block",
                    detail=f"Account {account.username} blocked automatically: {reason}",
                    host_id=host.id,
                    account_id=account.id,
                )
            )
            report.blocked.append(
                BlockedAccount(
                    host_name=host.name,
                    username=account.username,
                    connections=connections,
                    limit=limit,
                )
            )
            logger.warning(
                "Account %s on %s blocked for exceeding its limit (%d/%d)",
                account.username,
                host.name,
                connections,
                limit,
            )

    async def start(self) -> bool:
        """Register the periodic trigger if enforcement is enabled.

        The schedule is read once here; later settings changes take effect
        only through ``restart``.

        Returns:
            True if a trigger is now registered
        """
        if self._trigger is not None:
            return True

        settings = await self._settings.get_limit_check()
        if not settings.enabled:
            logger.info("Connection limit check disabled")
            return False

        self._trigger = self._trigger_factory(self.run_cycle, settings.interval_minutes)
        self._trigger.start()
        logger.info(
            "Connection limit check scheduled every %d minute(s)",
            settings.interval_minutes,
        )
        return True

    async def stop(self) -> None:
        """Unregister the periodic trigger. A cycle in progress finishes."""
        if self._trigger is None:
            return
        await self._trigger.stop()
        self._trigger = None
        logger.info("Connection limit check stopped")

    async def restart(self) -> bool:
        """Stop, re-read settings and start again."""
        await self.stop()
        return await self.start()
