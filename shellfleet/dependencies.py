"""Dependency injection container for shellfleet.

Wires settings, registries and services together once per process.
"""

import logging
from dataclasses import dataclass

from shellfleet.config import Settings
from shellfleet.registry import (
    InMemoryAccountRegistry,
    InMemoryAuditLog,
    InMemoryHostRegistry,
    InMemorySettingsStore,
    Inventory,
    load_inventory,
)
from shellfleet.services.accounts import AccountProvisioner
from shellfleet.services.enforcer import LimitEnforcer
from shellfleet.services.fleet import FleetOperations
from shellfleet.services.maintenance import MaintenanceRunner
from shellfleet.services.session import SessionManager
from shellfleet.services.telemetry import TelemetryCollector

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    """Container for shellfleet dependencies.

    Example:
        deps = Dependencies.create()
        await deps.enforcer.start()
        outcomes, password = await deps.fleet.create_account([1], "alice", 30)
    """

    settings: Settings
    hosts: InMemoryHostRegistry
    accounts: InMemoryAccountRegistry
    audit: InMemoryAuditLog
    settings_store: InMemorySettingsStore
    sessions: SessionManager
    provisioner: AccountProvisioner
    enforcer: LimitEnforcer
    fleet: FleetOperations

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies from environment settings.

        Returns:
            Initialized Dependencies instance
        """
        return cls.from_settings(Settings.from_env())

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        inventory: Inventory | None = None,
    ) -> "Dependencies":
        """Create dependencies with custom settings.

        Args:
            settings: Settings instance
            inventory: Pre-loaded inventory; read from
                ``settings.inventory_path`` when omitted

        Returns:
            Dependencies wired from settings
        """
        if inventory is None:
            if settings.inventory_path is not None:
                inventory = load_inventory(settings.inventory_path)
            else:
                logger.warning("No inventory configured, starting with an empty fleet")
                inventory = Inventory(hosts=[], accounts=[])

        hosts = InMemoryHostRegistry(inventory.hosts)
        accounts = InMemoryAccountRegistry(inventory.accounts)
        audit = InMemoryAuditLog()
        settings_store = InMemorySettingsStore(inventory.limit_check or settings.limit_check)

        sessions = SessionManager(
            hosts=hosts,
            connect_timeout=settings.connect_timeout,
            command_timeout=settings.command_timeout,
            known_hosts=settings.known_hosts,
        )
        provisioner = AccountProvisioner(sessions, kill_grace=settings.kill_grace)
        enforcer = LimitEnforcer(
            provisioner,
            hosts,
            accounts,
            audit,
            settings_store,
            host_pause=settings.host_pause,
        )
        fleet = FleetOperations(
            provisioner=provisioner,
            telemetry=TelemetryCollector(sessions),
            maintenance=MaintenanceRunner(sessions),
            hosts=hosts,
            accounts=accounts,
            audit=audit,
        )
        return cls(
            settings=settings,
            hosts=hosts,
            accounts=accounts,
            audit=audit,
            settings_store=settings_store,
            sessions=sessions,
            provisioner=provisioner,
            enforcer=enforcer,
            fleet=fleet,
        )

    async def cleanup(self) -> None:
        """Stop the enforcement schedule."""
        await self.enforcer.stop()
