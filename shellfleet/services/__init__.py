"""Services for shellfleet."""

from shellfleet.services.accounts import AccountProvisioner
from shellfleet.services.enforcer import LimitEnforcer
from shellfleet.services.errors import (
    ConnectionError,
    ExecutionError,
    NotFoundError,
    ProvisioningError,
    ShellfleetError,
)
from shellfleet.services.fleet import FleetOperations
from shellfleet.services.maintenance import MaintenanceRunner
from shellfleet.services.scheduler import PeriodicTrigger, next_fire_time
from shellfleet.services.session import Session, SessionManager, scoped_session
from shellfleet.services.telemetry import TelemetryCollector

__all__ = [
    "AccountProvisioner",
    "ConnectionError",
    "ExecutionError",
    "FleetOperations",
    "LimitEnforcer",
    "MaintenanceRunner",
    "NotFoundError",
    "PeriodicTrigger",
    "ProvisioningError",
    "Session",
    "SessionManager",
    "ShellfleetError",
    "TelemetryCollector",
    "next_fire_time",
    "scoped_session",
]
