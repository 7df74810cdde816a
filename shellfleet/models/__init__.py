"""Data models for shellfleet."""

from shellfleet.models.account import Account, AccountStatus
from shellfleet.models.audit import AuditEvent
from shellfleet.models.command import CommandResult
from shellfleet.models.host import (
    Credential,
    Host,
    HostStatus,
    PasswordCredential,
    PrivateKeyCredential,
    resolve_credential,
)
from shellfleet.models.outcome import BlockedAccount, HostOutcome, ScanReport
from shellfleet.models.telemetry import SystemSnapshot

__all__ = [
    "Account",
    "AccountStatus",
    "AuditEvent",
    "BlockedAccount",
    "CommandResult",
    "Credential",
    "Host",
    "HostOutcome",
    "HostStatus",
    "PasswordCredential",
    "PrivateKeyCredential",
    "ScanReport",
    "SystemSnapshot",
    "resolve_credential",
]
