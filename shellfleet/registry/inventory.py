"""JSON inventory loading.

Inventory format::

    {
      "hosts": [
        {"id": 1, "name": "vps-fra-1", "address": "203.0.113.10", "port": 22,
         "ssh_user": "root", "ssh_password": "...", "ssh_key": null,
         "ssh_key_file": null}
      ],
      "accounts": [
        {"id": 1, "host_id": 1, "username": "alice", "password": "...",
         "expiration_date": "2025-03-01", "connection_limit": 2,
         "status": "active", "blocked_reason": null}
      ],
      "limit_check": {"enabled": true, "interval_minutes": 5}
    }
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from shellfleet.config import LimitCheckSettings
from shellfleet.models import Account, AccountStatus, Host, HostStatus, resolve_credential
from shellfleet.utils.validation import validate_port

logger = logging.getLogger(__name__)


class InventoryError(ValueError):
    """Inventory file is unreadable or malformed."""


@dataclass
class Inventory:
    """Parsed inventory contents."""

    hosts: list[Host]
    accounts: list[Account]
    limit_check: LimitCheckSettings | None = None


def _parse_host(data: dict[str, Any]) -> Host:
    private_key = data.get("ssh_key")
    if not private_key and data.get("ssh_key_file"):
        key_path = Path(os.path.expanduser(data["ssh_key_file"]))
        private_key = key_path.read_text()

    return Host(
        id=int(data["id"]),
        name=str(data["name"]),
        address=str(data.get("address") or data["ip"]),
        port=validate_port(int(data.get("port") or 22)),
        user=str(data.get("ssh_user") or "root"),
        credential=resolve_credential(
            password=data.get("ssh_password"),
            private_key=private_key,
        ),
        status=HostStatus(data.get("status", HostStatus.UNKNOWN.value)),
    )


def _parse_account(data: dict[str, Any]) -> Account:
    limit = data.get("connection_limit")
    return Account(
        id=int(data["id"]),
        host_id=int(data["host_id"]),
        username=str(data["username"]),
        password=str(data.get("password", "")),
        expiration_date=date.fromisoformat(str(data["expiration_date"])),
        connection_limit=int(limit) if limit is not None else None,
        status=AccountStatus(data.get("status", AccountStatus.ACTIVE.value)),
        blocked_reason=data.get("blocked_reason"),
    )


def parse_inventory(data: dict[str, Any]) -> Inventory:
    """Build model objects from a decoded inventory document.

    Raises:
        InventoryError: If a record is missing fields or has invalid values
    """
    try:
        hosts = [_parse_host(h) for h in data.get("hosts", [])]
        accounts = [_parse_account(a) for a in data.get("accounts", [])]
        limit_check = None
        if "limit_check" in data:
            limit_check = LimitCheckSettings(**data["limit_check"])
    except (KeyError, TypeError, ValueError, OSError) as e:
        raise InventoryError(f"Invalid inventory: {e}") from e

    host_ids = {h.id for h in hosts}
    for account in accounts:
        if account.host_id not in host_ids:
            logger.warning(
                "Account %s references unknown host %d",
                account.username,
                account.host_id,
            )
    return Inventory(hosts=hosts, accounts=accounts, limit_check=limit_check)


def load_inventory(path: Path) -> Inventory:
    """Read and parse an inventory file.

    Raises:
        InventoryError: If the file cannot be read or parsed
    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise InventoryError(f"Cannot read inventory {path}: {e}") from e

    inventory = parse_inventory(data)
    logger.info(
        "Loaded inventory from %s: %d host(s), %d account(s)",
        path,
        len(inventory.hosts),
        len(inventory.accounts),
    )
    return inventory
