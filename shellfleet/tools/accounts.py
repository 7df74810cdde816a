"""Account lifecycle tools."""

import logging
from datetime import date
from typing import Any

from shellfleet.models import Account
from shellfleet.services.errors import ShellfleetError
from shellfleet.services.state import get_deps

logger = logging.getLogger(__name__)


def account_summary(account: Account) -> dict[str, Any]:
    """Account fields safe to return to a client. The password is omitted."""
    return {
        "id": account.id,
        "host_id": account.host_id,
        "username": account.username,
        "expiration_date": account.expiration_date.isoformat(),
        "connection_limit": account.connection_limit,
        "status": account.status.value,
        "blocked_reason": account.blocked_reason,
    }


async def list_accounts(host_id: int | None = None) -> list[dict[str, Any]]:
    """List provisioned accounts, optionally for a single host.

    Args:
        host_id: Only return accounts on this host.
    """
    accounts = await get_deps().accounts.list_all()
    return [
        account_summary(a) for a in accounts if host_id is None or a.host_id == host_id
    ]


async def create_account(
    host_ids: list[int],
    username: str,
    days: int,
    password: str | None = None,
    connection_limit: int | None = None,
) -> dict[str, Any] | str:
    """Create a shell account on one or more hosts.

    Args:
        host_ids: Hosts to create the account on.
        username: Login name (lowercase, 3-32 chars, starts with a letter).
        days: Days until the account expires.
        password: Password to set. A random 12-character password is
            generated and returned when omitted.
        connection_limit: Maximum concurrent SSH sessions. Omit for unlimited.

    Examples:
        create_account([1, 2], "alice", 30) - Generated password, no limit
        create_account([1], "bob", 7, connection_limit=2)

    Returns:
        Per-host results and the generated password, or an error string.
    """
    try:
        outcomes, generated = await get_deps().fleet.create_account(
            host_ids, username, days, password=password, connection_limit=connection_limit
        )
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"

    result: dict[str, Any] = {"results": [o.to_dict() for o in outcomes]}
    if generated is not None:
        result["password"] = generated
    return result


async def delete_account(account_id: int) -> str:
    """Kill the account's processes and remove it with its home directory."""
    try:
        await get_deps().fleet.delete_account(account_id)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return f"Account {account_id} deleted"


async def change_password(account_id: int, password: str | None = None) -> dict[str, Any] | str:
    """Set a new password. A random one is generated when omitted.

    Returns:
        The new password, or an error string.
    """
    try:
        new_password = await get_deps().fleet.change_password(account_id, password)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return {"account_id": account_id, "password": new_password}


async def renew_account(
    account_id: int,
    days: int | None = None,
    from_expiration: bool = False,
    expiration_date: str | None = None,
) -> dict[str, Any] | str:
    """Extend an account's expiration date, or set an exact one.

    Args:
        account_id: Account to renew.
        days: Days to add.
        from_expiration: Add the days to the current expiration date
            instead of today.
        expiration_date: Exact new date (YYYY-MM-DD), instead of ``days``.
    """
    try:
        exact = date.fromisoformat(expiration_date) if expiration_date else None
        new_date = await get_deps().fleet.renew_account(
            account_id, days, from_expiration, expiration_date=exact
        )
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return {"account_id": account_id, "new_expiration_date": new_date.isoformat()}


async def set_connection_limit(account_id: int, limit: int | None = None) -> str:
    """Change the concurrent session limit. Omit ``limit`` for unlimited."""
    try:
        await get_deps().fleet.set_connection_limit(account_id, limit)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return f"Connection limit for account {account_id} set to {limit or 'unlimited'}"


async def block_account(account_id: int, reason: str | None = None) -> str:
    """Lock an account's password."""
    try:
        await get_deps().fleet.block_account(account_id, reason)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return f"Account {account_id} blocked"


async def unblock_account(account_id: int) -> str:
    """Unlock an account's password."""
    try:
        await get_deps().fleet.unblock_account(account_id)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
    return f"Account {account_id} unblocked"


async def account_connections(account_id: int) -> dict[str, Any] | str:
    """Count the account's live SSH processes against its limit."""
    try:
        return await get_deps().fleet.account_connections(account_id)
    except (ShellfleetError, ValueError) as e:
        return f"Error: {e}"
