"""MCP tools for shellfleet."""

from shellfleet.tools.accounts import (
    account_connections,
    block_account,
    change_password,
    create_account,
    delete_account,
    list_accounts,
    renew_account,
    set_connection_limit,
    unblock_account,
)
from shellfleet.tools.enforcement import (
    check_expired,
    configure_limit_check,
    get_limit_check,
    run_limit_check,
)
from shellfleet.tools.hosts import (
    active_sessions,
    clean_logs,
    fleet_status,
    host_status,
    list_hosts,
    recent_activity,
    restart_hosts,
    stats,
)

__all__ = [
    "account_connections",
    "active_sessions",
    "block_account",
    "change_password",
    "check_expired",
    "clean_logs",
    "configure_limit_check",
    "create_account",
    "delete_account",
    "fleet_status",
    "get_limit_check",
    "host_status",
    "list_accounts",
    "list_hosts",
    "recent_activity",
    "renew_account",
    "restart_hosts",
    "run_limit_check",
    "set_connection_limit",
    "stats",
    "unblock_account",
]
