"""Remote command grammar.

Every value interpolated into a command line goes through ``shlex`` quoting.
Passwords never appear on a command line: ``chpasswd`` reads them from stdin
(see ``password_input``).
"""

from datetime import date
from typing import Final

from shellfleet.utils.shell import join_args, quote_arg
from shellfleet.utils.validation import format_date

# Account provisioning


def create_user(username: str) -> str:
    return join_args(["useradd", "-m", "-s", "/bin/bash", username])


SET_PASSWORD: Final[str] = "chpasswd"


def password_input(username: str, password: str) -> str:
    """stdin payload for ``chpasswd``."""
    return f"{username}:{password}\n"


def set_expiration(username: str, expiration: date | str) -> str:
    return join_args(["chage", "-E", format_date(expiration), username])


def read_shadow(username: str) -> str:
    """Shadow entry; field 8 is the expiration in days since the epoch."""
    return join_args(["getent", "shadow", username])


def kill_user_processes(username: str) -> str:
    return join_args(["pkill", "-u", username])


def delete_user(username: str) -> str:
    return join_args(["userdel", "-r", username])


def lock_user(username: str) -> str:
    return join_args(["usermod", "-L", username])


def unlock_user(username: str) -> str:
    return join_args(["usermod", "-U", username])


def count_connections(username: str) -> str:
    """Count sshd processes whose command line mentions the user."""
    pattern = quote_arg(f"sshd.*{username}")
    return f"ps aux | grep {pattern} | grep -v grep | wc -l"


ACTIVE_SESSIONS: Final[str] = "who | awk '{print $1}' | sort | uniq -c"

# Telemetry probes

CPU_PROBE: Final[str] = "top -bn1 | grep 'Cpu(s)' | awk '{print $2}' | cut -d'%' -f1"
RAM_PROBE: Final[str] = (
    "free | grep Mem | awk '{printf \"%.2f %.2f %.2f\", $3/$2*100, $2/1024, $3/1024}'"
)
DISK_PROBE: Final[str] = "df -h / | tail -1 | awk '{print $5, $2, $3}'"
UPTIME_PROBE: Final[str] = "uptime -p"
PORTS_PROBE: Final[str] = (
    "ss -tuln | grep LISTEN | awk '{print $5}' | cut -d':' -f2 | sort -u"
)
LOAD_PROBE: Final[str] = "cat /proc/loadavg"

# Maintenance

CLEAN_LOGS: Final[tuple[str, ...]] = (
    "truncate -s 0 /var/log/auth.log",
    "truncate -s 0 /var/log/syslog",
    "truncate -s 0 /var/log/kern.log",
    "rm -f /var/log/*.gz",
    "rm -f /var/log/*.1",
    "find /var/log/v2ray/ -type f -delete 2>/dev/null || true",
    "find /var/log/xray/ -type f -delete 2>/dev/null || true",
    'find /var/log/nginx/ -type f -name "*.log" -exec truncate -s 0 {} \\; 2>/dev/null || true',
    'find /var/log/apache2/ -type f -name "*.log" -exec truncate -s 0 {} \\; 2>/dev/null || true',
    "history -c",
)

REBOOT: Final[str] = "reboot"
