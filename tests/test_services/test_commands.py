"""Tests for the remote command grammar."""

import shlex
from datetime import date

import pytest

from shellfleet.services import commands


def test_create_user():
    assert commands.create_user("alice") == "useradd -m -s /bin/bash alice"


def test_password_never_on_command_line():
    """chpasswd reads user:password from stdin."""
    assert commands.SET_PASSWORD == "chpasswd"
    assert commands.password_input("alice", "p@ss word") == "alice:p@ss word\n"


def test_set_expiration_formats_dates():
    assert commands.set_expiration("alice", date(2025, 3, 1)) == "chage -E 2025-03-01 alice"
    assert commands.set_expiration("alice", "2025-03-01") == "chage -E 2025-03-01 alice"


def test_set_expiration_rejects_malformed_string():
    with pytest.raises(ValueError):
        commands.set_expiration("alice", "2025-03-01; reboot")


def test_account_commands():
    assert commands.kill_user_processes("alice") == "pkill -u alice"
    assert commands.delete_user("alice") == "userdel -r alice"
    assert commands.lock_user("alice") == "usermod -L alice"
    assert commands.unlock_user("alice") == "usermod -U alice"
    assert commands.read_shadow("alice") == "getent shadow alice"


def test_values_are_quoted():
    """Anything unusual that slips through ends up as a single shell word."""
    command = commands.lock_user("a b;rm -rf /")
    assert shlex.split(command) == ["usermod", "-L", "a b;rm -rf /"]


def test_count_connections_pipeline():
    assert commands.count_connections("alice") == (
        "ps aux | grep 'sshd.*alice' | grep -v grep | wc -l"
    )


def test_clean_logs_batch_is_fixed():
    assert len(commands.CLEAN_LOGS) == 10
    assert commands.CLEAN_LOGS[0] == "truncate -s 0 /var/log/auth.log"
    assert commands.CLEAN_LOGS[-1] == "history -c"
