"""Tests for remote account provisioning."""

from datetime import date

import pytest

from shellfleet.services.accounts import AccountProvisioner
from shellfleet.services.errors import ConnectionError, ExecutionError, ProvisioningError


@pytest.fixture
def provisioner(opener) -> AccountProvisioner:
    return AccountProvisioner(opener, kill_grace=0)


@pytest.mark.asyncio
async def test_create_runs_steps_in_order(provisioner, opener, host):
    await provisioner.create(host, "alice", "S3cret!pw", date(2025, 3, 1))

    assert opener.commands == [
        "useradd -m -s /bin/bash alice",
        "chpasswd",
        "chage -E 2025-03-01 alice",
    ]
    assert opener.calls[1].input == "alice:S3cret!pw\n"
    assert all("S3cret" not in c for c in opener.commands)
    assert opener.open_sessions == 0
    assert len(opener.opened) == 1


@pytest.mark.asyncio
async def test_create_tolerates_existing_user(provisioner, opener, host):
    opener.script("useradd", stderr="useradd: user 'alice' already exists", exit_code=9)

    await provisioner.create(host, "alice", "S3cret!pw", "2025-03-01")

    assert opener.commands[-1] == "chage -E 2025-03-01 alice"


@pytest.mark.asyncio
async def test_create_fails_on_password_step(provisioner, opener, host):
    opener.script("chpasswd", stderr="chpasswd: line 1: user 'alice' does not exist", exit_code=1)

    with pytest.raises(ProvisioningError) as exc_info:
        await provisioner.create(host, "alice", "S3cret!pw", date(2025, 3, 1))

    assert exc_info.value.host_name == "vps-1"
    assert exc_info.value.username == "alice"
    assert "does not exist" in str(exc_info.value)
    assert "chage -E 2025-03-01 alice" not in opener.commands
    assert opener.open_sessions == 0


@pytest.mark.asyncio
async def test_create_fails_on_expiration_step(provisioner, opener, host):
    opener.script("chage", stderr="chage: permission denied", exit_code=1)

    with pytest.raises(ProvisioningError, match="set expiration for alice"):
        await provisioner.create(host, "alice", "S3cret!pw", date(2025, 3, 1))


@pytest.mark.asyncio
async def test_create_rejects_invalid_username_before_connecting(provisioner, opener, host):
    with pytest.raises(ValueError, match="Invalid username"):
        await provisioner.create(host, "Root;reboot", "pw", date(2025, 3, 1))

    assert opener.opened == []


@pytest.mark.asyncio
async def test_create_rejects_multiline_password(provisioner, opener, host):
    with pytest.raises(ValueError):
        await provisioner.create(host, "alice", "pw\nroot:x", date(2025, 3, 1))

    assert opener.opened == []


@pytest.mark.asyncio
async def test_create_connection_failure(provisioner, opener, host):
    opener.fail_hosts.add("vps-1")

    with pytest.raises(ConnectionError):
        await provisioner.create(host, "alice", "S3cret!pw", date(2025, 3, 1))


@pytest.mark.asyncio
async def test_session_released_on_transport_error(provisioner, opener, host):
    opener.fail("chpasswd", ExecutionError("chpasswd", OSError("Connection reset")))

    with pytest.raises(ExecutionError):
        await provisioner.create(host, "alice", "S3cret!pw", date(2025, 3, 1))

    assert opener.open_sessions == 0


@pytest.mark.asyncio
async def test_delete_kills_then_removes(provisioner, opener, host):
    opener.script("pkill", exit_code=1)

    await provisioner.delete(host, "alice")

    assert opener.commands == ["pkill -u alice", "userdel -r alice"]


@pytest.mark.asyncio
async def test_delete_tolerates_missing_user(provisioner, opener, host):
    opener.script("userdel", stderr="userdel: user 'alice' does not exist", exit_code=6)

    await provisioner.delete(host, "alice")


@pytest.mark.asyncio
async def test_delete_other_failure_raises(provisioner, opener, host):
    opener.script("userdel", stderr="userdel: user alice is currently used by process 12", exit_code=8)

    with pytest.raises(ProvisioningError, match="delete alice"):
        await provisioner.delete(host, "alice")


@pytest.mark.asyncio
async def test_set_password_uses_stdin(provisioner, opener, host):
    await provisioner.set_password(host, "alice", "N3w!pass")

    assert opener.calls[0].command == "chpasswd"
    assert opener.calls[0].input == "alice:N3w!pass\n"


@pytest.mark.asyncio
async def test_expiration_read_back(provisioner, opener, host):
    """A date written with set_expiration reads back unchanged."""
    await provisioner.set_expiration(host, "alice", date(2025, 3, 1))
    # 2025-03-01 is day 20148 since 1970-01-01
    opener.script("getent shadow alice", stdout="alice:$6$x:20000:0:99999:7::20148:\n")

    assert await provisioner.get_expiration(host, "alice") == date(2025, 3, 1)
    assert opener.commands[0] == "chage -E 2025-03-01 alice"


@pytest.mark.asyncio
async def test_expiration_never(provisioner, opener, host):
    opener.script("getent shadow alice", stdout="alice:$6$x:20000:0:99999:7:::\n")

    assert await provisioner.get_expiration(host, "alice") is None


@pytest.mark.asyncio
async def test_expiration_unknown_user(provisioner, opener, host):
    opener.script("getent shadow ghost", exit_code=2)

    with pytest.raises(ProvisioningError):
        await provisioner.get_expiration(host, "ghost")


@pytest.mark.asyncio
async def test_expiration_malformed_entry(provisioner, opener, host):
    opener.script("getent shadow alice", stdout="alice:x\n")

    with pytest.raises(ProvisioningError, match="malformed"):
        await provisioner.get_expiration(host, "alice")


@pytest.mark.asyncio
async def test_block_and_unblock(provisioner, opener, host):
    await provisioner.block(host, "alice")
    await provisioner.block(host, "alice")
    await provisioner.unblock(host, "alice")

    assert opener.commands == ["usermod -L alice", "usermod -L alice", "usermod -U alice"]
    assert len(opener.opened) == 3
    assert opener.open_sessions == 0


@pytest.mark.asyncio
async def test_block_unknown_user_raises(provisioner, opener, host):
    opener.script("usermod -L", stderr="usermod: user 'ghost' does not exist", exit_code=6)

    with pytest.raises(ProvisioningError, match="block ghost on vps-1"):
        await provisioner.block(host, "ghost")


@pytest.mark.asyncio
async def test_count_connections(provisioner, opener, host):
    opener.script("ps aux", stdout="3\n")

    assert await provisioner.count_connections(host, "alice") == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("stdout", ["", "garbage\n"])
async def test_count_connections_unparsable_is_zero(provisioner, opener, host, stdout):
    opener.script("ps aux", stdout=stdout)

    assert await provisioner.count_connections(host, "alice") == 0


@pytest.mark.asyncio
async def test_count_connections_unreachable_is_zero(provisioner, opener, host):
    opener.fail_hosts.add("vps-1")

    assert await provisioner.count_connections(host, "alice") == 0


@pytest.mark.asyncio
async def test_list_active_sessions(provisioner, opener, host):
    opener.script("who", stdout="      2 alice\n      1 root\n")

    assert await provisioner.list_active_sessions(host) == [
        {"username": "alice", "connections": 2},
        {"username": "root", "connections": 1},
    ]


@pytest.mark.asyncio
async def test_list_active_sessions_unreachable(provisioner, opener, host):
    opener.fail_hosts.add("vps-1")

    assert await provisioner.list_active_sessions(host) == []
