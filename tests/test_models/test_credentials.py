"""Tests for host credentials."""

import pytest

from shellfleet.models import (
    Host,
    PasswordCredential,
    PrivateKeyCredential,
    resolve_credential,
)


def test_private_key_wins_over_password():
    """A key is used whenever both fields are set."""
    credential = resolve_credential(password="pw", private_key="KEY")
    assert credential == PrivateKeyCredential(private_key="KEY")


def test_password_used_without_key():
    assert resolve_credential(password="pw") == PasswordCredential(password="pw")


def test_empty_key_falls_back_to_password():
    assert isinstance(resolve_credential(password="pw", private_key=""), PasswordCredential)


def test_missing_credential_rejected():
    with pytest.raises(ValueError, match="password or a private key"):
        resolve_credential()


def test_repr_masks_secrets():
    assert "hunter2" not in repr(PasswordCredential(password="hunter2"))
    assert "KEYDATA" not in repr(PrivateKeyCredential(private_key="KEYDATA"))


def test_host_endpoint_and_defaults():
    host = Host(id=1, name="vps", address="10.0.0.1", credential=PasswordCredential("x"))
    assert host.port == 22
    assert host.user == "root"
    assert host.endpoint == "root@10.0.0.1:22"
    assert "'x'" not in repr(host)
