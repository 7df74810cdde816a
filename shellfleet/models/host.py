"""Host and credential data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class HostStatus(str, Enum):
    """Reachability of a host as seen by the last connection attempt."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class PasswordCredential:
    """Authenticate with a password."""

    password: str

    def __repr__(self) -> str:
        return "PasswordCredential(password='***')"


@dataclass(frozen=True)
class PrivateKeyCredential:
    """Authenticate with a private key (PEM/OpenSSH text)."""

    private_key: str

    def __repr__(self) -> str:
        return "PrivateKeyCredential(private_key='***')"


Credential = PasswordCredential | PrivateKeyCredential


def resolve_credential(
    password: str | None = None,
    private_key: str | None = None,
) -> Credential:
    """Build a credential from the two optional registry fields.

    A private key always wins over a password when both are present.

    Args:
        password: SSH password, if any
        private_key: SSH private key text, if any

    Returns:
        The credential variant to authenticate with

    Raises:
        ValueError: If neither a password nor a private key is set
    """
    if private_key:
        return PrivateKeyCredential(private_key=private_key)
    if password:
        return PasswordCredential(password=password)
    raise ValueError("Host needs either a password or a private key")


@dataclass
class Host:
    """A remote machine managed over SSH."""

    id: int
    name: str
    address: str
    credential: Credential
    port: int = 22
    user: str = "root"
    status: HostStatus = HostStatus.UNKNOWN
    last_check: datetime | None = None

    @property
    def endpoint(self) -> str:
        """user@address:port, for log lines."""
        return f"{self.user}@{self.address}:{self.port}"
