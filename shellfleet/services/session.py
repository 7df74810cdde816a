"""Per-operation SSH sessions built on asyncssh.

No pooling: every logical operation authenticates, runs its commands one at
a time and disconnects. Host reachability is written back to the fleet
registry after every connection attempt.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import asyncssh

from shellfleet.models import (
    CommandResult,
    Host,
    HostStatus,
    PasswordCredential,
    PrivateKeyCredential,
)
from shellfleet.services.errors import ConnectionError, ExecutionError

if TYPE_CHECKING:
    from shellfleet.protocols import HostRegistry, SessionOpener

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One authenticated transport to a host.

    ``connection`` stays ``None`` until authentication succeeds, so a
    half-built session can still be passed to ``close``.
    """

    host: Host
    connection: "asyncssh.SSHClientConnection | None" = None
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


def _decode(value: str | bytes | None) -> str:
    """Normalize asyncssh output to text."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class SessionManager:
    """Opens one asyncssh connection per logical operation."""

    def __init__(
        self,
        hosts: "HostRegistry | None" = None,
        connect_timeout: float = 10.0,
        command_timeout: float = 60.0,
        known_hosts: str | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            hosts: Registry receiving online/offline status after each attempt
            connect_timeout: Seconds allowed for TCP connect plus authentication
            command_timeout: Seconds allowed for a single command
            known_hosts: Path to known_hosts file, or None to disable verification
        """
        self._hosts = hosts
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self._known_hosts = known_hosts

        if self._known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED - vulnerable to MITM attacks. "
                "Set SHELLFLEET_KNOWN_HOSTS to a valid known_hosts file path."
            )

    def _connect_options(self, host: Host) -> dict[str, Any]:
        """Translate the host credential into asyncssh.connect keyword args."""
        options: dict[str, Any] = {
            "port": host.port,
            "username": host.user,
            "known_hosts": self._known_hosts,
        }
        credential = host.credential
        if isinstance(credential, PrivateKeyCredential):
            options["client_keys"] = [asyncssh.import_private_key(credential.private_key)]
        elif isinstance(credential, PasswordCredential):
            options["password"] = credential.password
            options["client_keys"] = None
        return options

    async def _record_status(self, host: Host, status: HostStatus) -> None:
        if self._hosts is not None:
            await self._hosts.update_status(host.id, status)

    async def open(self, host: Host) -> Session:
        """Authenticate to a host.

        Raises:
            ConnectionError: If the connection or authentication fails
        """
        session = Session(host=host)
        logger.info("Opening SSH session to %s (%s)", host.name, host.endpoint)

        try:
            options = self._connect_options(host)
            session.connection = await asyncio.wait_for(
                asyncssh.connect(host.address, **options),
                timeout=self.connect_timeout,
            )
        except (asyncio.TimeoutError, asyncssh.Error, OSError, ValueError) as e:
            logger.error("Error connecting to %s: %s", host.name, str(e) or type(e).__name__)
            await self._record_status(host, HostStatus.OFFLINE)
            raise ConnectionError(host.name, e) from e

        logger.debug("SSH session established to %s", host.name)
        await self._record_status(host, HostStatus.ONLINE)
        return session

    async def exec(
        self,
        session: Session,
        command: str,
        input: str | None = None,
    ) -> CommandResult:
        """Run one command to completion.

        Returns:
            CommandResult; a non-zero exit code is returned, not raised.

        Raises:
            ExecutionError: On transport failure, closed session, or timeout
        """
        if session.closed or session.connection is None:
            raise ExecutionError(command, RuntimeError("session is not open"))

        async with session.lock:
            try:
                result = await asyncio.wait_for(
                    session.connection.run(command, input=input, check=False),
                    timeout=self.command_timeout,
                )
            except asyncio.TimeoutError as e:
                logger.warning(
                    "Command on %s timed out after %ss: %s",
                    session.host.name,
                    self.command_timeout,
                    command,
                )
                raise ExecutionError(command, e) from e
            except (asyncssh.Error, OSError) as e:
                raise ExecutionError(command, e) from e

        # Terminated by a signal: no exit status
        exit_code = result.returncode if result.returncode is not None else -1

        return CommandResult(
            command=command,
            stdout=_decode(result.stdout),
            stderr=_decode(result.stderr),
            exit_code=exit_code,
        )

    async def close(self, session: Session | None) -> None:
        """Disconnect. Idempotent and safe on partially opened sessions."""
        if session is None or session.closed:
            return
        session.closed = True

        conn = session.connection
        if conn is None:
            return

        logger.debug("Closing SSH session to %s", session.host.name)
        conn.close()
        try:
            await conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            logger.debug("Error while closing session to %s: %s", session.host.name, e)


@asynccontextmanager
async def scoped_session(opener: "SessionOpener", host: Host) -> AsyncIterator[Any]:
    """Open a session for the duration of a block and always release it.

    Args:
        opener: Any SessionOpener implementation
        host: Host to connect to

    Yields:
        The opened session handle
    """
    session = await opener.open(host)
    try:
        yield session
    finally:
        await opener.close(session)
