"""Remote shell account provisioning.

Each public method opens exactly one session, runs an ordered command
sequence and releases the session on every exit path.
"""

import asyncio
import logging
import re
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from shellfleet.models import CommandResult, Host
from shellfleet.services import commands
from shellfleet.services.errors import ProvisioningError, ShellfleetError
from shellfleet.services.session import scoped_session
from shellfleet.utils.validation import validate_password, validate_username

if TYPE_CHECKING:
    from shellfleet.protocols import SessionOpener

logger = logging.getLogger(__name__)

EPOCH = date(1970, 1, 1)
WHO_LINE = re.compile(r"(\d+)\s+(\S+)")


class AccountProvisioner:
    """Creates, modifies and inspects shell accounts on remote hosts."""

    def __init__(self, sessions: "SessionOpener", kill_grace: float = 0.5) -> None:
        """Initialize the provisioner.

        Args:
            sessions: Session opener used for every operation
            kill_grace: Seconds to wait between killing a user's processes
                and removing the account
        """
        self._sessions = sessions
        self.kill_grace = kill_grace

    async def _run(
        self,
        session: Any,
        command: str,
        input: str | None = None,
    ) -> CommandResult:
        return await self._sessions.exec(session, command, input=input)

    @staticmethod
    def _check(
        result: CommandResult,
        host: Host,
        username: str,
        operation: str,
        tolerated: str | None = None,
    ) -> None:
        """Raise ProvisioningError unless the command succeeded or its stderr
        contains the tolerated marker."""
        if result.ok:
            return
        if tolerated and tolerated in result.stderr:
            logger.info(
                "Ignoring '%s' while trying to %s %s on %s",
                tolerated,
                operation,
                username,
                host.name,
            )
            return
        raise ProvisioningError(host.name, username, operation, result.stderr)

    async def create(
        self,
        host: Host,
        username: str,
        password: str,
        expiration: date | str,
    ) -> None:
        """Create an account with home directory, password and expiration.

        An account that already exists on the host is reused.

        Raises:
            ValueError: If username or password is invalid
            ProvisioningError: If any step fails
        """
        validate_username(username)
        validate_password(password)
        expiration_cmd = commands.set_expiration(username, expiration)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(session, commands.create_user(username))
            self._check(result, host, username, "create", tolerated="already exists")

            result = await self._run(
                session,
                commands.SET_PASSWORD,
                input=commands.password_input(username, password),
            )
            self._check(result, host, username, "set password for")

            result = await self._run(session, expiration_cmd)
            self._check(result, host, username, "set expiration for")

        logger.info("Account %s created on %s", username, host.name)

    async def delete(self, host: Host, username: str) -> None:
        """Kill the user's processes, then remove the account and its home.

        Raises:
            ProvisioningError: If removal fails for a reason other than the
                account not existing
        """
        validate_username(username)

        async with scoped_session(self._sessions, host) as session:
            # pkill exits 1 when nothing matched
            await self._run(session, commands.kill_user_processes(username))
            await asyncio.sleep(self.kill_grace)

            result = await self._run(session, commands.delete_user(username))
            self._check(result, host, username, "delete", tolerated="does not exist")

        logger.info("Account %s deleted from %s", username, host.name)

    async def set_password(self, host: Host, username: str, password: str) -> None:
        validate_username(username)
        validate_password(password)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(
                session,
                commands.SET_PASSWORD,
                input=commands.password_input(username, password),
            )
            self._check(result, host, username, "set password for")

        logger.info("Password changed for %s on %s", username, host.name)

    async def set_expiration(
        self,
        host: Host,
        username: str,
        expiration: date | str,
    ) -> None:
        """Set the account expiration date (``chage -E YYYY-MM-DD``)."""
        validate_username(username)
        command = commands.set_expiration(username, expiration)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(session, command)
            self._check(result, host, username, "set expiration for")

        logger.info("Expiration updated for %s on %s", username, host.name)

    async def get_expiration(self, host: Host, username: str) -> date | None:
        """Read the expiration date back from the host's shadow database.

        Returns:
            The expiration date, or None if the account never expires

        Raises:
            ProvisioningError: If the account is unknown or the entry is malformed
        """
        validate_username(username)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(session, commands.read_shadow(username))
            self._check(result, host, username, "read expiration for")

        fields = result.stdout.strip().split(":")
        if len(fields) < 8:
            raise ProvisioningError(
                host.name, username, "read expiration for", "malformed shadow entry"
            )
        if not fields[7]:
            return None
        try:
            return EPOCH + timedelta(days=int(fields[7]))
        except ValueError as e:
            raise ProvisioningError(
                host.name, username, "read expiration for", str(e)
            ) from e

    async def block(self, host: Host, username: str) -> None:
        """Lock the account password. Locking a locked account succeeds."""
        validate_username(username)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(session, commands.lock_user(username))
            self._check(result, host, username, "block")

        logger.info("Account %s blocked on %s", username, host.name)

    async def unblock(self, host: Host, username: str) -> None:
        validate_username(username)

        async with scoped_session(self._sessions, host) as session:
            result = await self._run(session, commands.unlock_user(username))
            self._check(result, host, username, "unblock")

        logger.info("Account %s unblocked on %s", username, host.name)

    async def count_connections(self, host: Host, username: str) -> int:
        """Count live SSH processes for a user.

        Returns:
            Number of matching processes; 0 on any failure.
        """
        try:
            validate_username(username)
            async with scoped_session(self._sessions, host) as session:
                result = await self._run(session, commands.count_connections(username))
        except (ShellfleetError, ValueError) as e:
            logger.error("Error counting connections on %s: %s", host.name, e)
            return 0

        if not result.ok:
            return 0
        try:
            return int(result.stdout.strip())
        except ValueError:
            return 0

    async def list_active_sessions(self, host: Host) -> list[dict[str, Any]]:
        """List logged-in users with their session counts.

        Returns:
            List of dicts with 'username' and 'connections' keys.
            Empty list on any failure.
        """
        try:
            async with scoped_session(self._sessions, host) as session:
                result = await self._run(session, commands.ACTIVE_SESSIONS)
        except ShellfleetError as e:
            logger.error("Error listing active sessions on %s: %s", host.name, e)
            return []

        if not result.ok:
            return []

        users = []
        for line in result.stdout.strip().split("\n"):
            match = WHO_LINE.search(line.strip())
            if match:
                users.append(
                    {
                        "username": match.group(2),
                        "connections": int(match.group(1)),
                    }
                )
        return users
