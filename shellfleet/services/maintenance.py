"""Fixed maintenance batches: log cleanup and reboot."""

import logging
from typing import TYPE_CHECKING

from shellfleet.models import Host
from shellfleet.services import commands
from shellfleet.services.errors import ExecutionError
from shellfleet.services.session import scoped_session

if TYPE_CHECKING:
    from shellfleet.protocols import SessionOpener

logger = logging.getLogger(__name__)


class MaintenanceRunner:
    """Runs idempotent housekeeping commands on a host."""

    def __init__(self, sessions: "SessionOpener") -> None:
        self._sessions = sessions

    async def clean_logs(self, host: Host) -> int:
        """Truncate or delete system, proxy and web server logs.

        Non-zero exits are expected (optional paths may be absent) and do
        not stop the batch.

        Returns:
            Number of commands that exited non-zero

        Raises:
            ConnectionError: If the host cannot be reached
            ExecutionError: If the transport fails mid-batch
        """
        failures = 0
        async with scoped_session(self._sessions, host) as session:
            for command in commands.CLEAN_LOGS:
                result = await self._sessions.exec(session, command)
                if not result.ok:
                    failures += 1
                    logger.debug(
                        "Cleanup step on %s exited %d: %s",
                        host.name,
                        result.exit_code,
                        command,
                    )

        logger.info("Logs cleaned on %s", host.name)
        return failures

    async def restart(self, host: Host) -> None:
        """Issue a reboot and return without waiting for the host to return.

        Raises:
            ConnectionError: If the host cannot be reached
        """
        async with scoped_session(self._sessions, host) as session:
            try:
                await self._sessions.exec(session, commands.REBOOT)
            except ExecutionError as e:
                # The host tearing down the connection mid-command is the
                # normal outcome of a reboot.
                logger.debug("Session to %s dropped during reboot: %s", host.name, e)

        logger.info("Reboot issued on %s", host.name)
