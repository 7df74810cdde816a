"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LimitCheckSettings:
    """Enforcement schedule as stored in the settings store."""

    enabled: bool = True
    interval_minutes: int = 5

    def __post_init__(self) -> None:
        if not 1 <= self.interval_minutes <= 59:
            raise ValueError(
                f"interval_minutes must be between 1 and 59, got {self.interval_minutes}"
            )


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # SSH
    connect_timeout: float = field(default=10.0)
    command_timeout: float = field(default=60.0)
    known_hosts: str | None = field(default=None)

    # Provisioning / enforcement pacing
    host_pause: float = field(default=1.0)
    kill_grace: float = field(default=0.5)
    limit_check_enabled: bool = field(default=True)
    limit_check_interval: int = field(default=5)

    # Inventory
    inventory_path: Path | None = field(default=None)

    # Transport
    transport: str = field(default="http")
    http_host: str = field(default="0.0.0.0")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @property
    def limit_check(self) -> LimitCheckSettings:
        """Initial enforcement schedule seeded into the settings store."""
        return LimitCheckSettings(
            enabled=self.limit_check_enabled,
            interval_minutes=self.limit_check_interval,
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment

        Raises:
            FileNotFoundError: If host key verification is required but no
                known_hosts file can be found
        """
        inventory = os.getenv("SHELLFLEET_INVENTORY", "").strip()
        return cls(
            connect_timeout=cls._get_float("SHELLFLEET_CONNECT_TIMEOUT", 10.0),
            command_timeout=cls._get_float("SHELLFLEET_COMMAND_TIMEOUT", 60.0),
            known_hosts=cls._get_known_hosts(),
            host_pause=cls._get_float("SHELLFLEET_HOST_PAUSE", 1.0),
            kill_grace=cls._get_float("SHELLFLEET_KILL_GRACE", 0.5),
            limit_check_enabled=cls._get_bool("SHELLFLEET_LIMIT_CHECK_ENABLED", True),
            limit_check_interval=cls._get_interval(),
            inventory_path=Path(os.path.expanduser(inventory)) if inventory else None,
            transport=cls._get_transport(),
            http_host=os.getenv("SHELLFLEET_HTTP_HOST", "0.0.0.0"),
            http_port=cls._get_int("SHELLFLEET_HTTP_PORT", 8000),
            log_level=os.getenv("SHELLFLEET_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("SHELLFLEET_LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get positive float from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

        if parsed <= 0:
            logger.warning("%s must be > 0, got %s. Using default: %s", key, value, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @classmethod
    def _get_interval(cls) -> int:
        interval = cls._get_int("SHELLFLEET_LIMIT_CHECK_INTERVAL", 5)
        if not 1 <= interval <= 59:
            logger.warning(
                "SHELLFLEET_LIMIT_CHECK_INTERVAL must be between 1 and 59, got %d. "
                "Using default: 5",
                interval,
            )
            return 5
        return interval

    @staticmethod
    def _get_transport() -> str:
        """Get transport from environment with validation.

        Returns:
            Transport type ("http" or "stdio")
        """
        transport = os.getenv("SHELLFLEET_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "http"

    @staticmethod
    def _get_known_hosts() -> str | None:
        """Path to known_hosts file, or None to disable verification.

        Environment: SHELLFLEET_KNOWN_HOSTS
        Default: ~/.ssh/known_hosts (must exist)
        Special value: "none" disables verification (MITM vulnerable)

        Raises:
            FileNotFoundError: If the known_hosts file doesn't exist
        """
        value = os.getenv("SHELLFLEET_KNOWN_HOSTS", "").strip()

        if value.lower() == "none":
            logger.critical(
                "SSH host key verification DISABLED (SHELLFLEET_KNOWN_HOSTS=none). "
                "Connections are vulnerable to man-in-the-middle attacks."
            )
            return None

        if value:
            custom_path = Path(os.path.expanduser(value))
            if not custom_path.exists():
                raise FileNotFoundError(
                    f"SSH host key verification required but known_hosts file "
                    f"not found: {custom_path}\n"
                    f"Add host keys with: ssh-keyscan <address> >> {custom_path}\n"
                    f"Or disable verification (NOT RECOMMENDED): "
                    f"export SHELLFLEET_KNOWN_HOSTS=none"
                )
            return str(custom_path)

        default = Path.home() / ".ssh" / "known_hosts"
        if not default.exists():
            raise FileNotFoundError(
                "SSH host key verification required but ~/.ssh/known_hosts not found.\n"
                "Add host keys with: ssh-keyscan <address> >> ~/.ssh/known_hosts\n"
                "Or disable verification (NOT RECOMMENDED): "
                "export SHELLFLEET_KNOWN_HOSTS=none"
            )
        return str(default)
