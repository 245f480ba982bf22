"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PREFIX = "SSH_EXPLORER_"


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Command limits (seconds / bytes)
    command_timeout: float = field(default=30.0)
    transfer_timeout: float = field(default=120.0)
    connect_timeout: float = field(default=15.0)
    max_file_size: int = field(default=1_048_576)  # 1MB

    # Session pool
    idle_timeout: int = field(default=300)
    max_pool_size: int = field(default=16)
    reconnect_budget: int = field(default=3)
    default_user: str = field(default="root")

    # Host key verification (None disables it)
    known_hosts: str | None = field(default="~/.ssh/known_hosts")
    strict_host_key_checking: bool = field(default=True)

    # Server transport
    transport: str = field(default="stdio")
    http_host: str = field(default="127.0.0.1")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from ``SSH_EXPLORER_*`` environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            command_timeout=cls._get_float("COMMAND_TIMEOUT", 30.0),
            transfer_timeout=cls._get_float("TRANSFER_TIMEOUT", 120.0),
            connect_timeout=cls._get_float("CONNECT_TIMEOUT", 15.0),
            max_file_size=cls._get_int("MAX_FILE_SIZE", 1_048_576),
            idle_timeout=cls._get_int("IDLE_TIMEOUT", 300),
            max_pool_size=cls._get_int("MAX_POOL_SIZE", 16),
            reconnect_budget=cls._get_int("RECONNECT_BUDGET", 3),
            default_user=os.getenv(PREFIX + "DEFAULT_USER", "root"),
            known_hosts=cls._get_known_hosts(),
            strict_host_key_checking=cls._get_bool("STRICT_HOST_KEY_CHECKING", True),
            transport=cls._get_transport(),
            http_host=os.getenv(PREFIX + "HTTP_HOST", "127.0.0.1"),
            http_port=cls._get_int("HTTP_PORT", 8000),
            log_level=os.getenv(PREFIX + "LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key without prefix
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(PREFIX + key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s%s: %s, using default %d", PREFIX, key, value, default)
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(PREFIX + key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid number for %s%s: %s, using default %s", PREFIX, key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(PREFIX + key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_known_hosts() -> str | None:
        """Get known_hosts path; ``none`` disables verification."""
        value = os.getenv(PREFIX + "KNOWN_HOSTS")
        if value is None:
            return "~/.ssh/known_hosts"
        if value.strip().lower() in ("", "none"):
            return None
        return value.strip()

    @staticmethod
    def _get_transport() -> str:
        """Get transport from environment with validation.

        Returns:
            Transport type ("stdio" or "http")
        """
        transport = os.getenv(PREFIX + "TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "stdio"
