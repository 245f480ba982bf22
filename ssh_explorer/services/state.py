"""Global state management for SSH Explorer."""

from ssh_explorer.config import Settings
from ssh_explorer.services.pool import SessionPool
from ssh_explorer.services.transport import AsyncSSHConnector

# Global state (initialized on first access)
_settings: Settings | None = None
_pool: SessionPool | None = None


def get_settings() -> Settings:
    """Get or create settings."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def get_pool() -> SessionPool:
    """Get or create the session pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        connector = AsyncSSHConnector(
            known_hosts=settings.known_hosts,
            strict_host_key_checking=settings.strict_host_key_checking,
            connect_timeout=settings.connect_timeout,
        )
        _pool = SessionPool(
            connector,
            idle_timeout=settings.idle_timeout,
            max_size=settings.max_pool_size,
            reconnect_budget=settings.reconnect_budget,
            transfer_timeout=settings.transfer_timeout,
        )
    return _pool


def reset_state() -> None:
    """Reset global state for testing.

    This function clears the singleton instances, allowing tests
    to start with fresh state. Should only be used in test fixtures.
    """
    global _settings, _pool
    _settings = None
    _pool = None


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def set_pool(pool: SessionPool) -> None:
    """Set the global pool instance.

    Allows tests to inject a pool with a fake connector.
    """
    global _pool
    _pool = pool
