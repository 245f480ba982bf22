"""Configuration for SSH Explorer."""

from ssh_explorer.config.settings import Settings

__all__ = ["Settings"]
