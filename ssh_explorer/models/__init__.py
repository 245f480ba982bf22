"""Data models for SSH Explorer."""

from ssh_explorer.models.command import CommandRequest, CommandResult
from ssh_explorer.models.entry import EntryKind, FileEntry
from ssh_explorer.models.session import SessionState
from ssh_explorer.models.target import ConnectionTarget

__all__ = [
    "CommandRequest",
    "CommandResult",
    "ConnectionTarget",
    "EntryKind",
    "FileEntry",
    "SessionState",
]
