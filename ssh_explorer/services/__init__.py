"""Services for SSH Explorer."""

from ssh_explorer.services.errors import (
    AuthenticationError,
    CommandFailedError,
    PoolExhaustedError,
    RemoteError,
    RemoteFileError,
    TransportError,
)
from ssh_explorer.services.operations import list_directory, read_file, write_file
from ssh_explorer.services.pool import SessionPool
from ssh_explorer.services.session import RemoteSession
from ssh_explorer.services.state import (
    get_pool,
    get_settings,
    reset_state,
    set_pool,
    set_settings,
)
from ssh_explorer.services.transport import AsyncSSHChannel, AsyncSSHConnector

__all__ = [
    "AsyncSSHChannel",
    "AsyncSSHConnector",
    "AuthenticationError",
    "CommandFailedError",
    "PoolExhaustedError",
    "RemoteError",
    "RemoteFileError",
    "RemoteSession",
    "SessionPool",
    "TransportError",
    "get_pool",
    "get_settings",
    "list_directory",
    "read_file",
    "reset_state",
    "set_pool",
    "set_settings",
    "write_file",
]
