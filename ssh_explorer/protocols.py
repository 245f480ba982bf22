"""Protocol interfaces for dependency inversion.

The session state machine depends only on these capabilities, never on a
specific SSH library:

    class FakeChannel:
        is_closed = False

        async def execute(self, request):
            return CommandResult.from_output(0, "ok\\n")

        async def transfer(self, remote_path, content):
            pass

        def close(self):
            self.is_closed = True
"""

from typing import Protocol, runtime_checkable

from ssh_explorer.models import CommandRequest, CommandResult, ConnectionTarget


@runtime_checkable
class RemoteChannel(Protocol):
    """An open, authenticated connection to one target."""

    @property
    def is_closed(self) -> bool:
        """Whether the underlying connection has gone away."""
        ...

    async def execute(self, request: CommandRequest) -> CommandResult:
        """Run a command and collect its output.

        Raises:
            TransportError: If the connection fails mid-command
        """
        ...

    async def transfer(self, remote_path: str, content: bytes) -> None:
        """Write ``content`` to ``remote_path``, replacing it.

        Raises:
            TransportError: If the connection fails
            RemoteFileError: If the remote side refuses the write
        """
        ...

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        ...


@runtime_checkable
class ChannelConnector(Protocol):
    """Opens channels to connection targets."""

    async def open(self, target: ConnectionTarget) -> RemoteChannel:
        """Connect and authenticate.

        Raises:
            AuthenticationError: If credentials are rejected
            TransportError: If the host cannot be reached
        """
        ...


__all__ = ["ChannelConnector", "RemoteChannel"]
