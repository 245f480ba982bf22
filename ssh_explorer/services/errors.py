"""Remote operation errors."""

from ssh_explorer.models import CommandResult


class RemoteError(Exception):
    """Remote operation failed for a connection target."""

    def __init__(self, target: str, operation: str, reason: object):
        """Initialize remote error.

        Args:
            target: Target key (``user@host:port``)
            operation: Operation that failed (connect, execute, upload, ...)
            reason: Underlying exception or message
        """
        self.target = target
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed for {target}: {reason}")


class AuthenticationError(RemoteError):
    """Credentials were rejected. Not retried automatically."""


class TransportError(RemoteError):
    """Connection dropped, timed out or host unreachable."""


class RemoteFileError(RemoteError):
    """File transfer failed on the remote side; the connection is still usable."""


class CommandFailedError(RemoteError):
    """Remote command exited with a non-zero status."""

    def __init__(self, target: str, operation: str, result: CommandResult):
        self.result = result
        reason = result.error.strip() or f"exit status {result.returncode}"
        super().__init__(target, operation, reason)


class PoolExhaustedError(Exception):
    """Session pool is full and every session is in use."""
