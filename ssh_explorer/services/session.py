"""Remote session with serialized execution and lazy reconnection.

State machine:
- DISCONNECTED -> CONNECTING -> READY on a successful connect
- CONNECTING -> FAILED on authentication or transport failure
- READY -> FAILED on a transport error or command timeout
- FAILED -> CONNECTING on the next request (one reconnect attempt)
- any state -> DISCONNECTED on close()

Commands run one at a time in submission order. ``asyncio.Lock`` wakes
waiters first-in first-out, which gives the FIFO guarantee.

Every failure or close bumps a generation counter. A request remembers the
generation it was submitted under, so requests that were already queued
when the session broke fail fast instead of reconnecting behind its back.
"""

import asyncio
import logging
from datetime import datetime

from ssh_explorer.models import (
    CommandRequest,
    CommandResult,
    ConnectionTarget,
    SessionState,
)
from ssh_explorer.protocols import ChannelConnector, RemoteChannel
from ssh_explorer.services.errors import (
    AuthenticationError,
    CommandFailedError,
    RemoteFileError,
    TransportError,
)
from ssh_explorer.utils.shell import quote_path, temporary_sibling
from ssh_explorer.utils.validation import validate_content, validate_path

logger = logging.getLogger(__name__)


class RemoteSession:
    """One managed connection to a remote target."""

    def __init__(
        self,
        target: ConnectionTarget,
        connector: ChannelConnector,
        reconnect_budget: int = 3,
        transfer_timeout: float | None = 120.0,
    ) -> None:
        """Initialize session. No connection is made until first use.

        Args:
            target: Remote endpoint
            connector: Opens channels for this session
            reconnect_budget: Consecutive failed connects before the session
                is considered exhausted
            transfer_timeout: Seconds allowed for a file upload
        """
        self.target = target
        self.state = SessionState.DISCONNECTED
        self.last_used = datetime.now()
        self.leases = 0

        self._connector = connector
        self._channel: RemoteChannel | None = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self._closed = False
        self._auth_failed = False
        self._connect_failures = 0
        self._reconnect_budget = reconnect_budget
        self._transfer_timeout = transfer_timeout

    def __repr__(self) -> str:
        return f"RemoteSession({self.target.key}, state={self.state.value})"

    def touch(self) -> None:
        """Update last-used timestamp."""
        self.last_used = datetime.now()

    @property
    def is_closed(self) -> bool:
        """Whether close() was called."""
        return self._closed

    @property
    def exhausted(self) -> bool:
        """Whether reconnecting is pointless without new credentials."""
        return self._auth_failed or self._connect_failures >= self._reconnect_budget

    @property
    def is_ready(self) -> bool:
        return (
            self.state is SessionState.READY
            and self._channel is not None
            and not self._channel.is_closed
        )

    def _fail(self, reason: object) -> None:
        """Mark the session failed and drop the presumed-corrupt channel."""
        logger.warning("Session %s failed: %s", self.target.key, reason)
        if not self._closed:
            self.state = SessionState.FAILED
        self._generation += 1
        if self._channel is not None:
            self._channel.close()
            self._channel = None

    async def _connect_locked(self) -> None:
        if self.is_ready:
            return

        if self.state is SessionState.READY:
            logger.info("Channel to %s is stale, reconnecting", self.target.key)
        elif self.state is SessionState.FAILED:
            logger.info("Reconnecting to %s after failure", self.target.key)

        self.state = SessionState.CONNECTING
        self._closed = False
        generation = self._generation
        try:
            channel = await self._connector.open(self.target)
        except AuthenticationError:
            self._auth_failed = True
            if not self._closed:
                self.state = SessionState.FAILED
            self._generation += 1
            logger.error("Authentication rejected for %s", self.target.key)
            raise
        except TransportError as e:
            self._connect_failures += 1
            if not self._closed:
                self.state = SessionState.FAILED
            self._generation += 1
            logger.warning(
                "Connect to %s failed (%d/%d): %s",
                self.target.key,
                self._connect_failures,
                self._reconnect_budget,
                e.reason,
            )
            raise

        # close() ran while the connector was waiting
        if generation != self._generation:
            channel.close()
            logger.info("Discarded channel to %s opened after close", self.target.key)
            raise TransportError(self.target.key, "connect", "session closed while connecting")

        self._channel = channel
        self._auth_failed = False
        self._connect_failures = 0
        self.state = SessionState.READY
        self.touch()

    async def _ensure_ready(self, generation: int, operation: str) -> RemoteChannel:
        if generation != self._generation:
            raise TransportError(
                self.target.key,
                operation,
                "session failed or closed while the request was queued",
            )
        await self._connect_locked()
        if self._channel is None:
            raise TransportError(self.target.key, operation, "no channel after connect")
        return self._channel

    async def connect(self) -> None:
        """Connect and authenticate. No-op when already ready.

        Raises:
            AuthenticationError: If credentials are rejected
            TransportError: If the host cannot be reached
        """
        async with self._lock:
            await self._connect_locked()

    async def _execute_locked(
        self,
        channel: RemoteChannel,
        request: CommandRequest,
        operation: str = "execute",
    ) -> CommandResult:
        try:
            result = await asyncio.wait_for(channel.execute(request), timeout=request.timeout)
        except asyncio.TimeoutError:
            reason = f"timed out after {request.timeout}s"
            self._fail(reason)
            raise TransportError(self.target.key, operation, reason) from None
        except TransportError as e:
            self._fail(e.reason)
            raise

        self.touch()
        return result

    async def _remove_locked(self, channel: RemoteChannel, path: str) -> None:
        """Remove a leftover temporary file.

        A non-zero exit is ignored. A transport failure is logged so the
        caller's original error is the one that propagates.
        """
        request = CommandRequest(f"rm -f -- {quote_path(path)}")
        try:
            await self._execute_locked(channel, request, "upload")
        except TransportError as e:
            logger.warning(
                "Could not remove %s on %s: %s", path, self.target.key, e.reason
            )

    async def execute(self, request: CommandRequest) -> CommandResult:
        """Run a command, connecting first if needed.

        Raises:
            AuthenticationError: If the implicit connect is rejected
            TransportError: If the connection fails or the command times out
        """
        generation = self._generation
        async with self._lock:
            channel = await self._ensure_ready(generation, "execute")
            logger.debug("Executing on %s: %s", self.target.key, request.shell_command)
            return await self._execute_locked(channel, request)

    async def upload_content(self, path: str, content: bytes | str) -> None:
        """Atomically replace a remote file's content.

        Writes a temporary sibling file first and renames it over ``path``,
        so readers see either the old or the new content.

        Raises:
            EmptyContentError: If content is empty (before any network use)
            TransportError: If the connection fails
            RemoteFileError: If the temporary file cannot be written
            CommandFailedError: If the rename fails
        """
        path = validate_path(path)
        data = content.encode("utf-8") if isinstance(content, str) else content
        validate_content(path, data)
        temp_path = temporary_sibling(path)

        generation = self._generation
        async with self._lock:
            channel = await self._ensure_ready(generation, "upload")

            try:
                await asyncio.wait_for(
                    channel.transfer(temp_path, data), timeout=self._transfer_timeout
                )
            except asyncio.TimeoutError:
                reason = f"upload timed out after {self._transfer_timeout}s"
                self._fail(reason)
                raise TransportError(self.target.key, "upload", reason) from None
            except TransportError as e:
                self._fail(e.reason)
                raise
            except RemoteFileError:
                await self._remove_locked(channel, temp_path)
                raise

            rename = CommandRequest(f"mv -f -- {quote_path(temp_path)} {quote_path(path)}")
            result = await self._execute_locked(channel, rename, "upload")
            if not result.ok:
                await self._remove_locked(channel, temp_path)
                raise CommandFailedError(self.target.key, "upload", result)

        logger.info("Wrote %d bytes to %s on %s", len(data), path, self.target.key)

    def close(self) -> None:
        """Release the channel. Idempotent."""
        if self._channel is not None:
            self._channel.close()
            self._channel = None
        if not self._closed:
            logger.debug("Closed session %s", self.target.key)
            self._generation += 1
        self._closed = True
        self.state = SessionState.DISCONNECTED
