"""asyncssh-backed remote channel.

Maps asyncssh failures onto the error taxonomy the session understands:
rejected credentials become AuthenticationError, anything that breaks the
connection becomes TransportError, and SFTP status errors become
RemoteFileError.
"""

import asyncio
import logging

import asyncssh

from ssh_explorer.models import CommandRequest, CommandResult, ConnectionTarget
from ssh_explorer.services.errors import (
    AuthenticationError,
    RemoteFileError,
    TransportError,
)

logger = logging.getLogger(__name__)


def _decode(data: bytes | str | None) -> str:
    """Decode command output, replacing undecodable bytes."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class AsyncSSHChannel:
    """RemoteChannel over one asyncssh client connection."""

    def __init__(self, target: ConnectionTarget, conn: asyncssh.SSHClientConnection) -> None:
        self.target = target
        self._conn = conn
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed or bool(self._conn.is_closed())

    async def execute(self, request: CommandRequest) -> CommandResult:
        try:
            result = await self._conn.run(
                request.shell_command,
                input=request.input,
                check=False,
                encoding=None,
            )
        except (asyncssh.Error, OSError) as e:
            raise TransportError(self.target.key, "execute", e) from e

        # returncode is None when the command was killed by a signal
        returncode = result.returncode if result.returncode is not None else -1
        return CommandResult.from_output(
            returncode,
            _decode(result.stdout),
            _decode(result.stderr),
        )

    async def transfer(self, remote_path: str, content: bytes) -> None:
        try:
            async with self._conn.start_sftp_client() as sftp:
                async with sftp.open(remote_path, "wb") as remote_file:
                    await remote_file.write(content)
        except asyncssh.SFTPError as e:
            raise RemoteFileError(self.target.key, "upload", f"{remote_path}: {e.reason}") from e
        except (asyncssh.Error, OSError) as e:
            raise TransportError(self.target.key, "upload", e) from e

        logger.debug(
            "Transferred %d bytes to %s on %s",
            len(content),
            remote_path,
            self.target.key,
        )

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._conn.close()


class AsyncSSHConnector:
    """ChannelConnector that opens asyncssh client connections."""

    def __init__(
        self,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = True,
        connect_timeout: float | None = 15.0,
    ) -> None:
        """Initialize connector.

        Args:
            known_hosts: Path to known_hosts file, or None to disable verification
            strict_host_key_checking: Whether to reject unknown host keys
            connect_timeout: Seconds allowed for TCP connect and handshake
        """
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking
        self._connect_timeout = connect_timeout

        if self._known_hosts is None:
            logger.warning(
                "SSH host key verification DISABLED - vulnerable to MITM attacks. "
                "Set SSH_EXPLORER_KNOWN_HOSTS to a valid known_hosts file path."
            )
        else:
            logger.info(
                "SSH host key verification enabled (known_hosts=%s, strict=%s)",
                self._known_hosts,
                self._strict_host_key,
            )

    async def _connect(
        self, target: ConnectionTarget, known_hosts: str | None
    ) -> asyncssh.SSHClientConnection:
        client_keys = [target.key_file] if target.key_file else None
        return await asyncssh.connect(
            target.host,
            port=target.port,
            username=target.username,
            password=target.password,
            client_keys=client_keys,
            known_hosts=known_hosts,
            connect_timeout=self._connect_timeout,
        )

    async def open(self, target: ConnectionTarget) -> AsyncSSHChannel:
        """Connect and authenticate to ``target``."""
        logger.info("Opening SSH connection to %s", target.key)
        try:
            try:
                conn = await self._connect(target, self._known_hosts)
            except asyncssh.HostKeyNotVerifiable as e:
                if self._strict_host_key:
                    logger.error(
                        "Host key verification failed for %s: %s. "
                        "Add the host key to %s or set "
                        "SSH_EXPLORER_STRICT_HOST_KEY_CHECKING=false",
                        target.key,
                        e,
                        self._known_hosts,
                    )
                    raise
                logger.warning(
                    "Host key not verified for %s (strict mode disabled): %s",
                    target.key,
                    e,
                )
                conn = await self._connect(target, None)
        except asyncssh.PermissionDenied as e:
            raise AuthenticationError(target.key, "connect", e) from e
        except (asyncssh.Error, OSError, asyncio.TimeoutError) as e:
            raise TransportError(target.key, "connect", e) from e

        logger.info("SSH connection established to %s", target.key)
        return AsyncSSHChannel(target, conn)
