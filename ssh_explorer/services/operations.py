"""Remote file operations built on the session pool."""

import logging

from ssh_explorer.models import CommandRequest, ConnectionTarget, FileEntry
from ssh_explorer.services.errors import CommandFailedError
from ssh_explorer.services.pool import SessionPool
from ssh_explorer.utils.listing import parse_listing
from ssh_explorer.utils.shell import quote_path
from ssh_explorer.utils.validation import validate_content, validate_path

logger = logging.getLogger(__name__)


async def list_directory(
    pool: SessionPool,
    target: ConnectionTarget,
    path: str | None = None,
    timeout: float | None = 30.0,
) -> list[FileEntry]:
    """List directory contents with details.

    Args:
        pool: Session pool
        target: Remote endpoint
        path: Directory to list; the login directory when omitted
        timeout: Command timeout in seconds

    Returns:
        Entries in listing order, without ``.`` and ``..``.

    Raises:
        CommandFailedError: If the directory cannot be listed.
    """
    command = "ls -la"
    if path:
        command = f"ls -la -- {quote_path(validate_path(path))}"

    async with pool.session(target) as session:
        result = await session.execute(CommandRequest(command, timeout=timeout))

    if not result.ok:
        raise CommandFailedError(target.key, f"list {path or '~'}", result)

    entries = parse_listing(result.stdout_lines)
    logger.debug("Listed %d entries in %s on %s", len(entries), path or "~", target.key)
    return entries


async def read_file(
    pool: SessionPool,
    target: ConnectionTarget,
    path: str,
    max_size: int = 1_048_576,
    timeout: float | None = 30.0,
) -> str:
    """Read file contents, limited to max_size bytes.

    Returns:
        File contents, undecodable bytes replaced.

    Raises:
        CommandFailedError: If the file cannot be read.
    """
    path = validate_path(path)
    command = f"head -c {max_size} -- {quote_path(path)}"

    async with pool.session(target) as session:
        result = await session.execute(CommandRequest(command, timeout=timeout))

    if not result.ok:
        raise CommandFailedError(target.key, f"read {path}", result)

    return result.output


async def write_file(
    pool: SessionPool,
    target: ConnectionTarget,
    path: str,
    content: str,
) -> None:
    """Replace a remote file's content atomically.

    Raises:
        EmptyContentError: If content is empty; nothing is sent.
        CommandFailedError: If the remote rename fails.
    """
    path = validate_path(path)
    validate_content(path, content.encode("utf-8"))

    async with pool.session(target) as session:
        await session.upload_content(path, content)
