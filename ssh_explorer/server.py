"""SSH Explorer FastMCP server.

Thin wrapper exposing directory listing, file reading and file writing as
MCP tools. All remote logic lives in services/.
"""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from ssh_explorer.models import ConnectionTarget
from ssh_explorer.services import (
    RemoteError,
    get_pool,
    get_settings,
    list_directory as list_remote_directory,
    read_file as read_remote_file,
    write_file as write_remote_file,
)
from ssh_explorer.utils.console import ColorfulFormatter


def _configure_logging() -> None:
    """Configure colorful logging for the ssh_explorer package.

    Called at module load so logging is ready however the server starts.
    """
    settings = get_settings()
    use_colors = settings.log_colors and sys.stderr.isatty()

    package_logger = logging.getLogger("ssh_explorer")
    package_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    # Suppress noisy third-party loggers
    for noisy_logger in ["asyncssh", "uvicorn", "uvicorn.access", "fastmcp", "starlette"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


def _target(connection: str, password: str | None, key_file: str | None) -> ConnectionTarget:
    try:
        return ConnectionTarget.parse(
            connection,
            password=password,
            key_file=key_file,
            default_user=get_settings().default_user,
        )
    except ValueError as e:
        raise ToolError(str(e)) from e


async def list_directory(
    connection: str,
    path: str = "",
    password: str | None = None,
    key_file: str | None = None,
) -> list[dict[str, Any]]:
    """List a remote directory.

    Args:
        connection: Remote endpoint as user@host[:port]
        path: Directory to list (login directory when empty)
        password: Password, if not using key authentication
        key_file: Path to a private key on this machine

    Returns:
        Entries with name, kind, size, permissions and modified fields.
    """
    target = _target(connection, password, key_file)
    settings = get_settings()
    try:
        entries = await list_remote_directory(
            get_pool(), target, path or None, timeout=settings.command_timeout
        )
    except (RemoteError, ValueError) as e:
        raise ToolError(str(e)) from e
    return [entry.to_dict() for entry in entries]


async def read_file(
    connection: str,
    path: str,
    password: str | None = None,
    key_file: str | None = None,
) -> str:
    """Read a remote text file.

    Args:
        connection: Remote endpoint as user@host[:port]
        path: File to read
        password: Password, if not using key authentication
        key_file: Path to a private key on this machine
    """
    target = _target(connection, password, key_file)
    settings = get_settings()
    try:
        return await read_remote_file(
            get_pool(),
            target,
            path,
            max_size=settings.max_file_size,
            timeout=settings.command_timeout,
        )
    except (RemoteError, ValueError) as e:
        raise ToolError(str(e)) from e


async def write_file(
    connection: str,
    path: str,
    content: str,
    password: str | None = None,
    key_file: str | None = None,
) -> str:
    """Replace a remote file's content. Empty content is refused.

    Args:
        connection: Remote endpoint as user@host[:port]
        path: File to write
        content: New file content
        password: Password, if not using key authentication
        key_file: Path to a private key on this machine
    """
    target = _target(connection, password, key_file)
    try:
        await write_remote_file(get_pool(), target, path, content)
    except (RemoteError, ValueError) as e:
        raise ToolError(str(e)) from e
    return f"Wrote {len(content.encode('utf-8'))} bytes to {target.key}:{path}"


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Close pooled sessions on shutdown."""
    logger.info("SSH Explorer server starting up")
    pool = get_pool()
    try:
        yield {}
    finally:
        logger.info("SSH Explorer server shutting down")
        if pool.pool_size > 0:
            logger.info(
                "Closing %d active session(s): %s",
                pool.pool_size,
                ", ".join(pool.active_targets),
            )
        await pool.close_all()
        logger.info("SSH Explorer server shutdown complete")


def create_server() -> FastMCP:
    """Create the MCP server with tools and health route.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP("ssh_explorer", lifespan=app_lifespan)

    server.tool()(list_directory)
    server.tool()(read_file)
    server.tool()(write_file)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
