"""Path and input validation utilities."""

from typing import Final


class EmptyContentError(ValueError):
    """Refused to write empty content over a remote file."""

    pass


# Characters that never belong in a host name and could enable injection
SUSPICIOUS_HOST_CHARS: Final[list[str]] = ["/", "\\", ";", "&", "|", "$", "`", " ", "\n", "\r", "\x00"]


def validate_path(path: str) -> str:
    """Validate a remote path before it is passed to a remote command.

    Args:
        path: The path to validate

    Returns:
        The path, unchanged

    Raises:
        ValueError: If the path is empty or contains control characters
    """
    if not path:
        raise ValueError("Path cannot be empty")

    # Null bytes truncate paths in C-level APIs
    if "\x00" in path:
        raise ValueError(f"Path contains null byte: {path!r}")

    if "\n" in path or "\r" in path:
        raise ValueError(f"Path contains a line break: {path!r}")

    return path


def validate_host(host: str) -> str:
    """Validate a host name.

    Args:
        host: The host name to validate

    Returns:
        Validated host name

    Raises:
        ValueError: If host name is invalid
    """
    if not host:
        raise ValueError("Host cannot be empty")

    if len(host) > 253:
        raise ValueError(f"Host name too long: {len(host)} chars")

    for char in SUSPICIOUS_HOST_CHARS:
        if char in host:
            raise ValueError(f"Host contains invalid characters: {host!r}")

    return host


def validate_content(path: str, content: bytes) -> bytes:
    """Reject empty writes so a remote file is never truncated by accident.

    Raises:
        EmptyContentError: If content is empty
    """
    if not content:
        raise EmptyContentError(f"Refusing to write empty content to {path}")
    return content
