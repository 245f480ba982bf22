"""Shell command safety utilities."""

import posixpath
import shlex
import uuid


def quote_path(path: str) -> str:
    """Safely quote a path for shell commands.

    Args:
        path: File system path to quote

    Returns:
        Shell-safe quoted path
    """
    return shlex.quote(path)


def temporary_sibling(path: str) -> str:
    """Hidden temporary path in the same directory as ``path``.

    Same directory keeps the final ``mv`` a rename on one filesystem.
    """
    directory, name = posixpath.split(path)
    temp_name = f".{name}.{uuid.uuid4().hex[:12]}.tmp"
    return posixpath.join(directory, temp_name) if directory else temp_name
