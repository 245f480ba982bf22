"""Directory listing entry models."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class EntryKind(str, Enum):
    """Kind of a remote filesystem item."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    UNKNOWN = "unknown"

    @classmethod
    def from_permissions(cls, permissions: str) -> "EntryKind":
        """Derive the kind from the first character of an ``ls -l`` mode."""
        if permissions.startswith("d"):
            return cls.DIRECTORY
        if permissions.startswith("l"):
            return cls.SYMLINK
        return cls.FILE


@dataclass(frozen=True)
class FileEntry:
    """One parsed line of a directory listing."""

    name: str
    kind: EntryKind = EntryKind.UNKNOWN
    size: int | None = None
    permissions: str | None = None
    modified: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data
