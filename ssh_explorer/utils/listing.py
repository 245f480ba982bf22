"""Parser for ``ls -la`` style directory listings.

Listing output is platform and locale dependent, so parsing is best effort:
lines that do not look like a long-format entry become UNKNOWN entries named
by the raw line instead of failing the whole listing.

Symlinks keep their ``name -> target`` text in the name. The long format has
no escaping, so the arrow cannot be told apart from a file name that
contains one.
"""

from collections.abc import Iterable

from ssh_explorer.models.entry import EntryKind, FileEntry

# permissions, links, owner, group, size, month, day, time/year
MIN_FIELDS = 8

SKIPPED_NAMES = frozenset({".", ".."})


def _parse_size(value: str) -> int | None:
    try:
        size = int(value)
    except ValueError:
        return None
    return size if size >= 0 else None


def parse_line(line: str) -> FileEntry | None:
    """Parse one listing line.

    Returns:
        FileEntry, or None for blank lines and the ``total`` summary line.
    """
    fields = line.split()
    if not fields or fields[0] == "total":
        return None

    if len(fields) <= MIN_FIELDS:
        # Too short to carry a name: keep the raw text so nothing is hidden
        return FileEntry(name=line.strip(), kind=EntryKind.UNKNOWN)

    permissions = fields[0]
    return FileEntry(
        name=" ".join(fields[MIN_FIELDS:]),
        kind=EntryKind.from_permissions(permissions),
        size=_parse_size(fields[4]),
        permissions=permissions,
        modified=" ".join(fields[5:MIN_FIELDS]),
    )


def parse_listing(lines: Iterable[str]) -> list[FileEntry]:
    """Convert listing lines to entries, preserving input order.

    Never raises; ``.`` and ``..`` are dropped.
    """
    entries = []
    for line in lines:
        entry = parse_line(line)
        if entry is not None and entry.name not in SKIPPED_NAMES:
            entries.append(entry)
    return entries
