"""Utilities for SSH Explorer."""

from ssh_explorer.utils.console import ColorfulFormatter
from ssh_explorer.utils.listing import parse_line, parse_listing
from ssh_explorer.utils.shell import quote_path, temporary_sibling
from ssh_explorer.utils.validation import (
    EmptyContentError,
    validate_content,
    validate_host,
    validate_path,
)

__all__ = [
    "ColorfulFormatter",
    "EmptyContentError",
    "parse_line",
    "parse_listing",
    "quote_path",
    "temporary_sibling",
    "validate_content",
    "validate_host",
    "validate_path",
]
