"""SSH Explorer: pooled SSH sessions for browsing and editing remote files."""

__version__ = "0.1.0"
