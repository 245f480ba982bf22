"""Session lifecycle models."""

from enum import Enum


class SessionState(Enum):
    """Connection state of a remote session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
