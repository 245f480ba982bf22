"""Colorful console logging formatter."""

import logging
import re
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Longest prefix wins, so order does not matter
COMPONENT_COLORS = {
    "ssh_explorer.server": COLORS["bright_cyan"],
    "ssh_explorer.services.pool": COLORS["bright_magenta"],
    "ssh_explorer.services.session": COLORS["bright_blue"],
    "ssh_explorer.services.transport": COLORS["cyan"],
    "ssh_explorer.services": COLORS["cyan"],
    "ssh_explorer.config": COLORS["green"],
}

TARGET_PATTERN = re.compile(r"([\w.\-]+@[\w.\-]+:\d+)")
POOL_SIZE_PATTERN = re.compile(r"(pool_size=\d+(?:/\d+)?)")
DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?s)\b")


class ColorfulFormatter(logging.Formatter):
    """Log formatter with component highlighting.

    Renders ``HH:MM:SS.mmm | LEVEL | component | message``.
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _component_color(self, name: str) -> str:
        matches = [prefix for prefix in COMPONENT_COLORS if name.startswith(prefix)]
        if not matches:
            return COLORS["white"]
        return COMPONENT_COLORS[max(matches, key=len)]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt:%H:%M:%S}.{int(record.msecs):03d}"

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name.removeprefix("ssh_explorer.")
        return self._colorize(f"{name:<20}", self._component_color(record.name))

    def _highlight(self, message: str) -> str:
        if not self.use_colors:
            return message
        reset = COLORS["reset"]
        message = TARGET_PATTERN.sub(f"{COLORS['bright_magenta']}\\1{reset}", message)
        message = POOL_SIZE_PATTERN.sub(f"{COLORS['cyan']}\\1{reset}", message)
        return DURATION_PATTERN.sub(f"{COLORS['bright_yellow']}\\1{reset}", message)

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._colorize(
            f"{record.levelname:<8}", LEVEL_COLORS.get(record.levelname, COLORS["white"])
        )
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
