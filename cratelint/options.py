"""Command line option values: output format, color choice and log level."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum


class Format(Enum):
    """The format diagnostics and logs are written in."""

    HUMAN = "human"
    JSON = "json"

    @classmethod
    def parse(cls, s: str) -> "Format":
        """Parse a format name, ignoring case."""
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"unknown output format '{s}' specified") from None


class Color(Enum):
    """When to color output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"

    @classmethod
    def parse(cls, s: str) -> "Color":
        """Parse a color option, ignoring case."""
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"unknown color option '{s}' specified") from None

    def resolve(self, is_tty: bool) -> bool:
        """Whether to use color on a stream that is or is not a terminal."""
        if self is Color.AUTO:
            return bool(is_tty)
        return self is Color.ALWAYS


class LevelFilter(IntEnum):
    """The most verbose level of log message that is emitted."""

    OFF = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5


def parse_level(s: str) -> LevelFilter:
    """Parse a log level name, ignoring case."""
    try:
        return LevelFilter[s.upper()]
    except KeyError:
        raise ValueError(f"failed to parse level '{s}'") from None


_PAINT = {
    LevelFilter.ERROR: "\x1b[31m",
    LevelFilter.WARN: "\x1b[33m",
    LevelFilter.INFO: "\x1b[32m",
    LevelFilter.DEBUG: "\x1b[34m",
    LevelFilter.TRACE: "\x1b[35m",
}
_RESET = "\x1b[0m"


def format_log_line(
    level: LevelFilter,
    message: str,
    format: Format,
    color: bool,
    now: datetime | None = None,
) -> str:
    """Render one log record the way it is written to stderr.

    ``now`` defaults to the current UTC time.
    """
    if level is LevelFilter.OFF:
        raise ValueError("a log record cannot have level 'off'")
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    name = level.name
    if format is Format.JSON:
        return (
            '{"type":"log","fields":{"timestamp":"'
            + now.isoformat()
            + '","level":"'
            + name
            + '","message":"'
            + message
            + '"}}'
        )

    date = now.strftime("%Y-%m-%d %H:%M:%S")
    if color:
        painted = f"{_PAINT[level]}{name}{_RESET}"
        return f"{date} [{painted}] {message}{_RESET}"
    return f"{date} [{name}] {message}"