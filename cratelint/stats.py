"""Counts of diagnostics per check and the summary printed at the end of a run."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass

from .options import Color, Format, LevelFilter

_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_YELLOW = "\x1b[33m"
_BLUE = "\x1b[34m"
_RESET = "\x1b[0m"

_CHECKS = ("advisories", "bans", "licenses", "sources")


def _paint(code: str, text: str) -> str:
    return f"{code}{text}{_RESET}"


@dataclass
class Stats:
    """Diagnostic counts for one check."""

    errors: int = 0
    warnings: int = 0
    notes: int = 0
    helps: int = 0


@dataclass
class AllStats:
    """Diagnostic counts for each check that was run."""

    advisories: Stats | None = None
    bans: Stats | None = None
    licenses: Stats | None = None
    sources: Stats | None = None

    def _present(self) -> list[tuple[str, Stats]]:
        return [(name, s) for name in _CHECKS if (s := getattr(self, name)) is not None]

    def total_errors(self) -> int:
        """The number of errors across all checks."""
        return sum(s.errors for _, s in self._present())

    def to_json(self) -> dict:
        """A JSON-ready dict, leaving out checks that were not run."""
        return {name: asdict(s) for name, s in self._present()}


def _status(stats: Stats, color: bool) -> str:
    if stats.errors > 0:
        return _paint(_RED, "FAILED") if color else "FAILED"
    return _paint(_GREEN, "ok") if color else "ok"


def write_min_stats(stats: AllStats, color: bool) -> str:
    """A one line summary saying whether each check passed."""
    summary = "".join(f"{name} {_status(s, color)}, " for name, s in stats._present())
    return summary[:-2] + "\n"


def write_full_stats(stats: AllStats, color: bool) -> str:
    """A table with the count of each kind of diagnostic per check."""
    present = stats._present()
    widest = max(
        (len(name) + (len("FAILED") if s.errors > 0 else len("ok")) for name, s in present),
        default=0,
    )
    column = widest + 2 + (9 if color else 0)

    lines = []
    for name, s in present:
        head = f"{name} {_status(s, color)}".rjust(column)
        notes = s.notes + s.helps
        if color:
            counts = (
                f"{_paint(_RED, str(s.errors))} errors, "
                f"{_paint(_YELLOW, str(s.warnings))} warnings, "
                f"{_paint(_BLUE, str(notes))} notes"
            )
        else:
            counts = f"{s.errors} errors, {s.warnings} warnings, {notes} notes"
        lines.append(f"{head}: {counts}\n")
    return "".join(lines)


def print_stats(
    stats: AllStats,
    show_stats: bool,
    log_level: LevelFilter,
    format: Format,
    color: Color,
) -> None:
    """Print the summary: to stdout for humans, as JSON to stderr otherwise."""
    if format is Format.HUMAN:
        use_color = color.resolve(sys.stdout.isatty())
        summary = ""
        if show_stats or log_level > LevelFilter.WARN:
            summary = write_full_stats(stats, use_color)
        elif log_level != LevelFilter.OFF and log_level <= LevelFilter.WARN:
            summary = write_min_stats(stats, use_color)
        if summary:
            sys.stdout.write(summary)
            sys.stdout.flush()
    else:
        payload = {"type": "summary", "fields": stats.to_json()}
        sys.stderr.write(json.dumps(payload, separators=(",", ":"), sort_keys=True) + "\n")
        sys.stderr.flush()