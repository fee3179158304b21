"""Where a run looks for its config, and how diagnostics are printed."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .diag import Diag, Diagnostic, Files, LabelStyle, Severity
from .krate import Krates
from .objgraph import ObjectGrapher, cs_diag_to_json, diag_to_json
from .options import Color, Format, LevelFilter
from .textgraph import TextGrapher

_CONFIG_NAME = "deny.toml"


@dataclass
class KrateContext:
    """Which crate graph a command works on."""

    manifest_path: Path
    workspace: bool = False
    exclude: list[str] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)
    no_default_features: bool = False
    all_features: bool = False
    features: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.manifest_path = Path(self.manifest_path)

    def get_config_path(self, config_path: str | Path | None) -> Path | None:
        """The config file to use.

        A given relative path is taken relative to the manifest's directory.
        Without one, the manifest's directory and each of its ancestors is
        searched for a ``deny.toml``; ``None`` is returned if there is none.
        """
        manifest_dir = self.manifest_path.parent
        if config_path is not None:
            cp = Path(config_path)
            return cp if cp.is_absolute() else manifest_dir / cp

        for directory in (manifest_dir, *manifest_dir.parents):
            candidate = directory / _CONFIG_NAME
            if candidate.exists():
                return candidate
        return None


@dataclass(frozen=True)
class LogContext:
    """How and how much output is written."""

    format: Format = Format.HUMAN
    color: Color = Color.AUTO
    log_level: LevelFilter = LevelFilter.WARN


_LEVEL_SEVERITY = {
    LevelFilter.OFF: None,
    LevelFilter.ERROR: Severity.ERROR,
    LevelFilter.WARN: Severity.WARNING,
    LevelFilter.INFO: Severity.NOTE,
    LevelFilter.DEBUG: Severity.HELP,
    LevelFilter.TRACE: Severity.HELP,
}


def log_level_to_severity(log_level: LevelFilter) -> Severity | None:
    """The least severe diagnostic shown at a log level, or None if nothing is."""
    return _LEVEL_SEVERITY[log_level]


_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_BLUE = "\x1b[34m"
_SEVERITY_STYLE = {
    Severity.BUG: "\x1b[1;31m",
    Severity.ERROR: "\x1b[1;31m",
    Severity.WARNING: "\x1b[1;33m",
    Severity.NOTE: "\x1b[1;32m",
    Severity.HELP: "\x1b[1;36m",
}


def _paint(style: str, text: str, color: bool) -> str:
    return f"{style}{text}{_RESET}" if color else text


def _render_human(diag: Diagnostic, files: Files, color: bool) -> str:
    sev_style = _SEVERITY_STYLE[diag.severity]
    head = diag.severity.name.lower()
    if diag.code is not None:
        head += f"[{diag.code}]"
    out = [f"{_paint(sev_style, head, color)}{_paint(_BOLD, ': ' + diag.message, color)}\n"]

    located = [
        (label, files.location(label.file_id, label.span.start)) for label in diag.labels
    ]
    width = max((len(str(loc.line + 1)) for _, loc in located), default=0)
    pad = " " * (width + 1)
    bar = _paint(_BLUE, "│", color)

    for label, loc in located:
        source_lines = files.source(label.file_id).split("\n")
        line_text = source_lines[loc.line].rstrip("\r") if loc.line < len(source_lines) else ""
        out.append(
            f"{pad}{_paint(_BLUE, '┌─', color)} "
            f"{files.name(label.file_id)}:{loc.line + 1}:{loc.column + 1}\n"
        )
        out.append(f"{pad}{bar}\n")
        out.append(f"{_paint(_BLUE, str(loc.line + 1).rjust(width), color)} {bar} {line_text}\n")
        length = max(1, min(len(label.span), len(line_text) - loc.column))
        primary = label.style is LabelStyle.PRIMARY
        marks = ("^" if primary else "-") * length
        if label.message:
            marks += " " + label.message
        mark_style = sev_style if primary else _BLUE
        out.append(f"{pad}{bar} {' ' * loc.column}{_paint(mark_style, marks, color)}\n")
    if located:
        out.append(f"{pad}{bar}\n")

    for note in diag.notes:
        first, *rest = note.rstrip("\n").split("\n")
        out.append(f"{pad}{_paint(_BLUE, '=', color)} {first}\n")
        out.extend(f"{pad}  {line}\n" for line in rest)

    out.append("\n")
    return "".join(out)


def _write_json(value: Any) -> None:
    sys.stderr.write(
        json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False) + "\n"
    )
    sys.stderr.flush()


class _Mode(Enum):
    HUMAN = "human"
    JSON = "json"


class DiagPrinter:
    """Writes diagnostics at or above a minimum severity to stderr."""

    def __init__(
        self,
        format: Format,
        max_severity: Severity,
        color: bool = False,
        krates: Krates | None = None,
    ) -> None:
        self.format = format
        self.max_severity = max_severity
        self.color = color
        self.text_grapher = TextGrapher(krates) if krates is not None else None
        self.object_grapher = ObjectGrapher(krates) if krates is not None else None

    @classmethod
    def create(cls, ctx: LogContext, krates: Krates | None) -> "DiagPrinter | None":
        """A printer for the context, or None if the log level turns output off.

        When ``krates`` is given, diagnostics about crates also show how each
        crate is included in the graph.
        """
        max_severity = log_level_to_severity(ctx.log_level)
        if max_severity is None:
            return None
        color = False
        if ctx.format is Format.HUMAN:
            color = ctx.color.resolve(sys.stderr.isatty())
        return cls(ctx.format, max_severity, color, krates)

    def _shown(self, severity: Severity) -> bool:
        return severity >= self.max_severity

    def print(self, diag: Diagnostic, files: Files) -> None:
        """Write a plain diagnostic."""
        if not self._shown(diag.severity):
            return
        if self.format is Format.HUMAN:
            sys.stderr.write(_render_human(diag, files, self.color))
            sys.stderr.flush()
        else:
            _write_json(cs_diag_to_json(diag, files))

    def print_krate_diag(self, diag: Diag, files: Files) -> None:
        """Write a diagnostic about crates, with their inclusion graphs if known."""
        if not self._shown(diag.diag.severity):
            return
        if self.format is Format.HUMAN:
            inner = diag.diag
            if self.text_grapher is not None:
                graphs = []
                for kid in diag.kids:
                    try:
                        graphs.append(self.text_grapher.write_graph(kid))
                    except LookupError:
                        continue
                inner = inner.with_notes(graphs)
            sys.stderr.write(_render_human(inner, files, self.color))
            sys.stderr.flush()
        else:
            _write_json(diag_to_json(diag, files, self.object_grapher))