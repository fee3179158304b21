"""Diagnostics, the source files they point into, and where they are sent."""

from __future__ import annotations

import bisect
import queue
import re
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Iterable, Iterator, NamedTuple
from urllib.parse import SplitResult, urlsplit

from .krate import Krates, LintLevel
from .spanned import Spanned


def _as_range(span: range | tuple[int, int]) -> range:
    return span if isinstance(span, range) else range(*span)


class Severity(IntEnum):
    """How serious a diagnostic is; larger values are more severe."""

    HELP = 1
    NOTE = 2
    WARNING = 3
    ERROR = 4
    BUG = 5


_LINT_SEVERITY = {
    LintLevel.WARN: Severity.WARNING,
    LintLevel.DENY: Severity.ERROR,
    LintLevel.ALLOW: Severity.NOTE,
}


def lint_severity(level: LintLevel) -> Severity:
    """The diagnostic severity used for a violated lint of the given level."""
    return _LINT_SEVERITY[level]


class LabelStyle(Enum):
    """Whether a label marks the main cause or supporting context."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Label:
    """A message attached to a span of a source file."""

    style: LabelStyle
    file_id: int
    span: range
    message: str = ""

    @classmethod
    def primary(cls, file_id: int, span: range | tuple[int, int]) -> "Label":
        """A label marking the main cause of a diagnostic."""
        return cls(LabelStyle.PRIMARY, file_id, _as_range(span))

    @classmethod
    def secondary(cls, file_id: int, span: range | tuple[int, int]) -> "Label":
        """A label giving context for a diagnostic."""
        return cls(LabelStyle.SECONDARY, file_id, _as_range(span))

    def with_message(self, message: Any) -> "Label":
        """A copy of this label carrying ``message``."""
        return replace(self, message=str(message))


@dataclass
class Diagnostic:
    """A message for the user, optionally pointing into source files."""

    severity: Severity
    message: str = ""
    code: str | None = None
    labels: list[Label] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @classmethod
    def error(cls) -> "Diagnostic":
        return cls(Severity.ERROR)

    @classmethod
    def warning(cls) -> "Diagnostic":
        return cls(Severity.WARNING)

    @classmethod
    def note(cls) -> "Diagnostic":
        return cls(Severity.NOTE)

    @classmethod
    def help(cls) -> "Diagnostic":
        return cls(Severity.HELP)

    def with_message(self, message: Any) -> "Diagnostic":
        """A copy with the given message."""
        return replace(self, message=str(message))

    def with_code(self, code: str) -> "Diagnostic":
        """A copy with the given code."""
        return replace(self, code=code)

    def with_labels(self, labels: Iterable[Label]) -> "Diagnostic":
        """A copy with ``labels`` appended to the existing labels."""
        return replace(self, labels=[*self.labels, *labels])

    def with_notes(self, notes: Iterable[str]) -> "Diagnostic":
        """A copy with ``notes`` appended to the existing notes."""
        return replace(self, notes=[*self.notes, *notes])


class DiagnosticError(Exception):
    """Raised when an operation fails with a diagnostic for the user."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class Location(NamedTuple):
    """A zero-based line and column in a source file."""

    line: int
    column: int


@dataclass
class _File:
    name: str
    source: str
    line_starts: list[int]


class Files:
    """The source files diagnostics can refer to, keyed by integer ids."""

    def __init__(self) -> None:
        self._files: list[_File] = []

    def add(self, name: str | Path, source: str) -> int:
        """Register a file and return its id."""
        starts = [0]
        starts.extend(m.end() for m in re.finditer("\n", source))
        self._files.append(_File(str(name), source, starts))
        return len(self._files) - 1

    def _get(self, file_id: int) -> _File:
        if not 0 <= file_id < len(self._files):
            raise KeyError(f"unknown file id {file_id}")
        return self._files[file_id]

    def name(self, file_id: int) -> str:
        return self._get(file_id).name

    def source(self, file_id: int) -> str:
        return self._get(file_id).source

    def location(self, file_id: int, offset: int) -> Location:
        """The line and column of ``offset`` in the file."""
        f = self._get(file_id)
        if not 0 <= offset <= len(f.source):
            raise IndexError(
                f"offset {offset} is out of bounds for file '{f.name}' "
                f"of length {len(f.source)}"
            )
        line = bisect.bisect_right(f.line_starts, offset) - 1
        return Location(line, offset - f.line_starts[line])


@dataclass
class Diag:
    """A diagnostic along with the crates it concerns and extra data."""

    diag: Diagnostic
    kids: list[str] = field(default_factory=list)
    extra: tuple[str, Any] | None = None


class Check(Enum):
    """The check a diagnostic came from."""

    ADVISORIES = "advisories"
    BANS = "bans"
    LICENSES = "licenses"
    SOURCES = "sources"


class Pack:
    """Diagnostics from one check, optionally about one crate."""

    def __init__(self, check: Check, kid: str | None = None) -> None:
        self.check = check
        self._kid = kid
        self._diags: list[Diag] = []

    def push(self, diag: Diag | Diagnostic) -> Diag:
        """Add a diagnostic; the first one without crates is tied to the pack's crate."""
        if isinstance(diag, Diagnostic):
            diag = Diag(diag)
        if not diag.kids and self._kid is not None:
            diag.kids.append(self._kid)
            self._kid = None
        self._diags.append(diag)
        return diag

    def __iter__(self) -> Iterator[Diag]:
        return iter(self._diags)

    def __len__(self) -> int:
        return len(self._diags)


class ErrorSink:
    """Where checks send their packs: a queue, or a list kept on the sink."""

    def __init__(self, channel: queue.Queue | None = None) -> None:
        self.channel = channel
        self.packs: list[Pack] = []

    def push(self, pack: Pack | tuple[Check, Diag | Diagnostic]) -> None:
        """Send a pack, or a ``(check, diagnostic)`` pair wrapped into one."""
        if isinstance(pack, tuple):
            check, diag = pack
            pack = Pack(check)
            pack.push(diag)
        if self.channel is not None:
            self.channel.put(pack)
        else:
            self.packs.append(pack)


@dataclass
class Coord:
    """A span within a particular file."""

    file: int
    span: range

    def into_label(self) -> Label:
        """A primary label at this coordinate."""
        return Label.primary(self.file, self.span)


class KrateSpans:
    """Spans of each crate within a synthesized lock file."""

    def __init__(self, spans: list[range], file_id: int) -> None:
        self.spans = spans
        self.file_id = file_id

    def __getitem__(self, index: int) -> range:
        return self.spans[index]

    def __len__(self) -> int:
        return len(self.spans)

    @staticmethod
    def synthesize(
        krates: Krates,
    ) -> tuple[list[range], str, dict[str, tuple[Path, str, dict[str, range]]]]:
        """Build a lock file text listing every crate, and a manifest text per crate.

        Returns the span of each crate's line, the lock file text, and a map of
        crate id to ``(manifest path, manifest text, dependency name => span)``.
        """
        lines: list[str] = []
        spans: list[range] = []
        cargo_spans: dict[str, tuple[Path, str, dict[str, range]]] = {}
        pos = 0

        for krate in krates.krates():
            where = krate.source if krate.source is not None else str(krate.manifest_path.parent)
            line = f"{krate.name} {krate.version} {where}\n"
            spans.append(range(pos, pos + len(line) - 1))
            pos += len(line)
            lines.append(line)

            dep_lines: list[str] = []
            deps_map: dict[str, range] = {}
            dep_pos = 0
            for dep in krate.deps:
                dep_line = f'{dep.name} = "{dep.req}"\n'
                deps_map[dep.name] = range(dep_pos, dep_pos + len(dep_line) - 1)
                dep_pos += len(dep_line)
                dep_lines.append(dep_line)

            cargo_spans[krate.id] = (krate.manifest_path, "".join(dep_lines), deps_map)

        return spans, "".join(lines), cargo_spans

    def label_for_index(self, krate_index: int, msg: Any) -> Label:
        """A secondary label on the crate's line."""
        return Label.secondary(self.file_id, self.spans[krate_index]).with_message(msg)

    def get_coord(self, krate_index: int) -> Coord:
        return Coord(self.file_id, self.spans[krate_index])


_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
_HOST_SCHEMES = {"http", "https", "ws", "wss", "ftp"}


def _url_problem(url: str) -> str | None:
    scheme, sep, _ = url.partition(":")
    if not sep or not _SCHEME_RE.match(scheme):
        return "relative URL without a base"
    if any(c.isspace() for c in url.strip()):
        return "invalid character in URL"
    parts = urlsplit(url.strip())
    if scheme.lower() in _HOST_SCHEMES and not parts.hostname:
        return "empty host"
    try:
        parts.port
    except ValueError:
        return "invalid port number"
    return None


def parse_url(file_id: int, urls: Spanned[str]) -> Spanned[SplitResult]:
    """Parse a URL read from a config file, keeping its span.

    Raises ``DiagnosticError`` pointing at the span if the URL is invalid.
    """
    problem = _url_problem(urls.value)
    if problem is not None:
        raise DiagnosticError(
            Diagnostic.error()
            .with_message("failed to parse url")
            .with_labels([Label.primary(file_id, urls.span).with_message(problem)])
        )
    return Spanned(urlsplit(urls.value.strip()), urls.span)