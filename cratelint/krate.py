"""Crates, their dependencies, and the graph that connects them."""

from __future__ import annotations

import bisect
import logging
import re
import struct
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Sequence

from semver import Version

log = logging.getLogger(__name__)


class LintLevel(Enum):
    """How strictly a lint violation is treated."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"

    @classmethod
    def default(cls) -> "LintLevel":
        """The level used when none is configured."""
        return cls.WARN


class DepKind(Enum):
    """The kind of a dependency edge."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"


@dataclass
class Dependency:
    """A dependency declared in a crate manifest."""

    name: str
    req: str = "*"
    kind: DepKind = DepKind.NORMAL
    optional: bool = False
    target: str | None = None

    @classmethod
    def _from_metadata(cls, dep: dict[str, Any]) -> "Dependency":
        return cls(
            name=dep["name"],
            req=dep.get("req", "*"),
            kind=DepKind(dep.get("kind") or "normal"),
            optional=bool(dep.get("optional", False)),
            target=dep.get("target"),
        )


_SOURCE_RE = re.compile(
    r"^(registry|sparse|git|path|local-registry|directory)\+[A-Za-z][A-Za-z0-9+.-]*://\S*$"
)


def _parse_source(src: str | None) -> str | None:
    if src is None:
        return None
    if _SOURCE_RE.match(src):
        return src
    log.warning("unable to parse source url '%s': unsupported source kind", src)
    return None


def _fix_license(license: str | None) -> str | None:
    # '/' used to be accepted in place of OR, which is not valid SPDX
    if license is not None and "/" in license:
        return license.replace("/", " OR ")
    return license


@dataclass(eq=False)
class Krate:
    """A single package in the crate graph, identified by its id."""

    name: str = ""
    id: str = ""
    version: Version = field(default_factory=lambda: Version(0, 1, 0))
    source: str | None = None
    authors: list[str] = field(default_factory=list)
    repository: str | None = None
    description: str | None = None
    manifest_path: Path = field(default_factory=Path)
    license: str | None = None
    license_file: Path | None = None
    deps: list[Dependency] = field(default_factory=list)
    features: dict[str, list[str]] = field(default_factory=dict)
    targets: list[Any] = field(default_factory=list)
    publish: list[str] | None = None

    @classmethod
    def from_metadata(cls, pkg: dict[str, Any]) -> "Krate":
        """Build a crate from one package entry of cargo metadata JSON."""
        deps = sorted(
            (Dependency._from_metadata(d) for d in pkg.get("dependencies", [])),
            key=lambda d: d.name,
        )
        license_file = pkg.get("license_file")
        publish = pkg.get("publish")
        return cls(
            name=pkg["name"],
            id=pkg["id"],
            version=Version.parse(pkg["version"]),
            source=_parse_source(pkg.get("source")),
            authors=list(pkg.get("authors", [])),
            repository=pkg.get("repository"),
            description=pkg.get("description"),
            manifest_path=Path(pkg.get("manifest_path", "")),
            license=_fix_license(pkg.get("license")),
            license_file=Path(license_file) if license_file is not None else None,
            deps=deps,
            features={k: list(v) for k, v in pkg.get("features", {}).items()},
            targets=list(pkg.get("targets", [])),
            publish=list(publish) if publish is not None else None,
        )

    def is_private(self, private_registries: Sequence[str]) -> bool:
        """True if the crate is ``publish = false`` or only published to private registries."""
        if self.publish is None:
            return False
        if not self.publish:
            return True
        return all(reg in private_registries for reg in self.publish)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Krate):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other: "Krate") -> bool:
        return self.id < other.id

    def __le__(self, other: "Krate") -> bool:
        return self.id <= other.id

    def __gt__(self, other: "Krate") -> bool:
        return self.id > other.id

    def __ge__(self, other: "Krate") -> bool:
        return self.id >= other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.name} = {self.version}"


class Krates:
    """A graph of crates, with edges pointing from a crate to its dependencies."""

    def __init__(self, lock_path: Path | str | None = None) -> None:
        self.lock_path = Path(lock_path) if lock_path is not None else None
        self._nodes: list[Krate] = []
        self._by_id: dict[str, int] = {}
        self._incoming: dict[int, list[tuple[int, DepKind]]] = {}

    def add(self, krate: Krate) -> int:
        """Add a crate and return its node id."""
        if krate.id in self._by_id:
            raise ValueError(f"crate '{krate.id}' is already in the graph")
        nid = len(self._nodes)
        self._nodes.append(krate)
        self._by_id[krate.id] = nid
        self._incoming[nid] = []
        return nid

    def add_edge(self, parent: int, child: int, kind: DepKind = DepKind.NORMAL) -> None:
        """Record that ``parent`` depends on ``child``."""
        for nid in (parent, child):
            if nid not in self._incoming:
                raise IndexError(f"node {nid} is not in the graph")
        self._incoming[child].append((parent, kind))

    def nid_for_kid(self, kid: str) -> int | None:
        """The node id of the crate with the given id, if present."""
        return self._by_id.get(kid)

    def parents(self, nid: int) -> list[tuple[int, DepKind]]:
        """The crates that depend on ``nid``, with the kind of each edge."""
        if nid not in self._incoming:
            raise IndexError(f"node {nid} is not in the graph")
        return list(self._incoming[nid])

    def krates(self) -> Iterator[Krate]:
        """Iterate over the crates in node order."""
        return iter(self._nodes)

    def __getitem__(self, nid: int) -> Krate:
        return self._nodes[nid]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Krate]:
        return self.krates()


def binary_search(seq: Sequence[Any], query: Any) -> tuple[bool, int]:
    """Search a sorted sequence.

    Returns ``(True, index)`` if ``query`` was found, otherwise
    ``(False, index)`` where ``index`` is where it could be inserted.
    """
    i = bisect.bisect_left(seq, query)
    found = i < len(seq) and seq[i] == query
    return found, i


def contains(seq: Sequence[Any], query: Any) -> bool:
    """True if any item of ``seq`` equals ``query``."""
    return any(item == query for item in seq)


_P1 = 2654435761
_P2 = 2246822519
_P3 = 3266489917
_P4 = 668265263
_P5 = 374761393
_MASK = 0xFFFFFFFF


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK


def _round(acc: int, lane: int) -> int:
    return (_rotl((acc + lane * _P2) & _MASK, 13) * _P1) & _MASK


def hash_bytes(data: bytes) -> int:
    """The 32-bit xxHash of ``data`` with a seed of zero."""
    data = bytes(data)
    length = len(data)
    stripe_end = length - length % 16
    tail_start = stripe_end

    if length >= 16:
        v1 = (_P1 + _P2) & _MASK
        v2 = _P2
        v3 = 0
        v4 = (-_P1) & _MASK
        for a, b, c, d in struct.iter_unpack("<4I", data[:stripe_end]):
            v1 = _round(v1, a)
            v2 = _round(v2, b)
            v3 = _round(v3, c)
            v4 = _round(v4, d)
        h = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _MASK
    else:
        h = _P5
        tail_start = 0

    h = (h + length) & _MASK

    tail = data[tail_start:]
    word_end = len(tail) - len(tail) % 4
    for (lane,) in struct.iter_unpack("<I", tail[:word_end]):
        h = (_rotl((h + lane * _P3) & _MASK, 17) * _P4) & _MASK
    for byte in tail[word_end:]:
        h = (_rotl((h + byte * _P5) & _MASK, 11) * _P1) & _MASK

    h ^= h >> 15
    h = (h * _P2) & _MASK
    h ^= h >> 13
    h = (h * _P3) & _MASK
    h ^= h >> 16
    return h