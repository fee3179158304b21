"""Reading crate entries from a registry index and locating its local checkout."""

from __future__ import annotations

import json
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from semver import Version

from .krate import DepKind

_CURRENT_CACHE_VERSION = 1


@dataclass
class IndexDependency:
    """A dependency of one published crate version."""

    name: str
    req: str
    target: str | None = None
    kind: DepKind | None = None
    package: str | None = None

    @classmethod
    def _from_json(cls, obj: dict[str, Any]) -> "IndexDependency":
        kind = obj.get("kind")
        return cls(
            name=obj["name"],
            req=obj["req"],
            target=obj.get("target"),
            kind=DepKind(kind) if kind is not None else None,
            package=obj.get("package"),
        )


@dataclass
class IndexVersion:
    """One published version of a crate as recorded in the index."""

    name: str
    vers: Version
    deps: list[IndexDependency] = field(default_factory=list)
    yanked: bool = False

    @classmethod
    def _from_json(cls, data: bytes) -> "IndexVersion":
        try:
            obj = json.loads(data)
            if not isinstance(obj, dict):
                raise ValueError("expected a JSON object")
            yanked = obj["yanked"]
            if not isinstance(yanked, bool):
                raise ValueError("'yanked' must be a boolean")
            return cls(
                name=obj["name"],
                vers=Version.parse(obj["vers"]),
                deps=[IndexDependency._from_json(d) for d in obj["deps"]],
                yanked=yanked,
            )
        except KeyError as e:
            raise ValueError(f"missing field {e}") from e
        except TypeError as e:
            raise ValueError(str(e)) from e


def _split(haystack: bytes, needle: int) -> Iterator[bytes]:
    """Split on ``needle``, yielding nothing once the remainder is empty."""
    sep = bytes([needle])
    while haystack:
        head, found, rest = haystack.partition(sep)
        yield head
        haystack = rest if found else b""


@dataclass
class IndexKrate:
    """Every published version of a crate."""

    versions: list[IndexVersion]

    @classmethod
    def from_slice(cls, data: bytes) -> "IndexKrate":
        """Parse an index file: one JSON version entry per line."""
        data = bytes(data).rstrip(b"\n")
        versions = []
        for line in data.split(b"\n"):
            try:
                versions.append(IndexVersion._from_json(line))
            except ValueError as e:
                raise ValueError(f"Unable to parse crate version: {e}") from e
        if not versions:
            raise ValueError("crate doesn't have any versions")
        return cls(versions)

    @classmethod
    def from_cache_slice(cls, data: bytes, index_version: str) -> "IndexKrate":
        """Parse an index entry from a ``.cache`` file."""
        data = bytes(data)
        if not data:
            raise ValueError("malformed .cache file")
        first_byte, rest = data[0], data[1:]
        if first_byte == _CURRENT_CACHE_VERSION:
            raise ValueError("looks like a different Cargo's cache, bailing out")

        parts = _split(rest, 0)
        update = next(parts, None)
        if update is None:
            raise ValueError("malformed cache file")
        if update == index_version.encode():
            try:
                cached = update.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ValueError("unable to stringify cache version") from e
            raise ValueError(
                f"cache out of date: current index ({index_version}) != cache ({cached})"
            )

        versions = []
        for _version in parts:
            version_slice = next(parts, None)
            if version_slice is None:
                raise ValueError("malformed cache file")
            versions.append(IndexVersion._from_json(version_slice))
        return cls(versions)


def _default_cargo_home() -> Path:
    env = os.environ.get("CARGO_HOME")
    if env:
        return Path(env)
    try:
        return Path.home() / ".cargo"
    except RuntimeError:
        return Path()


@dataclass
class BareIndex:
    """The on-disk location of a registry index, as cargo lays it out."""

    path: Path
    url: str

    @classmethod
    def from_url(cls, url: str, cargo_home: str | Path | None = None) -> "BareIndex":
        """The index for ``url`` under ``cargo_home`` (the user's cargo home by default)."""
        dir_name, canonical_url = url_to_local_dir(url)
        home = Path(cargo_home) if cargo_home is not None else _default_cargo_home()
        return cls(home / "registry" / "index" / dir_name, canonical_url)


def crate_name_to_relative_path(name: str) -> str | None:
    """The path of a crate's entry relative to the index root, or None if the name is invalid."""
    if not name.isascii() or not name:
        return None
    lower = name.lower()
    sep = os.sep
    if len(lower) == 1:
        prefix = "1"
    elif len(lower) == 2:
        prefix = "2"
    elif len(lower) == 3:
        prefix = f"3{sep}{lower[0]}"
    else:
        prefix = f"{lower[0:2]}{sep}{lower[2:4]}"
    return f"{prefix}{sep}{lower}"


_MASK64 = 0xFFFFFFFFFFFFFFFF


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _MASK64


def _siphash24(data: bytes, k0: int = 0, k1: int = 0) -> int:
    v = [
        k0 ^ 0x736F6D6570736575,
        k1 ^ 0x646F72616E646F6D,
        k0 ^ 0x6C7967656E657261,
        k1 ^ 0x7465646279746573,
    ]

    def rounds(n: int) -> None:
        v0, v1, v2, v3 = v
        for _ in range(n):
            v0 = (v0 + v1) & _MASK64
            v1 = _rotl(v1, 13) ^ v0
            v0 = _rotl(v0, 32)
            v2 = (v2 + v3) & _MASK64
            v3 = _rotl(v3, 16) ^ v2
            v0 = (v0 + v3) & _MASK64
            v3 = _rotl(v3, 21) ^ v0
            v2 = (v2 + v1) & _MASK64
            v1 = _rotl(v1, 17) ^ v2
            v2 = _rotl(v2, 32)
        v[:] = [v0, v1, v2, v3]

    block_end = len(data) - len(data) % 8
    for (m,) in struct.iter_unpack("<Q", data[:block_end]):
        v[3] ^= m
        rounds(2)
        v[0] ^= m

    b = ((len(data) & 0xFF) << 56) | int.from_bytes(data[block_end:], "little")
    v[3] ^= b
    rounds(2)
    v[0] ^= b
    v[2] ^= 0xFF
    rounds(4)
    return v[0] ^ v[1] ^ v[2] ^ v[3]


def _registry_hash(url: str) -> str:
    # Matches hashing a registry source kind tag followed by the url string
    message = struct.pack("<Q", 2) + url.encode("utf-8") + b"\xff"
    return struct.pack("<Q", _siphash24(message)).hex()


def url_to_local_dir(url: str) -> tuple[str, str]:
    """The directory cargo uses for a registry index url, and the canonical url.

    Raises ``ValueError`` if ``url`` is not a valid registry url.
    """
    scheme_ind = url.find("://")
    if scheme_ind < 0:
        raise ValueError(f"'{url}' is not a valid url")

    scheme_str = url[:scheme_ind]
    plus = scheme_str.find("+")
    if plus >= 0:
        if scheme_str[:plus] != "registry":
            raise ValueError(f"'{url}' is not a valid registry url")
        url = url[plus + 1 :]
        scheme_ind -= plus + 1

    after = url[scheme_ind + 3 :]
    slash = after.find("/")
    host = after[:slash] if slash >= 0 else after

    # github.com is special cased to be case insensitive
    canonical = url.lower() if host == "github.com" else url

    hash_pos = canonical.rfind("#")
    if hash_pos >= 0:
        canonical = canonical[:hash_pos]
    query_pos = canonical.rfind("?")
    if query_pos >= 0:
        canonical = canonical[:query_pos]

    ident = _registry_hash(canonical)

    if canonical.endswith("/"):
        canonical = canonical[:-1]
    if canonical.endswith(".git"):
        canonical = canonical[:-4]

    return f"{host}-{ident}", canonical