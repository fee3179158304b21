"""Listing the licenses used by a crate graph, grouped by license or by crate."""

from __future__ import annotations

import bisect
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

_RESET = "\x1b[0m"
_CYAN = "\x1b[36m"
_WHITE = "\x1b[37m"
_RED = "\x1b[31m"
_YELLOW = "\x1b[33m"
_WHITE_BOLD = "\x1b[1;37m"


def _paint(style: str, text: str) -> str:
    return f"{style}{text}{_RESET}"


class Layout(Enum):
    """How the human and JSON listings are grouped."""

    CRATE = "crate"
    LICENSE = "license"

    @classmethod
    def parse(cls, s: str) -> "Layout":
        """Parse a layout name, ignoring case."""
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"unknown layout '{s}' specified") from None


class OutputFormat(Enum):
    """The format of the listing."""

    HUMAN = "human"
    JSON = "json"
    TSV = "tsv"

    @classmethod
    def parse(cls, s: str) -> "OutputFormat":
        """Parse an output format name, ignoring case."""
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"unknown output format '{s}' specified") from None


@dataclass
class LicenseLayout:
    """Each license with the crates using it, sorted by license, plus unlicensed crates."""

    licenses: list[tuple[str, list[str]]] = field(default_factory=list)
    unlicensed: list[str] = field(default_factory=list)

    def kids_for(self, license: str) -> list[str]:
        """The crates using ``license``, or an empty list."""
        names = [name for name, _ in self.licenses]
        i = bisect.bisect_left(names, license)
        if i < len(names) and names[i] == license:
            return self.licenses[i][1]
        return []


def build_layout(
    infos: Iterable[tuple[str, Sequence[str] | None]],
) -> tuple[LicenseLayout, dict[str, list[str]]]:
    """Group crates by license.

    ``infos`` holds ``(crate id, license requirements)`` pairs, with ``None``
    for an unlicensed crate. Returns the license layout and a map of crate id
    to its distinct licenses, ordered by crate id.
    """
    layout = LicenseLayout()
    crates: dict[str, list[str]] = {}

    for kid, requirements in infos:
        current: list[str] = []
        if requirements is None:
            layout.unlicensed.append(kid)
        else:
            for req in requirements:
                req = str(req)
                if req in current:
                    continue
                names = [name for name, _ in layout.licenses]
                i = bisect.bisect_left(names, req)
                if i < len(names) and names[i] == req:
                    layout.licenses[i][1].append(kid)
                else:
                    layout.licenses.insert(i, (req, [kid]))
                current.append(req)
        crates[kid] = current

    return layout, {kid: crates[kid] for kid in sorted(crates)}


def _parts(kid: str) -> tuple[str, str]:
    pieces = kid.split(" ")
    if len(pieces) < 2:
        raise ValueError(f"malformed crate id '{kid}'")
    return pieces[0], pieces[1]


def _pid(kid: str) -> str:
    name, version = _parts(kid)
    return f"{name}@{version}"


def render_human(
    license_layout: LicenseLayout,
    crates: dict[str, list[str]],
    layout: Layout,
    color: bool,
) -> str:
    """The listing as text for a terminal."""
    out: list[str] = []

    if layout is Layout.LICENSE:
        for license, kids in license_layout.licenses:
            if color:
                out.append(
                    f"{_paint(_CYAN, license)} ({_paint(_WHITE_BOLD, str(len(kids)))}): "
                )
                entries = []
                for kid in kids:
                    name, version = _parts(kid)
                    style = _YELLOW if len(crates.get(kid, [])) > 1 else _WHITE
                    entries.append(f"{_paint(style, name)}@{version}")
            else:
                out.append(f"{license} ({len(kids)}): ")
                entries = [_pid(kid) for kid in kids]
            out.append(", ".join(entries))
            out.append("\n")

        unlicensed = license_layout.unlicensed
        if unlicensed:
            if color:
                out.append(
                    f"{_paint(_RED, 'Unlicensed')} "
                    f"({_paint(_WHITE_BOLD, str(len(unlicensed)))}): "
                )
            else:
                out.append(f"Unlicensed ({len(unlicensed)}): ")
            out.append(", ".join(_pid(kid) for kid in unlicensed))
            out.append("\n")
    else:
        for kid, licenses in sorted(crates.items()):
            name, version = _parts(kid)
            if color:
                style = {1: _WHITE, 0: _RED}.get(len(licenses), _YELLOW)
                out.append(
                    f"{_paint(style, name)}@{version} "
                    f"({_paint(_WHITE_BOLD, str(len(licenses)))}): "
                )
                out.append(", ".join(_paint(_CYAN, lic) for lic in licenses))
            else:
                out.append(f"{name}@{version} ({len(licenses)}): ")
                out.append(", ".join(licenses))
            out.append("\n")

    return "".join(out)


def render_json(
    license_layout: LicenseLayout,
    crates: dict[str, list[str]],
    layout: Layout,
) -> str:
    """The listing as compact JSON."""
    if layout is Layout.LICENSE:
        value: object = {
            "licenses": [[name, list(kids)] for name, kids in license_layout.licenses],
            "unlicensed": list(license_layout.unlicensed),
        }
    else:
        value = {kid: {"licenses": list(lics)} for kid, lics in sorted(crates.items())}
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def render_tsv(license_layout: LicenseLayout, crates: dict[str, list[str]]) -> str:
    """A grid of crate rows by license columns, marking each use with ``X``."""
    header = ["crate", *(name for name, _ in license_layout.licenses)]
    if license_layout.unlicensed:
        header.append("Unlicensed")
    rows = ["\t".join(header)]

    for kid, licenses in sorted(crates.items()):
        cells = [_pid(kid)]
        cells.extend("X" if kid in kids else "" for _, kids in license_layout.licenses)
        if not licenses:
            cells.append("X")
        rows.append("\t".join(cells))

    return "\n".join(rows) + "\n"