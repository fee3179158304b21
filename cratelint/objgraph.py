"""Inclusion graphs as serializable objects, and diagnostics as JSON values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from semver import Version

from .diag import Diag, Diagnostic, Files
from .krate import DepKind, Krates

_KIND_LABEL = {DepKind.NORMAL: "", DepKind.DEV: "dev", DepKind.BUILD: "build"}


@dataclass
class GraphNode:
    """A crate and the crates that depend on it."""

    name: str
    version: Version
    kind: str = ""
    repeat: bool = False
    parents: list["GraphNode"] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """A JSON-ready dict, leaving out default kind, repeat and parents."""
        out: dict[str, Any] = {"name": self.name, "version": str(self.version)}
        if self.kind:
            out["kind"] = self.kind
        if self.repeat:
            out["repeat"] = True
        if self.parents:
            out["parents"] = [p.to_json() for p in self.parents]
        return out


class ObjectGrapher:
    """Builds the inverted dependency tree of a crate as ``GraphNode`` objects."""

    def __init__(self, krates: Krates) -> None:
        self.krates = krates

    def write_graph(self, kid: str) -> GraphNode:
        """The inclusion tree of the crate with id ``kid``."""
        nid = self.krates.nid_for_kid(kid)
        if nid is None:
            raise LookupError("unable to find node")
        return self._write_parent(nid, "", set())

    def _write_parent(self, nid: int, kind: str, visited: set[int]) -> GraphNode:
        repeat = nid in visited
        visited.add(nid)
        krate = self.krates[nid]
        node = GraphNode(krate.name, krate.version, kind, repeat)
        if repeat:
            return node

        parents = sorted(self.krates.parents(nid), key=lambda p: self.krates[p[0]].id)
        node.parents = [
            self._write_parent(pid, _KIND_LABEL[dep_kind], visited) for pid, dep_kind in parents
        ]
        return node


def cs_diag_to_json(diag: Diagnostic, files: Files) -> dict[str, Any]:
    """A diagnostic as a JSON-ready dict, with labels resolved against ``files``."""
    fields: dict[str, Any] = {
        "severity": diag.severity.name.lower(),
        "message": diag.message,
    }
    if diag.code is not None:
        fields["code"] = diag.code

    if diag.labels:
        labels = []
        for label in diag.labels:
            location = files.location(label.file_id, label.span.start)
            source = files.source(label.file_id)
            labels.append(
                {
                    "message": label.message,
                    "span": source[label.span.start : label.span.stop],
                    "line": location.line + 1,
                    "column": location.column + 1,
                }
            )
        fields["labels"] = labels

    if diag.notes:
        fields["notes"] = list(diag.notes)

    return {"type": "diagnostic", "fields": fields}


def diag_to_json(diag: Diag, files: Files, grapher: ObjectGrapher | None) -> dict[str, Any]:
    """Like ``cs_diag_to_json``, adding inclusion graphs and any extra data."""
    out = cs_diag_to_json(diag.diag, files)
    fields = out["fields"]

    if grapher is not None:
        graphs = []
        for kid in diag.kids:
            try:
                graphs.append(grapher.write_graph(kid).to_json())
            except LookupError:
                continue
        fields["graphs"] = graphs

    if diag.extra is not None:
        key, value = diag.extra
        fields[key] = value

    return out