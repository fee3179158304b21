"""Text rendering of how a crate is pulled into the graph."""

from __future__ import annotations

from .krate import DepKind, Krates

_DWN = "│"
_TEE = "├"
_ELL = "└"
_RGT = "─"

_KIND_LABEL = {DepKind.NORMAL: "", DepKind.DEV: "dev", DepKind.BUILD: "build"}


class TextGrapher:
    """Draws the inverted dependency tree of a crate: who depends on it, up to the roots."""

    def __init__(self, krates: Krates) -> None:
        self.krates = krates

    def write_graph(self, kid: str) -> str:
        """The inclusion tree of the crate with id ``kid``."""
        nid = self.krates.nid_for_kid(kid)
        if nid is None:
            raise LookupError("unable to find node")
        out: list[str] = []
        self._write_parent(nid, "", out, set(), [])
        return "".join(out)

    def _write_parent(
        self,
        nid: int,
        kind: str,
        out: list[str],
        visited: set[int],
        levels_continue: list[bool],
    ) -> None:
        new = nid not in visited
        visited.add(nid)
        star = "" if new else " (*)"

        if levels_continue:
            *rest, last_continues = levels_continue
            for continues in rest:
                out.append(f"{_DWN if continues else ' '}   ")
            out.append(f"{_TEE if last_continues else _ELL}{_RGT}{_RGT} ")

        krate = self.krates[nid]
        prefix = f"({kind}) " if kind else ""
        out.append(f"{prefix}{krate.name} v{krate.version}{star}\n")

        if not new:
            return

        parents = sorted(self.krates.parents(nid), key=lambda p: self.krates[p[0]].id)
        last = len(parents) - 1
        for i, (pid, dep_kind) in enumerate(parents):
            levels_continue.append(i < last)
            self._write_parent(pid, _KIND_LABEL[dep_kind], out, visited, levels_continue)
            levels_continue.pop()