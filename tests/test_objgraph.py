import pytest
from semver import Version

from cratelint.diag import Diag, Diagnostic, Files, Label, Severity
from cratelint.krate import DepKind, Krate, Krates
from cratelint.objgraph import GraphNode, ObjectGrapher, cs_diag_to_json, diag_to_json


def _add(krates, name, version="1.0.0"):
    return krates.add(Krate(name=name, id=f"{name} {version}", version=Version.parse(version)))


def _chain():
    krates = Krates()
    a = _add(krates, "a")
    b = _add(krates, "b")
    c = _add(krates, "c")
    d = _add(krates, "d")
    krates.add_edge(a, b)
    krates.add_edge(b, c)
    krates.add_edge(d, c, DepKind.DEV)
    return krates


def test_graph_node_defaults_omitted():
    node = GraphNode("x", Version.parse("0.2.0"))
    assert node.to_json() == {"name": "x", "version": "0.2.0"}


def test_write_graph_chain():
    graph = ObjectGrapher(_chain()).write_graph("c 1.0.0")
    assert graph.to_json() == {
        "name": "c",
        "version": "1.0.0",
        "parents": [
            {
                "name": "b",
                "version": "1.0.0",
                "parents": [{"name": "a", "version": "1.0.0"}],
            },
            {"name": "d", "version": "1.0.0", "kind": "dev"},
        ],
    }


def test_write_graph_repeat():
    krates = Krates()
    a = _add(krates, "a")
    b = _add(krates, "b")
    c = _add(krates, "c")
    d = _add(krates, "d")
    krates.add_edge(a, b)
    krates.add_edge(a, c)
    krates.add_edge(b, d)
    krates.add_edge(c, d)
    graph = ObjectGrapher(krates).write_graph("d 1.0.0")
    assert graph.parents[0].parents[0].repeat is False
    assert graph.parents[1].parents[0].to_json() == {
        "name": "a",
        "version": "1.0.0",
        "repeat": True,
    }


def test_write_graph_missing():
    with pytest.raises(LookupError, match="unable to find node"):
        ObjectGrapher(Krates()).write_graph("ghost 1.0.0")


def test_cs_diag_to_json_full():
    files = Files()
    fid = files.add("deny.toml", "abc\ndef")
    diag = (
        Diagnostic.error()
        .with_message("boom")
        .with_code("E1")
        .with_labels([Label.primary(fid, range(5, 7)).with_message("here")])
        .with_notes(["n"])
    )
    assert cs_diag_to_json(diag, files) == {
        "type": "diagnostic",
        "fields": {
            "severity": "error",
            "message": "boom",
            "code": "E1",
            "labels": [{"message": "here", "span": "ef", "line": 2, "column": 2}],
            "notes": ["n"],
        },
    }


@pytest.mark.parametrize(
    "severity, name",
    [
        (Severity.ERROR, "error"),
        (Severity.WARNING, "warning"),
        (Severity.NOTE, "note"),
        (Severity.HELP, "help"),
        (Severity.BUG, "bug"),
    ],
)
def test_cs_diag_to_json_minimal(severity, name):
    out = cs_diag_to_json(Diagnostic(severity, "m"), Files())
    assert out == {"type": "diagnostic", "fields": {"severity": name, "message": "m"}}


def test_diag_to_json_with_grapher_and_extra():
    krates = _chain()
    grapher = ObjectGrapher(krates)
    diag = Diag(
        Diagnostic.warning().with_message("w"),
        kids=["c 1.0.0", "missing 9.9.9"],
        extra=("advisory", {"id": "X"}),
    )
    out = diag_to_json(diag, Files(), grapher)
    fields = out["fields"]
    assert fields["graphs"] == [grapher.write_graph("c 1.0.0").to_json()]
    assert fields["advisory"] == {"id": "X"}
    assert fields["severity"] == "warning"


def test_diag_to_json_without_grapher():
    diag = Diag(Diagnostic.note().with_message("n"), kids=["c 1.0.0"])
    out = diag_to_json(diag, Files(), None)
    assert "graphs" not in out["fields"]
    assert out == cs_diag_to_json(diag.diag, Files())