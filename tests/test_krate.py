from pathlib import Path

import pytest
from semver import Version

from cratelint.krate import (
    DepKind,
    Dependency,
    Krate,
    Krates,
    LintLevel,
    binary_search,
    contains,
    hash_bytes,
)


def _pkg(**overrides):
    pkg = {
        "name": "serde",
        "id": "serde 1.0.0 (registry+https://github.com/rust-lang/crates.io-index)",
        "version": "1.0.0",
        "source": "registry+https://github.com/rust-lang/crates.io-index",
        "authors": ["Someone <someone@example.com>"],
        "manifest_path": "/tmp/serde/Cargo.toml",
        "license": "MIT/Apache-2.0",
        "dependencies": [
            {"name": "zeta", "req": "^1", "kind": None},
            {"name": "alpha", "req": "^2", "kind": "dev"},
            {"name": "mid", "req": "^3", "kind": "build"},
        ],
        "features": {"default": ["std"], "std": []},
        "targets": [],
        "publish": None,
    }
    pkg.update(overrides)
    return pkg


def test_lint_level_default_and_parse():
    assert LintLevel.default() is LintLevel.WARN
    assert LintLevel("deny") is LintLevel.DENY
    assert LintLevel("allow") is LintLevel.ALLOW
    with pytest.raises(ValueError):
        LintLevel("forbid")


def test_from_metadata_basic_fields():
    krate = Krate.from_metadata(_pkg())
    assert krate.name == "serde"
    assert krate.version == Version.parse("1.0.0")
    assert krate.manifest_path == Path("/tmp/serde/Cargo.toml")
    assert krate.source == "registry+https://github.com/rust-lang/crates.io-index"
    assert krate.features == {"default": ["std"], "std": []}
    assert krate.license_file is None
    assert krate.publish is None


def test_from_metadata_fixes_slash_license():
    krate = Krate.from_metadata(_pkg())
    assert krate.license == "MIT OR Apache-2.0"


def test_from_metadata_keeps_valid_license():
    krate = Krate.from_metadata(_pkg(license="MIT"))
    assert krate.license == "MIT"


def test_from_metadata_sorts_deps_by_name():
    krate = Krate.from_metadata(_pkg())
    assert [d.name for d in krate.deps] == ["alpha", "mid", "zeta"]
    kinds = {d.name: d.kind for d in krate.deps}
    assert kinds == {"alpha": DepKind.DEV, "mid": DepKind.BUILD, "zeta": DepKind.NORMAL}


def test_from_metadata_drops_unparseable_source():
    krate = Krate.from_metadata(_pkg(source="nonsense"))
    assert krate.source is None


def test_from_metadata_no_source_for_path_crate():
    krate = Krate.from_metadata(_pkg(source=None))
    assert krate.source is None


def test_display():
    krate = Krate(name="serde", id="serde", version=Version.parse("1.2.3"))
    assert str(krate) == "serde = 1.2.3"


def test_equality_and_order_by_id():
    a = Krate(name="x", id="a 1.0.0", version=Version.parse("1.0.0"))
    a2 = Krate(name="other", id="a 1.0.0", version=Version.parse("2.0.0"))
    b = Krate(name="x", id="b 1.0.0")
    assert a == a2
    assert hash(a) == hash(a2)
    assert a < b
    assert sorted([b, a]) == [a, b]


@pytest.mark.parametrize(
    "publish,registries,expected",
    [
        (None, [], False),
        ([], [], True),
        (["private"], ["private"], True),
        (["private", "crates-io"], ["private"], False),
        (["one", "two"], ["one", "two"], True),
    ],
)
def test_is_private(publish, registries, expected):
    krate = Krate(name="k", id="k", publish=publish)
    assert krate.is_private(registries) is expected


def _graph():
    krates = Krates()
    root = krates.add(Krate(name="root", id="root 0.1.0"))
    lib = krates.add(Krate(name="lib", id="lib 1.0.0"))
    tool = krates.add(Krate(name="tool", id="tool 1.0.0"))
    krates.add_edge(root, lib, DepKind.NORMAL)
    krates.add_edge(tool, lib, DepKind.BUILD)
    return krates, root, lib, tool


def test_graph_lookup_and_parents():
    krates, root, lib, tool = _graph()
    assert len(krates) == 3
    assert krates.nid_for_kid("lib 1.0.0") == lib
    assert krates[lib].name == "lib"
    assert krates.parents(lib) == [(root, DepKind.NORMAL), (tool, DepKind.BUILD)]
    assert krates.parents(root) == []


def test_graph_missing_kid():
    krates, *_ = _graph()
    assert krates.nid_for_kid("missing 0.0.0") is None


def test_graph_iteration_order():
    krates, *_ = _graph()
    assert [k.name for k in krates.krates()] == ["root", "lib", "tool"]


def test_graph_duplicate_add_rejected():
    krates, *_ = _graph()
    with pytest.raises(ValueError):
        krates.add(Krate(name="lib", id="lib 1.0.0"))


def test_graph_bad_edge_rejected():
    krates, root, *_ = _graph()
    with pytest.raises(IndexError):
        krates.add_edge(root, 99)
    with pytest.raises(IndexError):
        krates.parents(99)


def test_binary_search_found_and_missing():
    seq = ["a", "c", "e"]
    assert binary_search(seq, "c") == (True, 1)
    found, idx = binary_search(seq, "d")
    assert found is False
    assert seq[:idx] == ["a", "c"]


@pytest.mark.parametrize("query", [0, 3, 5, 8, 10])
def test_binary_search_insertion_keeps_order(query):
    seq = [1, 3, 5, 7, 9]
    found, idx = binary_search(seq, query)
    assert found == (query in seq)
    inserted = seq[:idx] + [query] + seq[idx:]
    assert inserted == sorted(inserted)


def test_contains():
    assert contains(["MIT", "Apache-2.0"], "MIT") is True
    assert contains(["MIT", "Apache-2.0"], "GPL-3.0") is False
    assert contains([], "MIT") is False


def test_hash_bytes_known_values():
    assert hash_bytes(b"") == 0x02CC5D05
    assert hash_bytes(b"abc") == 0x32D153FF


@pytest.mark.parametrize("size", [1, 4, 15, 16, 17, 31, 64, 100])
def test_hash_bytes_is_32_bit_and_stable(size):
    data = bytes(range(size))
    h = hash_bytes(data)
    assert 0 <= h <= 0xFFFFFFFF
    assert hash_bytes(bytearray(data)) == h


def test_dependency_defaults():
    dep = Dependency(name="x")
    assert dep.kind is DepKind.NORMAL
    assert dep.req == "*"
    assert dep.optional is False