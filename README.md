# cratelint

`cratelint` is a library of building blocks for tools that lint the
dependency graph of a crate workspace. It needs Python 3.10 or later and
depends only on `semver`.

## What is in it

- `cratelint.spanned`: `Spanned`, a value paired with the byte range of the
  text it was read from. Equality, ordering and hashing look only at the
  value; `take()` returns the value.
- `cratelint.krate`: the crate graph. `Krate` (built directly or with
  `Krate.from_metadata` from one package entry of cargo metadata JSON, which
  sorts dependencies by name and rewrites `/` in a license to ` OR `),
  `Krate.is_private`, `Dependency`, `DepKind`, `LintLevel`, and `Krates`
  with `add`, `add_edge`, `nid_for_kid`, `parents` and `krates`. Also
  `binary_search` (returns `(found, index)`), `contains`, and `hash_bytes`,
  the 32-bit xxHash of some bytes with seed zero.
- `cratelint.diag`: `Severity`, `Label` (`primary` / `secondary`),
  `Diagnostic` (`error`, `warning`, `note`, `help`, and the `with_*`
  builders), `DiagnosticError`, `Files` (source files with `name`, `source`
  and zero-based `location` lookup), `Diag`, `Check`, `Pack`, `ErrorSink`
  (sends packs to a `queue.Queue` or keeps them in `packs`), `Coord`,
  `KrateSpans` (synthesizes a lockfile-like text with one line per crate so
  labels can point at crates), `lint_severity` and `parse_url`, which raises
  `DiagnosticError` for an invalid URL.
- `cratelint.textgraph`: `TextGrapher.write_graph` draws how a crate is
  pulled into the graph, as an inverted tree up to its roots.
- `cratelint.objgraph`: `ObjectGrapher.write_graph` builds the same tree as
  `GraphNode` objects (`to_json()`), and `cs_diag_to_json` / `diag_to_json`
  turn diagnostics into JSON-ready dicts.
- `cratelint.index`: `IndexKrate.from_slice` and `IndexKrate.from_cache_slice`
  parse registry index entries and `.cache` files; `url_to_local_dir` gives
  the directory name a registry URL maps to and its canonical URL;
  `BareIndex.from_url` places that under a cargo home;
  `crate_name_to_relative_path` gives a crate's path inside an index.
- `cratelint.options`: `Format`, `Color` (`parse`, `resolve`), `LevelFilter`,
  `parse_level` and `format_log_line`, which renders a log record as text or
  as a JSON line.
- `cratelint.stats`: `Stats`, `AllStats` (`total_errors`, `to_json`),
  `write_min_stats`, `write_full_stats` and `print_stats`.
- `cratelint.context`: `KrateContext.get_config_path` (a relative path is
  taken from the manifest's directory; without one, the manifest's directory
  and its ancestors are searched for `deny.toml`), `LogContext`,
  `log_level_to_severity`, and `DiagPrinter`, which writes diagnostics at or
  above a minimum severity to stderr as text or JSON lines.
- `cratelint.listing`: `Layout`, `OutputFormat`, `LicenseLayout`,
  `build_layout`, and `render_human`, `render_json` and `render_tsv` for
  license listings.

## Examples

How a crate is included in the graph:

```python
from semver import Version
from cratelint.krate import DepKind, Krate, Krates
from cratelint.textgraph import TextGrapher

krates = Krates()
app = krates.add(Krate(name="app", id="app 1.0.0", version=Version(1, 0, 0)))
lib = krates.add(Krate(name="lib", id="lib 0.2.0", version=Version(0, 2, 0)))
krates.add_edge(app, lib, DepKind.BUILD)

print(TextGrapher(krates).write_graph("lib 0.2.0"), end="")
# lib v0.2.0
# └── (build) app v1.0.0
```

Where a registry index lives on disk, and where a crate is inside it:

```python
from cratelint.index import crate_name_to_relative_path, url_to_local_dir

dir_name, canonical_url = url_to_local_dir("https://example.com/registry/index.git")
# dir_name is "example.com-<16 hex digits>"; canonical_url drops the ".git" suffix

crate_name_to_relative_path("serde")   # "se/rd/serde" (with the platform separator)
crate_name_to_relative_path("a")       # "1/a"
```

Collecting diagnostics and summarising a run:

```python
from cratelint.diag import Check, Diagnostic, ErrorSink, Pack
from cratelint.stats import AllStats, Stats, write_full_stats, write_min_stats

sink = ErrorSink()
pack = Pack(Check.BANS)
pack.push(Diagnostic.error().with_message("banned crate"))
sink.push(pack)          # kept in sink.packs

stats = AllStats(bans=Stats(errors=1), licenses=Stats())
stats.total_errors()     # 1
print(write_min_stats(stats, False), end="")
# bans FAILED, licenses ok
print(write_full_stats(stats, False), end="")
```

## What it does not do

`cratelint` has no command line program and does not run any checks itself:
there are no advisory, ban, license or source checks. It does not read or
validate configuration files beyond locating `deny.toml`, does not gather
cargo metadata, and does not clone, fetch or read a registry index
repository; `cratelint.index` only parses entry data you supply and works
out paths. License listings start from license requirements you pass to
`build_layout`; nothing detects licenses from crate files.

## Running the tests

Install the package with its `test` extra and run `pytest` from the
project directory.