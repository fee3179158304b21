"""Building blocks for linting a crate dependency graph: crates, diagnostics, inclusion graphs, registry index entries, run summaries and license listings."""

__version__ = "0.1.0"