[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cratelint"
version = "0.1.0"
description = "Building blocks for linting a crate dependency graph: diagnostics, inclusion graphs, registry index entries, run summaries and license listings"
requires-python = ">=3.10"
dependencies = [
    "semver",
]
keywords = [
    "lint",
    "dependencies",
    "crates",
    "licenses",
    "diagnostics",
    "dependency-graph",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cratelint"]

[tool.hatch.build.targets.sdist]
include = [
    "cratelint",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
