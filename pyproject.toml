[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rollupdriver"
version = "0.1.0"
description = "Building blocks for a rollup driver: block header and ABI encoding, fixed-K anchor signing, beacon sync progress tracking, metrics, command-line flags and logging."
requires-python = ">=3.10"
dependencies = [
    "pycryptodome",
]
keywords = [
    "rollup",
    "layer2",
    "ethereum",
    "abi",
    "rlp",
    "secp256k1",
    "beacon-sync",
    "metrics",
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rollupdriver"]

[tool.hatch.build.targets.sdist]
include = [
    "rollupdriver",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
