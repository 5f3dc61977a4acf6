[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bcpljit"
version = "0.1.0"
description = "BCPL syntax tree, control-flow graph builder and AArch64 instruction encoder"
requires-python = ">=3.10"
keywords = ["bcpl", "compiler", "aarch64", "arm64", "control-flow-graph", "instruction-encoding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bcpljit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
