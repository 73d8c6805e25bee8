[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toolbelt"
version = "0.1.0"
description = "Utilities for loosely typed data: path-addressed maps, compacted record slices, case conversion, JSON/YAML/delimited codecs, data functions and a batching file logger."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["utilities", "data", "maps", "yaml", "json", "csv", "logging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["toolbelt"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
