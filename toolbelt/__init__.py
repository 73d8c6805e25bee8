"""Utilities for loosely typed data: path-addressed maps, compacted records, case conversion, codecs, data functions and a file logger."""

__version__ = "0.1.0"