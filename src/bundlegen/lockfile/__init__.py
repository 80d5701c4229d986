"""Lockfile parsing and extraction."""

from .io import parse_lockfile, read_lockfile, split_version
from .model import ParsedLockfile
from .validate import validate_dependencies

__all__ = [
    "ParsedLockfile",
    "parse_lockfile",
    "read_lockfile",
    "split_version",
    "validate_dependencies",
]
