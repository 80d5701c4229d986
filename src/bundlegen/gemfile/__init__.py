"""Gemfile group resolution."""

from .parse import GemDeclaration, GemspecDeclaration, parse_gemfile
from .resolve import gemfile_path_for, resolve_gemfile_groups, resolve_groups

__all__ = [
    "GemDeclaration",
    "GemspecDeclaration",
    "gemfile_path_for",
    "parse_gemfile",
    "resolve_gemfile_groups",
    "resolve_groups",
]
