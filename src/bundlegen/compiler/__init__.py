"""Compiler interfaces for emitting Bazel BUILD files."""

from .emit_build import (
    CACHE_PACKAGE_DIR,
    PKG_LOAD,
    BuildFileEmission,
    BuildFileEmitter,
    DeterministicBuildFileEmitter,
    PackageBlock,
    all_gems_targets,
    core_runtime_spec,
    emit_build_file,
    group_targets,
    header_statements,
    package_targets,
    write_build_file,
)

__all__ = [
    "BuildFileEmission",
    "BuildFileEmitter",
    "CACHE_PACKAGE_DIR",
    "DeterministicBuildFileEmitter",
    "PKG_LOAD",
    "PackageBlock",
    "all_gems_targets",
    "core_runtime_spec",
    "emit_build_file",
    "group_targets",
    "header_statements",
    "package_targets",
    "write_build_file",
]
