"""Public package entrypoint for the Gemfile.lock to Bazel BUILD generator."""

from .buildifier import Buildifier, BuildifierResult
from .config import GeneratorConfig, resolve_config
from .errors import (
    ArgumentCountError,
    BuildifierError,
    BuildifierFailedError,
    BuildifierNoBuildFileError,
    BuildifierNotFoundError,
    BundlegenError,
    GemfileError,
    LockfileError,
    ValidationError,
)
from .generator import BundleBuildFileGenerator, GenerationResult
from .models import Group, LocalSource, PackageSpec, RemoteSource
from .report import GenerationReport

__all__ = [
    "ArgumentCountError",
    "BuildifierError",
    "BuildifierFailedError",
    "BuildifierNoBuildFileError",
    "BuildifierNotFoundError",
    "Buildifier",
    "BuildifierResult",
    "BundleBuildFileGenerator",
    "BundlegenError",
    "GemfileError",
    "GenerationReport",
    "GenerationResult",
    "GeneratorConfig",
    "Group",
    "LocalSource",
    "LockfileError",
    "PackageSpec",
    "RemoteSource",
    "ValidationError",
    "resolve_config",
]
