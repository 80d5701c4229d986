"""Core typed dataclasses for locked gems and Gemfile groups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SourceKind = Literal["remote", "local"]

# Synthetic gem that is always emitted for the bundler runtime itself.
CORE_RUNTIME = "bundler"
DEFAULT_PLATFORM = "ruby"
DEFAULT_GROUP = "default"


@dataclass(frozen=True, slots=True)
class RemoteSource:
    url: str
    kind: SourceKind = "remote"


@dataclass(frozen=True, slots=True)
class LocalSource:
    path: str
    kind: SourceKind = "local"


GemSource = RemoteSource | LocalSource


@dataclass(frozen=True, slots=True)
class PackageSpec:
    name: str
    version: str
    source: GemSource
    dependencies: tuple[str, ...] = ()
    platform: str = DEFAULT_PLATFORM

    @property
    def is_local(self) -> bool:
        return isinstance(self.source, LocalSource)

    @property
    def gem_name(self) -> str:
        """File stem of the fetched artifact, e.g. ``rack-3.0.8``."""
        return f"{self.name}-{self.version}"

    @property
    def fetch_target(self) -> str:
        return f"{self.name}-gem-fetch"

    @property
    def install_target(self) -> str:
        return install_target_name(self.name)


@dataclass(frozen=True, slots=True)
class Group:
    name: str
    members: tuple[str, ...] = ()


def install_target_name(gem: str) -> str:
    return f"{gem}-gem-install"


def label(target: str) -> str:
    """Package-relative label for a target in the generated BUILD file."""
    return f":{target}"


__all__ = [
    "CORE_RUNTIME",
    "DEFAULT_GROUP",
    "DEFAULT_PLATFORM",
    "GemSource",
    "Group",
    "LocalSource",
    "PackageSpec",
    "RemoteSource",
    "SourceKind",
    "install_target_name",
    "label",
]
