"""Lockfile typed model."""

from __future__ import annotations

from dataclasses import dataclass, field

from bundlegen.models import PackageSpec


@dataclass(frozen=True, slots=True)
class ParsedLockfile:
    specs: tuple[PackageSpec, ...]
    platforms: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    ruby_version: str | None = None
    bundled_with: str | None = None
    # Extra per-platform entries for a gem name that is already in ``specs``.
    duplicates: tuple[PackageSpec, ...] = field(default_factory=tuple)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.specs)

    def remote_specs(self) -> tuple[PackageSpec, ...]:
        return tuple(spec for spec in self.specs if not spec.is_local)

    def local_specs(self) -> tuple[PackageSpec, ...]:
        return tuple(spec for spec in self.specs if spec.is_local)
