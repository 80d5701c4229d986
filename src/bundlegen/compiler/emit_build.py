"""BUILD.bazel emission pipeline.

Turns the locked gem set into typed Starlark statements:
- a fixed header loading ``ruby_library`` and ``pkg_tar``
- a fetch and an install genrule per remote gem, one install genrule per
  local (``PATH``) gem
- the same fetch/install pair for bundler itself
- ``gems_cache``/``gems`` bundles over every remote gem
- one ``gems-<group>`` bundle per Gemfile group
"""

from __future__ import annotations

import hashlib
import textwrap
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Protocol

from bundlegen.config import GeneratorConfig
from bundlegen.lockfile.model import ParsedLockfile
from bundlegen.models import (
    CORE_RUNTIME,
    Group,
    LocalSource,
    PackageSpec,
    RemoteSource,
    install_target_name,
    label,
)
from bundlegen.observability import StructuredLogger
from bundlegen.starlark import Genrule, Glob, Load, Package, PkgTar, RubyLibrary, Statement, render_file

PKG_LOAD = "@rules_pkg//:pkg.bzl"
CACHE_PACKAGE_DIR = "/vendor/cache"


def _fetch_script(spec: PackageSpec, source: RemoteSource, config: GeneratorConfig) -> str:
    return textwrap.dedent(f"""\
        TARGET_PLATFORM="{config.target_platform}"
        gem fetch --platform $$TARGET_PLATFORM --no-prerelease --source {source.url} --version {spec.version} {spec.name} >/dev/null
        mv {spec.gem_name}*.gem $@ >/dev/null
    """)


def _unpack_dependencies(spec: PackageSpec) -> str:
    dep_tars = " ".join(f"$(location {label(install_target_name(dep))})" for dep in spec.dependencies)
    return textwrap.dedent(f"""\
        # Unpack dependencies
        for tarball in {dep_tars}; do
          tar -xzf $$tarball -C $$GEM_HOME
        done
    """)


def _local_install_script(spec: PackageSpec) -> str:
    return (
        textwrap.dedent("""\
            export BUILD_HOME=$$PWD
            export GEM_HOME=$$BUILD_HOME/gem
            mkdir -p $$GEM_HOME

        """)
        + _unpack_dependencies(spec)
        + textwrap.dedent("""\

            cd $$BUILD_HOME
            tar -czf $@ -C $$GEM_HOME . >/dev/null
        """)
    )


def _relocate_bin_links() -> str:
    # Absolute bin symlinks point into the sandbox; make them relative to GEM_HOME.
    return (
        "if [ -d ./bin ]; then\n"
        "  find ./bin -type l -exec bash -c "
        "'if [[ $$(readlink $$0) == /* ]]; then "
        '(export TARGET_ABS=$$(readlink $$0) REPLACE="$${PWD}/"; rm $$0; '
        'ln -s ../"$${TARGET_ABS/"$${REPLACE}"/}" $$0); fi\' {} \\;\n'
        "fi\n"
    )


def _remote_install_script(spec: PackageSpec, config: GeneratorConfig) -> str:
    name, version, gem_name = spec.name, spec.version, spec.gem_name
    platform_check = textwrap.dedent(rf"""
        TARGET_PLATFORM="{config.target_platform}"
        GEM_PLATFORM=$$(gem specification {gem_name}.gem --yaml | grep 'platform: ' | awk '{{print $$2}}')
        ENV_PLATFORM=$$(gem environment platform)
        TARGET_PLATFORM_MATCH=$$(echo $$ENV_PLATFORM | grep $$TARGET_PLATFORM >/dev/null; echo $$?)
        GEM_PLATFORM_MATCH=$$(echo $$ENV_PLATFORM | grep $$GEM_PLATFORM >/dev/null; echo $$?)

        GEM_NO_EXTENSIONS=$$(gem specification {gem_name}.gem --yaml | grep 'extensions: \[\]' >/dev/null; echo $$?) # 0 = no extensions

        if [ "$${{TARGET_PLATFORM_MATCH}}" -eq "0" ] || ( [ "$${{GEM_NO_EXTENSIONS}}" -eq "0" ] && [ "$${{GEM_PLATFORM_MATCH}}" -eq "0" ] )
        then
          gem install --platform $$TARGET_PLATFORM --no-document --no-wrappers --ignore-dependencies --local --version {version} {name} >/dev/null 2>&1
          cd $$GEM_HOME
    """)
    cleanup_and_fallback = textwrap.dedent(f"""\
          rm -rf $$GEM_HOME/wrappers $$GEM_HOME/environment $$GEM_HOME/cache/{gem_name}*.gem
        else
          echo ++++ {name} Incompatible platform or extensions to build - keep the gem for later install
          mkdir -p $$GEM_HOME/cache
          mv $$BUILD_HOME/{gem_name}.gem $$GEM_HOME/cache
          ln -s {gem_name}.gem $$GEM_HOME/cache/{gem_name}-$$TARGET_PLATFORM.gem
        fi

        cd $$BUILD_HOME
        tar -czf $@ -C $$GEM_HOME . >/dev/null
    """)
    return (
        textwrap.dedent("""\
            export BUILD_HOME=$$PWD
            cp $< $$BUILD_HOME

            export GEM_HOME=$$BUILD_HOME/gem
            mkdir -p $$GEM_HOME

        """)
        + _unpack_dependencies(spec)
        + platform_check
        + textwrap.indent(_relocate_bin_links(), "  ")
        + cleanup_and_fallback
    )


def header_statements(config: GeneratorConfig) -> tuple[Statement, ...]:
    return (
        Load(module=f"{config.workspace_name}//ruby:defs.bzl", symbols=("ruby_library",)),
        Load(module=PKG_LOAD, symbols=("pkg_tar",)),
        Package(),
        RubyLibrary(
            name="bundler_setup",
            srcs=("lib/bundler/setup.rb",),
            visibility=("//visibility:private",),
        ),
        RubyLibrary(name="bundler", srcs=Glob(include=("bundler/**/*",))),
    )


def core_runtime_spec(config: GeneratorConfig) -> PackageSpec:
    return PackageSpec(
        name=CORE_RUNTIME,
        version=config.bundler_version,
        source=RemoteSource(url=config.rubygems_source),
    )


def package_targets(spec: PackageSpec, config: GeneratorConfig) -> tuple[Genrule, ...]:
    """Fetch and install genrules for one gem (install only for local gems)."""
    tools = tuple(label(install_target_name(dep)) for dep in spec.dependencies)
    install_message = f"Installing gem: {spec.name}:{spec.version}"

    if isinstance(spec.source, LocalSource):
        return (
            Genrule(
                name=spec.install_target,
                srcs=(),
                tools=tools,
                tools_attribute=config.tools_attribute,
                outs=(f"{spec.name}.tar.gz",),
                cmd=_local_install_script(spec),
                message=install_message,
            ),
        )

    fetch = Genrule(
        name=spec.fetch_target,
        srcs=(),
        outs=(f"{spec.gem_name}.gem",),
        cmd=_fetch_script(spec, spec.source, config),
        message=f"Fetching gem: {spec.name}:{spec.version}",
    )
    install = Genrule(
        name=spec.install_target,
        srcs=(label(spec.fetch_target),),
        tools=tools,
        tools_attribute=config.tools_attribute,
        outs=(f"{spec.name}.tar.gz",),
        cmd=_remote_install_script(spec, config),
        message=install_message,
    )
    return fetch, install


def all_gems_targets(specs: tuple[PackageSpec, ...], config: GeneratorConfig) -> tuple[PkgTar, PkgTar]:
    """Cache and install bundles over remote gems; local gems have no cache layout."""
    remote = [spec for spec in specs if not spec.is_local]
    return (
        PkgTar(
            name="gems_cache",
            srcs=tuple(label(spec.fetch_target) for spec in remote),
            owner=config.owner,
            package_dir=CACHE_PACKAGE_DIR,
        ),
        PkgTar(
            name="gems",
            deps=tuple(label(spec.install_target) for spec in remote),
            owner=config.owner,
            package_dir=config.gem_install_dir,
        ),
    )


def group_targets(groups: list[Group], config: GeneratorConfig) -> tuple[PkgTar, ...]:
    return tuple(
        PkgTar(
            name=f"gems-{group.name}",
            deps=tuple(label(install_target_name(member)) for member in group.members),
            owner=config.owner,
            package_dir=config.gem_install_dir,
        )
        for group in groups
    )


@dataclass(frozen=True, slots=True)
class PackageBlock:
    package: PackageSpec
    targets: tuple[Genrule, ...]


@dataclass(frozen=True, slots=True)
class BuildFileEmission:
    header: tuple[Statement, ...]
    packages: tuple[PackageBlock, ...]
    core_runtime: PackageBlock
    aggregates: tuple[PkgTar, PkgTar]
    groups: tuple[PkgTar, ...]
    content: str
    path: Path | None = None

    def statements(self) -> list[Statement]:
        ordered: list[Statement] = list(self.header)
        for block in (*self.packages, self.core_runtime):
            ordered.extend(block.targets)
        ordered.extend(self.aggregates)
        ordered.extend(self.groups)
        return ordered

    def target_names(self) -> list[str]:
        return [
            statement.name
            for statement in self.statements()
            if isinstance(statement, (Genrule, PkgTar))
        ]

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()


class BuildFileEmitter(Protocol):
    def emit(
        self,
        *,
        lockfile: ParsedLockfile,
        groups: list[Group],
        config: GeneratorConfig,
        logger: StructuredLogger | None = None,
    ) -> BuildFileEmission:
        """Build the BUILD file in memory."""


class DeterministicBuildFileEmitter:
    """Emit statements in lockfile order so identical inputs give identical bytes."""

    def emit(
        self,
        *,
        lockfile: ParsedLockfile,
        groups: list[Group],
        config: GeneratorConfig,
        logger: StructuredLogger | None = None,
    ) -> BuildFileEmission:
        for duplicate in lockfile.duplicates:
            if logger is not None:
                logger.log(
                    operation="emit_build",
                    phase="emit",
                    package=duplicate.name,
                    level="warning",
                    message="Skipping additional platform entry for an already emitted gem.",
                    extra={"version": duplicate.version, "platform": duplicate.platform},
                )

        packages = tuple(self._block(spec, config, logger) for spec in lockfile.specs)
        core_runtime = self._block(core_runtime_spec(config), config, logger)
        aggregates = all_gems_targets(lockfile.specs, config)
        group_blocks = group_targets(groups, config)
        for group, target in zip(groups, group_blocks):
            if logger is not None:
                logger.log(
                    operation="emit_build",
                    phase="aggregate",
                    group=group.name,
                    message=f"Emitted {target.name} with {len(group.members)} gem(s).",
                )

        emission = BuildFileEmission(
            header=header_statements(config),
            packages=packages,
            core_runtime=core_runtime,
            aggregates=aggregates,
            groups=group_blocks,
            content="",
        )
        return replace(emission, content=render_file(emission.statements()))

    def _block(
        self,
        spec: PackageSpec,
        config: GeneratorConfig,
        logger: StructuredLogger | None,
    ) -> PackageBlock:
        targets = package_targets(spec, config)
        if logger is not None:
            logger.log(
                operation="emit_build",
                phase="emit",
                package=spec.name,
                message=f"Emitted {len(targets)} target(s) for {spec.gem_name}.",
                extra={"source": spec.source.kind, "dependencies": list(spec.dependencies)},
            )
        return PackageBlock(package=spec, targets=targets)


def write_build_file(emission: BuildFileEmission, destination: str | Path) -> BuildFileEmission:
    """Write the rendered text verbatim, replacing any existing file."""
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(emission.content, encoding="utf-8")
    return replace(emission, path=path)


def emit_build_file(
    *,
    lockfile: ParsedLockfile,
    groups: list[Group],
    config: GeneratorConfig,
    destination: str | Path,
    emitter: BuildFileEmitter | None = None,
    logger: StructuredLogger | None = None,
) -> BuildFileEmission:
    active = emitter or DeterministicBuildFileEmitter()
    emission = active.emit(lockfile=lockfile, groups=groups, config=config, logger=logger)
    return write_build_file(emission, destination)
