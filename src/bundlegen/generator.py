"""End-to-end BUILD file generation from a Gemfile.lock."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bundlegen.buildifier import Buildifier, BuildifierResult
from bundlegen.compiler import BuildFileEmission, BuildFileEmitter, DeterministicBuildFileEmitter, emit_build_file
from bundlegen.config import GeneratorConfig, resolve_config
from bundlegen.errors import BuildifierError
from bundlegen.gemfile import gemfile_path_for, resolve_gemfile_groups
from bundlegen.lockfile import ParsedLockfile, read_lockfile, validate_dependencies
from bundlegen.models import Group
from bundlegen.observability import StructuredLogger
from bundlegen.report import GenerationReport


@dataclass(frozen=True, slots=True)
class GenerationResult:
    config: GeneratorConfig
    lockfile: ParsedLockfile
    groups: tuple[Group, ...]
    emission: BuildFileEmission

    @property
    def path(self) -> Path | None:
        return self.emission.path

    def report(self, logger: StructuredLogger | None = None) -> GenerationReport:
        return GenerationReport(
            build_file=self.config.build_file,
            lockfile=self.config.gemfile_lock,
            content_digest=self.emission.digest,
            ruby_version=self.config.ruby_version,
            bundler_version=self.config.bundler_version,
            target_platform=self.config.target_platform,
            bundler_setup_require=self.config.bundler_setup_require,
            targets=tuple(self.emission.target_names()),
            groups={group.name: list(group.members) for group in self.groups},
            logs=tuple(logger.records) if logger is not None else (),
        )


@dataclass(slots=True)
class BundleBuildFileGenerator:
    """Read the lockfile and Gemfile, then write the BUILD file for every gem."""

    workspace_name: str
    repo_name: str
    build_file: str | Path = "BUILD.bazel"
    gemfile_lock: str | Path = "Gemfile.lock"
    srcs: str | None = None
    ruby_version: str | None = None
    bundler_version: str | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    emitter: BuildFileEmitter = field(default_factory=DeterministicBuildFileEmitter)

    def generate(self) -> GenerationResult:
        lockfile = read_lockfile(self.gemfile_lock)
        self.logger.log(
            operation="read_lockfile",
            phase="parse",
            message=f"Parsed {len(lockfile.specs)} gem(s) from lockfile.",
            extra={
                "path": str(self.gemfile_lock),
                "remote": len(lockfile.remote_specs()),
                "local": len(lockfile.local_specs()),
            },
        )
        validate_dependencies(lockfile)

        config = resolve_config(
            workspace_name=self.workspace_name,
            repo_name=self.repo_name,
            lockfile=lockfile,
            build_file=str(self.build_file),
            gemfile_lock=str(self.gemfile_lock),
            srcs=self.srcs,
            ruby_version=self.ruby_version,
            bundler_version=self.bundler_version,
        )
        groups = resolve_gemfile_groups(
            gemfile_path_for(self.gemfile_lock),
            lockfile,
            logger=self.logger,
        )
        emission = emit_build_file(
            lockfile=lockfile,
            groups=groups,
            config=config,
            destination=self.build_file,
            emitter=self.emitter,
            logger=self.logger,
        )
        self.logger.log(
            operation="write_build_file",
            phase="write",
            message=f"Wrote {len(emission.target_names())} target(s).",
            extra={"path": str(self.build_file), "sha256": emission.digest},
        )
        return GenerationResult(
            config=config,
            lockfile=lockfile,
            groups=tuple(groups),
            emission=emission,
        )

    def buildify(self, buildifier: Buildifier | None = None) -> BuildifierResult:
        runner = buildifier or Buildifier(build_file=Path(self.build_file))
        try:
            result = runner.buildify()
        except BuildifierError as exc:
            self.logger.log(
                operation="buildify",
                phase="format",
                level="error",
                message=str(exc).splitlines()[0],
                extra={"code": exc.code},
            )
            raise
        self.logger.log(
            operation="buildify",
            phase="format",
            message="Buildifier accepted the generated BUILD file.",
            extra={"output": result.output},
        )
        return result
