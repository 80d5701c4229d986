"""Generator configuration passed from the CLI into the emitter."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass

from bundlegen.errors import ValidationError
from bundlegen.lockfile.model import ParsedLockfile

DEFAULT_BUNDLER_VERSION = "2.4.22"
DEFAULT_TARGET_PLATFORM = "x86_64-linux"
DEFAULT_RUBYGEMS_SOURCE = "https://rubygems.org"
DEFAULT_OWNER = "1000.1000"
DEFAULT_TOOLS_ATTRIBUTE = "exec_tools"

# Executables that need not be relocatable. Kept for future filtering; nothing
# reads this list when staging gems.
EXCLUDED_EXECUTABLES = ("console", "setup")


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Everything the emitter needs that is not in the lockfile itself."""

    workspace_name: str
    repo_name: str
    ruby_version: str
    bundler_version: str = DEFAULT_BUNDLER_VERSION
    build_file: str = "BUILD.bazel"
    gemfile_lock: str = "Gemfile.lock"
    srcs: str | None = None
    target_platform: str = DEFAULT_TARGET_PLATFORM
    rubygems_source: str = DEFAULT_RUBYGEMS_SOURCE
    owner: str = DEFAULT_OWNER
    tools_attribute: str = DEFAULT_TOOLS_ATTRIBUTE
    excluded_executables: tuple[str, ...] = EXCLUDED_EXECUTABLES

    def runfiles_path(self, path: str) -> str:
        return f"${{RUNFILES_DIR}}/{self.repo_name}/{path}"

    @property
    def bundler_setup_require(self) -> str:
        return f"-r{self.runfiles_path('lib/bundler/setup.rb')}"

    @property
    def gem_install_dir(self) -> str:
        return f"/vendor/bundle/ruby/{self.ruby_version}"


def ruby_abi_version(version: str) -> str:
    """Ruby installs gems under ``X.Y.0`` for every ``X.Y.*`` release."""
    parts = version.strip().split(".")
    if len(parts) < 2 or not all(part.isdigit() for part in parts[:2]):
        raise ValidationError(
            "Ruby version must look like MAJOR.MINOR[.PATCH].",
            context={"ruby_version": version},
        )
    return ".".join([parts[0], parts[1], "0"])


def detect_ruby_version() -> str | None:
    """Ask the ``ruby`` on PATH for its version, if there is one."""
    ruby = shutil.which("ruby")
    if ruby is None:
        return None
    result = subprocess.run(
        [ruby, "-e", "print RUBY_VERSION"],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0 or not result.stdout.strip():
        return None
    return result.stdout.strip()


def resolve_config(
    *,
    workspace_name: str,
    repo_name: str,
    lockfile: ParsedLockfile,
    build_file: str = "BUILD.bazel",
    gemfile_lock: str = "Gemfile.lock",
    srcs: str | None = None,
    ruby_version: str | None = None,
    bundler_version: str | None = None,
) -> GeneratorConfig:
    """Fill runtime versions from explicit values, then the lockfile, then the host."""
    raw_ruby = ruby_version or lockfile.ruby_version or detect_ruby_version()
    if raw_ruby is None:
        raise ValidationError(
            "Could not determine the Ruby version for the gem install path.",
            hint="Add a `ruby` directive to the Gemfile or put `ruby` on PATH.",
            context={"lockfile": gemfile_lock, "operation": "resolve_config"},
        )
    return GeneratorConfig(
        workspace_name=workspace_name,
        repo_name=repo_name,
        ruby_version=ruby_abi_version(raw_ruby),
        bundler_version=bundler_version or lockfile.bundled_with or DEFAULT_BUNDLER_VERSION,
        build_file=build_file,
        gemfile_lock=gemfile_lock,
        srcs=srcs,
    )

