"""Gemfile.lock parser.

The lockfile is a sequence of unindented section headers. Source sections
(``GEM``, ``PATH``) carry two-space options, a ``specs:`` marker, four-space
gem entries and six-space dependency entries::

    GEM
      remote: https://rubygems.org/
      specs:
        actionpack (7.0.8)
          rack (~> 2.0, >= 2.2.4)

Every other section is a flat list of two- or three-space indented values.
"""

from __future__ import annotations

import re
from pathlib import Path

from bundlegen.errors import LockfileError
from bundlegen.lockfile.model import ParsedLockfile
from bundlegen.models import DEFAULT_PLATFORM, GemSource, LocalSource, PackageSpec, RemoteSource

SOURCE_SECTIONS = frozenset({"GEM", "PATH", "GIT", "PLUGIN SOURCE"})

_SPEC_RE = re.compile(r"^ {4}(?P<name>[^\s(]+) \((?P<version>[^)]+)\)$")
_DEP_RE = re.compile(r"^ {6}(?P<name>[^\s(!]+)!?(?: \((?P<requirement>[^)]+)\))?$")
_OPTION_RE = re.compile(r"^ {2}(?P<key>[a-z_]+): ?(?P<value>.*)$")
_LIST_ITEM_RE = re.compile(r"^ {2,3}(?P<value>\S.*)$")
_RUBY_VERSION_RE = re.compile(r"ruby (?P<version>\d+\.\d+\.\d+)")


class _SourceBlock:
    def __init__(self, section: str, line_no: int) -> None:
        self.section = section
        self.line_no = line_no
        self.remotes: list[str] = []
        self.in_specs = False
        self.entries: list[tuple[str, str, str, list[str]]] = []

    def source(self) -> GemSource:
        if not self.remotes:
            raise LockfileError(
                f"{self.section} section has no `remote:` option.",
                context={"line": str(self.line_no)},
            )
        if self.section == "PATH":
            return LocalSource(path=self.remotes[0])
        return RemoteSource(url=self.remotes[0])


def split_version(raw: str) -> tuple[str, str]:
    """Split ``1.15.4-x86_64-linux`` into version and platform tag."""
    version, sep, platform = raw.partition("-")
    if not version or (sep and not platform):
        raise LockfileError("Malformed gem version in lockfile.", context={"version": raw})
    return version, platform or DEFAULT_PLATFORM


def parse_lockfile(raw: str) -> ParsedLockfile:
    blocks: list[_SourceBlock] = []
    lists: dict[str, list[str]] = {}
    block: _SourceBlock | None = None
    section: str | None = None

    for line_no, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        if not line[0].isspace():
            section = line.strip()
            if section == "GIT":
                raise LockfileError(
                    "Git-sourced gems are not supported.",
                    hint="Vendor the gem and reference it with `path:` in the Gemfile instead.",
                    context={"line": str(line_no)},
                )
            if section in SOURCE_SECTIONS:
                block = _SourceBlock(section, line_no)
                blocks.append(block)
            else:
                block = None
                lists.setdefault(section, [])
            continue
        if section is None:
            raise LockfileError(
                "Indented line before any lockfile section.",
                context={"line": str(line_no)},
            )
        if block is None:
            match = _LIST_ITEM_RE.match(line)
            if match is not None:
                lists[section].append(match.group("value").strip())
            continue
        _parse_source_line(block, line, line_no)

    specs: list[PackageSpec] = []
    duplicates: list[PackageSpec] = []
    seen: set[str] = set()
    for source_block in blocks:
        if source_block.section not in ("GEM", "PATH"):
            continue
        source = source_block.source()
        for name, version, platform, deps in source_block.entries:
            spec = PackageSpec(
                name=name,
                version=version,
                source=source,
                dependencies=tuple(deps),
                platform=platform,
            )
            if name in seen:
                duplicates.append(spec)
                continue
            seen.add(name)
            specs.append(spec)

    return ParsedLockfile(
        specs=tuple(specs),
        platforms=tuple(lists.get("PLATFORMS", [])),
        dependencies=tuple(_dependency_name(item) for item in lists.get("DEPENDENCIES", [])),
        ruby_version=_ruby_version(lists.get("RUBY VERSION", [])),
        bundled_with=next(iter(lists.get("BUNDLED WITH", [])), None),
        duplicates=tuple(duplicates),
    )


def read_lockfile(path: str | Path) -> ParsedLockfile:
    lock_path = Path(path)
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LockfileError(
            "Lockfile could not be read.",
            hint="Run `bundle lock` to generate Gemfile.lock.",
            context={"path": str(lock_path), "error": str(exc)},
        ) from exc
    return parse_lockfile(raw)


def _parse_source_line(block: _SourceBlock, line: str, line_no: int) -> None:
    if block.in_specs:
        spec_match = _SPEC_RE.match(line)
        if spec_match is not None:
            version, platform = split_version(spec_match.group("version"))
            block.entries.append((spec_match.group("name"), version, platform, []))
            return
        dep_match = _DEP_RE.match(line)
        if dep_match is not None:
            if not block.entries:
                raise LockfileError(
                    "Dependency listed before any gem in `specs:`.",
                    context={"line": str(line_no)},
                )
            block.entries[-1][3].append(dep_match.group("name"))
            return
        raise LockfileError(
            "Malformed entry in lockfile `specs:` block.",
            context={"line": str(line_no), "content": line.strip()},
        )

    option = _OPTION_RE.match(line)
    if option is None:
        raise LockfileError(
            f"Malformed option in {block.section} section.",
            context={"line": str(line_no), "content": line.strip()},
        )
    key = option.group("key")
    if key == "specs":
        block.in_specs = True
    elif key == "remote":
        block.remotes.append(option.group("value").strip())


def _dependency_name(item: str) -> str:
    name = item.split(" ", 1)[0]
    return name.rstrip("!")


def _ruby_version(items: list[str]) -> str | None:
    for item in items:
        match = _RUBY_VERSION_RE.search(item)
        if match is not None:
            return match.group("version")
    return None
