"""Group resolution from the Gemfile's top-level declarations."""

from __future__ import annotations

from pathlib import Path

from bundlegen.errors import GemfileError
from bundlegen.gemfile.parse import Declaration, GemDeclaration, GemspecDeclaration, parse_gemfile
from bundlegen.lockfile.model import ParsedLockfile
from bundlegen.models import DEFAULT_GROUP, Group, LocalSource
from bundlegen.observability import StructuredLogger

DEVELOPMENT_GROUP = "development"


def gemfile_path_for(lockfile_path: str | Path) -> Path:
    """``Gemfile.lock`` -> ``Gemfile`` and ``gems.locked`` -> ``gems.rb``."""
    path = Path(lockfile_path)
    if path.name == "gems.locked":
        return path.with_name("gems.rb")
    if path.suffix == ".lock":
        return path.with_suffix("")
    return path


def resolve_groups(
    declarations: list[Declaration],
    lockfile: ParsedLockfile,
    *,
    logger: StructuredLogger | None = None,
) -> list[Group]:
    """Map each group to its directly declared gems, in first-seen order."""
    locked = set(lockfile.names)
    members: dict[str, list[str]] = {}
    claimed: set[str] = set()

    for declaration in declarations:
        for group in declaration.groups:
            members.setdefault(group, [])
        for name in _declared_names(declaration, lockfile):
            claimed.add(name)
            if name not in locked:
                if logger is not None:
                    logger.log(
                        operation="resolve_groups",
                        phase="resolve",
                        package=name,
                        level="warning",
                        message="Gemfile dependency is not in the lockfile; left out of its groups.",
                        extra={"groups": list(declaration.groups), "line": declaration.line},
                    )
                continue
            for group in declaration.groups:
                if name not in members[group]:
                    members[group].append(name)

    if any(isinstance(declaration, GemspecDeclaration) for declaration in declarations):
        _add_gemspec_development(members, claimed, lockfile, logger)

    return [Group(name=name, members=tuple(gems)) for name, gems in members.items()]


def resolve_gemfile_groups(
    gemfile: str | Path,
    lockfile: ParsedLockfile,
    *,
    logger: StructuredLogger | None = None,
) -> list[Group]:
    gemfile_path = Path(gemfile)
    try:
        raw = gemfile_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if logger is not None:
            logger.log(
                operation="resolve_groups",
                phase="resolve",
                level="warning",
                message="Gemfile not found; using lockfile DEPENDENCIES as the default group.",
                extra={"path": str(gemfile_path)},
            )
        return _groups_from_lockfile(lockfile)
    except OSError as exc:
        raise GemfileError(
            "Gemfile could not be read.",
            context={"path": str(gemfile_path), "error": str(exc)},
        ) from exc

    groups = resolve_groups(parse_gemfile(raw), lockfile, logger=logger)
    if logger is not None:
        logger.log(
            operation="resolve_groups",
            phase="resolve",
            message=f"Resolved {len(groups)} group(s) from Gemfile.",
            extra={"groups": {group.name: list(group.members) for group in groups}},
        )
    return groups


def _declared_names(declaration: Declaration, lockfile: ParsedLockfile) -> list[str]:
    if isinstance(declaration, GemDeclaration):
        return [declaration.name]
    names: list[str] = []
    for spec in lockfile.local_specs():
        if not isinstance(spec.source, LocalSource) or spec.source.path.rstrip("/") != declaration.path:
            continue
        if declaration.name is not None and spec.name != declaration.name:
            continue
        names.append(spec.name)
    return names


def _add_gemspec_development(
    members: dict[str, list[str]],
    claimed: set[str],
    lockfile: ParsedLockfile,
    logger: StructuredLogger | None,
) -> None:
    # Top-level lockfile dependencies nobody in the Gemfile declares come from
    # the gemspec's development dependencies.
    local = {spec.name for spec in lockfile.local_specs()}
    locked = set(lockfile.names)
    extra = [
        name
        for name in dict.fromkeys(lockfile.dependencies)
        if name in locked and name not in claimed and name not in local
    ]
    if not extra:
        return
    members.setdefault(DEVELOPMENT_GROUP, []).extend(extra)
    if logger is not None:
        logger.log(
            operation="resolve_groups",
            phase="resolve",
            group=DEVELOPMENT_GROUP,
            message=f"Added {len(extra)} gemspec development gem(s) from the lockfile.",
            extra={"gems": extra},
        )


def _groups_from_lockfile(lockfile: ParsedLockfile) -> list[Group]:
    locked = set(lockfile.names)
    members = tuple(dict.fromkeys(name for name in lockfile.dependencies if name in locked))
    return [Group(name=DEFAULT_GROUP, members=members)]
