"""Line-oriented reader for the declarative subset of the Gemfile DSL.

Only the statements that decide group membership are interpreted: ``gem``,
``gemspec`` and ``group ... do`` blocks. Other ``do ... end`` blocks and
``if``/``unless``/``case``/``begin`` bodies are walked through so their gems
are still seen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bundlegen.errors import GemfileError
from bundlegen.models import DEFAULT_GROUP


@dataclass(frozen=True, slots=True)
class GemDeclaration:
    name: str
    groups: tuple[str, ...]
    line: int


@dataclass(frozen=True, slots=True)
class GemspecDeclaration:
    path: str
    name: str | None
    groups: tuple[str, ...]
    line: int


Declaration = GemDeclaration | GemspecDeclaration

_GEM_RE = re.compile(r"""^gem\s*\(?\s*["'](?P<name>[^"']+)["'](?P<rest>.*)$""")
_GEMSPEC_RE = re.compile(r"^gemspec\b\s*\(?(?P<rest>.*)$")
_GROUP_BLOCK_RE = re.compile(r"^group\b\s*\(?(?P<args>.*?)\)?\s*do(?:\s*\|[^|]*\|)?$")
_DO_BLOCK_RE = re.compile(r"\bdo(?:\s*\|[^|]*\|)?$")
_KEYWORD_BLOCK_RE = re.compile(r"^(?:if|unless|case|begin|while|until|def)\b")
_END_RE = re.compile(r"^end\b")
_GROUP_OPTION_RE = re.compile(
    r"""(?:\bgroups?:|:groups?\s*=>)\s*(?P<value>%[iIwW]\[[^\]]*\]|\[[^\]]*\]|:\w+|["'][^"']*["'])"""
)
_NAME_TOKEN_RE = re.compile(r"""%[iIwW]\[(?P<words>[^\]]*)\]|:(?P<sym>\w+)|["'](?P<str>[^"']+)["']""")
_OPTION_KEY_RE = re.compile(r"""\b\w+:\s|:\w+\s*=>""")


def _strip_comment(line: str) -> str:
    quote: str | None = None
    for index, char in enumerate(line):
        if quote is not None:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "#":
            return line[:index]
    return line


def _logical_lines(raw: str) -> list[tuple[int, str]]:
    """Join trailing-comma and backslash continuations into single statements."""
    lines: list[tuple[int, str]] = []
    pending = ""
    start = 0
    for line_no, line in enumerate(raw.splitlines(), start=1):
        stripped = _strip_comment(line).strip()
        if not stripped and not pending:
            continue
        if not pending:
            start = line_no
        pending = f"{pending} {stripped}".strip() if pending else stripped
        if pending.endswith("\\"):
            pending = pending[:-1].rstrip()
            continue
        if pending.endswith(","):
            continue
        lines.append((start, pending))
        pending = ""
    if pending:
        lines.append((start, pending))
    return lines


def _names(value: str) -> list[str]:
    names: list[str] = []
    for match in _NAME_TOKEN_RE.finditer(value):
        if match.group("words") is not None:
            # %i[a b] and %w[a b] word arrays
            names.extend(match.group("words").split())
        else:
            names.append(match.group("sym") or match.group("str"))
    return names


def _group_block_names(args: str) -> list[str]:
    # Positional group names come before options such as `optional: true`.
    option = _OPTION_KEY_RE.search(args)
    if option is not None:
        args = args[: option.start()]
    return _names(args)


def _option_groups(rest: str) -> list[str]:
    groups: list[str] = []
    for match in _GROUP_OPTION_RE.finditer(rest):
        groups.extend(_names(match.group("value")))
    return groups


def _string_option(rest: str, key: str) -> str | None:
    match = re.search(rf"""(?:\b{key}:|:{key}\s*=>)\s*["']([^"']+)["']""", rest)
    return match.group(1) if match else None


def _unique(items: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def parse_gemfile(raw: str) -> list[Declaration]:
    declarations: list[Declaration] = []
    # Each frame holds the group names it contributes; neutral blocks hold none.
    stack: list[tuple[int, list[str]]] = []

    def active_groups(extra: list[str]) -> tuple[str, ...]:
        groups = [name for _, frame in stack for name in frame] + extra
        return _unique(groups) or (DEFAULT_GROUP,)

    for line_no, statement in _logical_lines(raw):
        if _END_RE.match(statement):
            if not stack:
                raise GemfileError(
                    "Unbalanced `end` in Gemfile.",
                    context={"line": str(line_no)},
                )
            stack.pop()
            continue

        group_block = _GROUP_BLOCK_RE.match(statement)
        if group_block is not None:
            names = _group_block_names(group_block.group("args"))
            if not names:
                raise GemfileError(
                    "Group block without a group name.",
                    context={"line": str(line_no), "content": statement},
                )
            stack.append((line_no, names))
            continue

        gem = _GEM_RE.match(statement)
        if gem is not None:
            rest = gem.group("rest")
            declarations.append(
                GemDeclaration(
                    name=gem.group("name"),
                    groups=active_groups(_option_groups(rest)),
                    line=line_no,
                )
            )
            continue

        gemspec = _GEMSPEC_RE.match(statement)
        if gemspec is not None:
            rest = gemspec.group("rest")
            declarations.append(
                GemspecDeclaration(
                    path=(_string_option(rest, "path") or ".").rstrip("/") or ".",
                    name=_string_option(rest, "name"),
                    groups=active_groups([]),
                    line=line_no,
                )
            )
            continue

        if _DO_BLOCK_RE.search(statement) or _KEYWORD_BLOCK_RE.match(statement):
            stack.append((line_no, []))

    if stack:
        opened_at, _ = stack[-1]
        raise GemfileError(
            "Gemfile block is never closed with `end`.",
            context={"line": str(opened_at)},
        )
    return declarations
