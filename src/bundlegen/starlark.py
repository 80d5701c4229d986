"""Typed BUILD file statements and their Starlark serializer.

Every statement is a frozen dataclass that yields its call arguments in a
fixed order; ``render`` is the only place that turns them into text, so
quoting and escaping happen once.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, Union

INDENT = "    "
LINE_WIDTH = 79


@dataclass(frozen=True, slots=True)
class Glob:
    include: tuple[str, ...]
    exclude: tuple[str, ...] = ()


Value = Union[str, bool, int, Sequence[str], Glob]
Argument = tuple[str | None, Value | None]


class Statement(Protocol):
    @property
    def kind(self) -> str: ...

    def arguments(self) -> list[Argument]: ...


@dataclass(frozen=True, slots=True)
class Load:
    module: str
    symbols: tuple[str, ...]

    @property
    def kind(self) -> str:
        return "load"

    def arguments(self) -> list[Argument]:
        return [(None, self.module), *((None, symbol) for symbol in self.symbols)]


@dataclass(frozen=True, slots=True)
class Package:
    default_visibility: tuple[str, ...] = ("//visibility:public",)

    @property
    def kind(self) -> str:
        return "package"

    def arguments(self) -> list[Argument]:
        return [("default_visibility", list(self.default_visibility))]


@dataclass(frozen=True, slots=True)
class RubyLibrary:
    name: str
    srcs: tuple[str, ...] | Glob
    visibility: tuple[str, ...] | None = None

    @property
    def kind(self) -> str:
        return "ruby_library"

    def arguments(self) -> list[Argument]:
        srcs: Value = self.srcs if isinstance(self.srcs, Glob) else list(self.srcs)
        visibility = list(self.visibility) if self.visibility is not None else None
        return [("name", self.name), ("srcs", srcs), ("visibility", visibility)]


@dataclass(frozen=True, slots=True)
class Genrule:
    name: str
    outs: tuple[str, ...]
    cmd: str
    message: str
    srcs: tuple[str, ...] = ()
    tools: tuple[str, ...] | None = None
    tools_attribute: str = "exec_tools"
    visibility: tuple[str, ...] = ("//visibility:public",)

    @property
    def kind(self) -> str:
        return "genrule"

    def arguments(self) -> list[Argument]:
        tools = list(self.tools) if self.tools is not None else None
        return [
            ("name", self.name),
            ("srcs", list(self.srcs)),
            (self.tools_attribute, tools),
            ("outs", list(self.outs)),
            ("cmd", self.cmd),
            ("message", self.message),
            ("visibility", list(self.visibility)),
        ]


@dataclass(frozen=True, slots=True)
class PkgTar:
    name: str
    package_dir: str
    owner: str
    srcs: tuple[str, ...] | None = None
    deps: tuple[str, ...] | None = None

    @property
    def kind(self) -> str:
        return "pkg_tar"

    def arguments(self) -> list[Argument]:
        return [
            ("name", self.name),
            ("srcs", list(self.srcs) if self.srcs is not None else None),
            ("deps", list(self.deps) if self.deps is not None else None),
            ("owner", self.owner),
            ("package_dir", self.package_dir),
        ]


def quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _block_string(text: str, depth: int) -> str:
    # Multi-line strings are shell scripts; they are laid out one level deeper
    # than the attribute that holds them.
    body = text.strip("\n").replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    inner = INDENT * (depth + 1)
    lines = [f"{inner}{line}" if line.strip() else "" for line in body.splitlines()]
    return '"""\n' + "\n".join(lines) + "\n" + INDENT * depth + '"""'


def render_value(value: Value, depth: int = 0) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        if "\n" in value:
            return _block_string(value, depth)
        return quote(value)
    if isinstance(value, Glob):
        arguments: list[Argument] = [("include", list(value.include))]
        if value.exclude:
            arguments.append(("exclude", list(value.exclude)))
        return _render_call("glob", arguments, depth, inline=False)
    return _render_list(value, depth)


def _render_list(items: Iterable[str], depth: int) -> str:
    quoted = [quote(item) for item in items]
    inline = "[" + ", ".join(quoted) + "]"
    if len(quoted) <= 1 or len(INDENT * depth) + len(inline) <= LINE_WIDTH:
        return inline
    inner = INDENT * (depth + 1)
    return "[\n" + "".join(f"{inner}{item},\n" for item in quoted) + INDENT * depth + "]"


def _render_argument(key: str | None, value: Value, depth: int) -> str:
    rendered = render_value(value, depth)
    return rendered if key is None else f"{key} = {rendered}"


def _render_call(kind: str, arguments: list[Argument], depth: int, *, inline: bool) -> str:
    present = [(key, value) for key, value in arguments if value is not None]
    if inline:
        one_line = f"{kind}(" + ", ".join(
            _render_argument(key, value, depth) for key, value in present
        ) + ")"
        if "\n" not in one_line and len(INDENT * depth) + len(one_line) <= LINE_WIDTH:
            return one_line
    inner = INDENT * (depth + 1)
    lines = [f"{kind}("]
    for key, value in present:
        lines.append(f"{inner}{_render_argument(key, value, depth + 1)},")
    lines.append(INDENT * depth + ")")
    return "\n".join(lines)


def render(statement: Statement) -> str:
    """Serialize one statement as a top-level Starlark call."""
    # Only loads and package() collapse onto one line; rules are always spread.
    inline = statement.kind in ("load", "package")
    return _render_call(statement.kind, statement.arguments(), 0, inline=inline)


def render_file(statements: Iterable[Statement]) -> str:
    return "\n\n".join(render(statement) for statement in statements) + "\n"
