"""Command line entry point.

Usage:
    bundlegen BUILD.bazel Gemfile.lock repo-name {srcs} workspace-name [--report PATH]
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from bundlegen.errors import ArgumentCountError, BuildifierError
from bundlegen.generator import BundleBuildFileGenerator

USAGE = "USAGE: bundlegen BUILD.bazel Gemfile.lock repo-name {srcs} workspace-name"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise ArgumentCountError(message, hint=USAGE)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="bundlegen",
        add_help=False,
        description="Generate a Bazel BUILD file with one target per locked gem.",
    )
    parser.add_argument("build_file", help="BUILD file to write")
    parser.add_argument("gemfile_lock", help="Gemfile.lock to read")
    parser.add_argument("repo_name", help="Bazel repository holding the bundle")
    parser.add_argument("srcs", help="Source file list (unused)")
    parser.add_argument("workspace_name", help="Workspace that provides //ruby:defs.bzl")
    parser.add_argument("--report", default=None, help="Write a JSON (or .cbor) generation report")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except ArgumentCountError:
        print(USAGE, file=sys.stderr)
        return 1

    generator = BundleBuildFileGenerator(
        workspace_name=args.workspace_name,
        repo_name=args.repo_name,
        build_file=args.build_file,
        gemfile_lock=args.gemfile_lock,
        srcs=args.srcs,
    )
    result = generator.generate()

    try:
        formatted = generator.buildify()
        if formatted.output:
            print(f"Buildifier gave 👍 and said: {formatted.output}")
        print(f"Buildifier successful on file {args.build_file}")
    except BuildifierError as exc:
        print(
            f"ERROR running buildifier on the generated build file [{args.build_file}] ➔ {exc}",
            file=sys.stderr,
        )

    if args.report is not None:
        result.report(generator.logger).write(args.report)
    return 0
