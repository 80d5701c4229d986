"""Run ``buildifier`` over a generated BUILD file.

The binary is looked up on PATH and run once with ``-v`` so that its
diagnostics are captured; nothing is retried.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from bundlegen.errors import (
    BuildifierFailedError,
    BuildifierNoBuildFileError,
    BuildifierNotFoundError,
)

MAX_OUTPUT = 2000


@dataclass(frozen=True, slots=True)
class BuildifierResult:
    build_file: Path
    output: str
    command: tuple[str, ...]


@dataclass(slots=True)
class Buildifier:
    build_file: Path
    binary: str = "buildifier"
    args: list[str] = field(default_factory=lambda: ["-v"])

    def buildify(self) -> BuildifierResult:
        build_file = Path(self.build_file)
        if not build_file.exists():
            raise BuildifierNoBuildFileError(
                "Can't find the BUILD file.",
                context={"build_file": str(build_file), "operation": "buildify"},
            )

        executable = shutil.which(self.binary)
        if executable is None:
            raise BuildifierNotFoundError(
                "Can't find buildifier.",
                hint="Install buildifier from bazelbuild/buildtools and put it on PATH.",
                context={"binary": self.binary, "operation": "buildify"},
            )

        command = (executable, *self.args, str(build_file.resolve()))
        result = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            check=False,
        )
        output = _relative_output(result.stdout + result.stderr)

        if result.returncode != 0:
            raise BuildifierFailedError(
                "Generated BUILD file failed buildifier.",
                hint="The BUILD file was written; fix the reported lines or the generator templates.",
                context={
                    "build_file": str(build_file),
                    "operation": "buildify",
                    "returncode": str(result.returncode),
                    "output": output[:MAX_OUTPUT],
                    "command": " ".join(command),
                },
            )
        return BuildifierResult(build_file=build_file, output=output, command=command)


def _relative_output(output: str) -> str:
    return output.strip().replace(os.getcwd(), ".")


def buildify(build_file: str | Path) -> BuildifierResult:
    return Buildifier(build_file=Path(build_file)).buildify()
