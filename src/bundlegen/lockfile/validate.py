"""Validation helpers for the extracted gem set."""

from __future__ import annotations

from bundlegen.errors import ValidationError
from bundlegen.lockfile.model import ParsedLockfile
from bundlegen.models import CORE_RUNTIME


def validate_dependencies(lockfile: ParsedLockfile) -> None:
    """Every dependency edge must point at a locked gem or the bundler runtime."""
    known = set(lockfile.names) | {CORE_RUNTIME}
    for spec in lockfile.specs:
        missing = [dep for dep in spec.dependencies if dep not in known]
        if missing:
            raise ValidationError(
                "Gem depends on gems that are not in the lockfile.",
                hint="Re-run `bundle lock` so the lockfile lists every dependency.",
                context={
                    "gem": spec.name,
                    "missing": ", ".join(missing),
                    "operation": "validate_dependencies",
                },
            )
