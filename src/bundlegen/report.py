"""Generation report model and export helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cbor2


@dataclass(frozen=True, slots=True)
class GenerationReport:
    build_file: str
    lockfile: str
    content_digest: str
    ruby_version: str
    bundler_version: str
    target_platform: str
    bundler_setup_require: str
    targets: tuple[str, ...] = ()
    groups: dict[str, list[str]] = field(default_factory=dict)
    logs: tuple[dict[str, Any], ...] = ()
    schema_version: int = 1

    def to_json(self, path: str | Path | None = None) -> str:
        payload = self._payload()
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        payload = self._payload()
        encoded = cbor2.dumps(payload, canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def write(self, path: str | Path) -> Path:
        """Write as CBOR for a ``.cbor`` path, JSON otherwise."""
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if output_path.suffix == ".cbor":
            self.to_cbor(output_path)
        else:
            self.to_json(output_path)
        return output_path

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "build_file": self.build_file,
            "lockfile": self.lockfile,
            "content_digest": self.content_digest,
            "ruby_version": self.ruby_version,
            "bundler_version": self.bundler_version,
            "target_platform": self.target_platform,
            "bundler_setup_require": self.bundler_setup_require,
            "targets": list(self.targets),
            "groups": {name: list(members) for name, members in self.groups.items()},
            "logs": [dict(record) for record in self.logs],
        }
