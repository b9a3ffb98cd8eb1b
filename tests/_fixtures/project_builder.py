"""Helper utilities for constructing temporary projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Iterable, Mapping

from collabiter.fingerprint import FingerprintEngine, RemoteReader
from collabiter.models import ProjectFingerprint


def remote_runner(remote: str | None):
    """Return a git runner stub answering ``git remote get-url origin``."""

    def runner(args, cwd, timeout=None):  # type: ignore[no-untyped-def]
        if remote is None:
            raise FileNotFoundError("git")
        return f"{remote}\n"

    return runner


class ProjectBuilder:
    """Writes files into a throwaway project and fingerprints it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()
        self.remote: str | None = None

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def write_manifest(self, manifest: Mapping[str, Any]) -> None:
        self.write({"package.json": json.dumps(manifest)})

    def mkdirs(self, directories: Iterable[str]) -> None:
        for directory in directories:
            (self.root / directory).mkdir(parents=True, exist_ok=True)

    def engine(self) -> FingerprintEngine:
        return FingerprintEngine(RemoteReader(runner=remote_runner(self.remote)))

    def fingerprint(self) -> ProjectFingerprint:
        return self.engine().fingerprint(self.root)


__all__ = ["ProjectBuilder", "remote_runner"]
