"""Builds structural fingerprints of project directories."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..errors import MalformedManifest, UnreadableDirectory
from ..logging import get_logger
from ..models import ProjectFingerprint
from . import rules
from .git import RemoteReader

_LOGGER = get_logger("fingerprint")


class FingerprintEngine:
    """Inspects a project directory without modifying it."""

    def __init__(self, remote_reader: RemoteReader | None = None) -> None:
        self._remote_reader = remote_reader or RemoteReader()

    def fingerprint(self, path: str | Path) -> ProjectFingerprint:
        """Return the fingerprint of the project rooted at ``path``."""
        root = Path(path).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Project path not found: {path}")
        if not root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {path}")

        directories = directory_tree(root)

        try:
            manifest = rules.load_manifest(root)
        except MalformedManifest as exc:
            _LOGGER.debug("Ignoring malformed manifest: %s", exc)
            manifest = None

        uses_compose = rules.uses_container_compose(root)
        fingerprint = ProjectFingerprint(
            repository_remote_url=self._remote_reader.origin_url(root),
            directory_tree=directories,
            manifest=manifest,
            uses_container_compose=uses_compose,
            frameworks_detected=rules.detect_frameworks(root, manifest, directories, uses_compose),
            distinguishing_markers=rules.find_markers(root),
            file_presence_flags=rules.file_presence(root),
        )
        _LOGGER.debug(
            "Fingerprinted %s: %d directories, frameworks=%s, markers=%s",
            root,
            len(directories),
            sorted(fingerprint.frameworks_detected),
            sorted(fingerprint.distinguishing_markers),
        )
        return fingerprint


def directory_tree(root: Path) -> List[str]:
    """List non-hidden directories two levels deep, lexically sorted."""
    entries: List[str] = []
    try:
        top_level = _child_directories(root)
    except UnreadableDirectory as exc:
        _LOGGER.debug("Skipping unreadable project root: %s", exc)
        return entries

    for name in top_level:
        if name.startswith(".") and name not in rules.ALLOWED_HIDDEN_DIRS:
            continue
        entries.append(name)
        try:
            children = _child_directories(root / name)
        except UnreadableDirectory as exc:
            _LOGGER.debug("Skipping unreadable directory: %s", exc)
            continue
        entries.extend(f"{name}/{child}" for child in children if not child.startswith("."))
    return sorted(entries)


def _child_directories(path: Path) -> List[str]:
    try:
        return [entry.name for entry in path.iterdir() if entry.is_dir()]
    except OSError as exc:
        raise UnreadableDirectory(f"{path}: {exc}") from exc


__all__ = ["FingerprintEngine", "directory_tree"]
