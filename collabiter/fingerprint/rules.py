"""Static rule tables and manifest helpers used when fingerprinting a project."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Set

from ..errors import MalformedManifest

MANIFEST_FILENAME = "package.json"
COMPOSE_FILES = ("docker-compose.yml", "docker-compose.yaml")

# Hidden top-level directories that still count towards the directory tree.
ALLOWED_HIDDEN_DIRS = {".github"}

DEPENDENCY_TAGS: Dict[str, str] = {
    "react": "react",
    "vite": "vite",
    "@vitejs/plugin-react": "vite-react",
    "express": "express",
    "fastify": "fastify",
    "next": "nextjs",
    "pg": "postgresql",
    "pg-promise": "postgresql",
    "mysql": "mysql",
    "mysql2": "mysql",
    "mongodb": "mongodb",
    "webpack": "webpack",
    "typescript": "typescript",
    "bun": "bun",
    "jest": "jest",
    "vitest": "vitest",
    "@playwright/test": "playwright",
}

FILE_TAGS: Dict[str, str] = {
    "tsconfig.json": "typescript",
    "tailwind.config.js": "tailwindcss",
    "next.config.js": "nextjs",
}

DIRECTORY_TAGS: Dict[str, str] = {
    "packages": "monorepo",
    "db/migrations": "database-migrations",
}

MARKER_FILES = (
    "CLAUDE.md",
    "README.md",
    "Justfile",
    ".pre-commit-config.yaml",
    "bunfig.toml",
    "bun.lock",
)

MARKER_DIRS = (
    "db/migrations",
    "packages/frontend",
    "packages/backend",
    "packages/shared",
    "terraform",
    "utils/synthetic-data",
)

PRESENCE_FILES = (
    "package.json",
    "tsconfig.json",
    "docker-compose.yml",
    "Dockerfile",
    ".eslintrc.js",
    ".prettierrc",
    "jest.config.js",
    "playwright.config.ts",
)


def load_manifest(root: Path) -> Dict[str, Any] | None:
    """Return the parsed package.json, None when absent.

    Raises MalformedManifest when the file exists but is not a JSON object.
    """
    manifest_path = root / MANIFEST_FILENAME
    if not manifest_path.is_file():
        return None
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedManifest(f"{manifest_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedManifest(f"{manifest_path}: expected a JSON object")
    return data


def manifest_dependencies(manifest: Mapping[str, Any] | None) -> Set[str]:
    """Return runtime and development dependency names declared in a manifest."""
    if not manifest:
        return set()
    names: Set[str] = set()
    for key in ("dependencies", "devDependencies"):
        deps = manifest.get(key)
        if isinstance(deps, dict):
            names.update(name for name, version in deps.items() if version)
    return names


def detect_frameworks(
    root: Path,
    manifest: Mapping[str, Any] | None,
    directories: Iterable[str],
    uses_compose: bool,
) -> Set[str]:
    tags: Set[str] = set()
    for dependency in manifest_dependencies(manifest):
        tag = DEPENDENCY_TAGS.get(dependency)
        if tag is not None:
            tags.add(tag)

    if uses_compose:
        tags.add("docker")
    for filename, tag in FILE_TAGS.items():
        if (root / filename).exists():
            tags.add(tag)

    present = set(directories)
    for directory, tag in DIRECTORY_TAGS.items():
        if directory in present:
            tags.add(tag)
    return tags


def find_markers(root: Path) -> Set[str]:
    markers: Set[str] = {name for name in MARKER_FILES if (root / name).exists()}
    markers.update(f"dir:{name}" for name in MARKER_DIRS if (root / name).exists())
    return markers


def file_presence(root: Path) -> Dict[str, bool]:
    return {name: (root / name).exists() for name in PRESENCE_FILES}


def uses_container_compose(root: Path) -> bool:
    return any((root / name).exists() for name in COMPOSE_FILES)


__all__ = [
    "ALLOWED_HIDDEN_DIRS",
    "DEPENDENCY_TAGS",
    "MARKER_DIRS",
    "MARKER_FILES",
    "PRESENCE_FILES",
    "detect_frameworks",
    "file_presence",
    "find_markers",
    "load_manifest",
    "manifest_dependencies",
    "uses_container_compose",
]
