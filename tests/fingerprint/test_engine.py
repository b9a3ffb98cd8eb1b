"""Tests for project fingerprinting."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from collabiter.fingerprint import FingerprintEngine, RemoteReader, directory_tree


def test_fingerprint_collects_structure_frameworks_and_markers(project_builder) -> None:
    project_builder.remote = "git@github.com:acme/media-tool.git"
    project_builder.write_manifest(
        {
            "name": "media-tool",
            "workspaces": ["packages/*"],
            "dependencies": {"react": "^18.2.0", "pg-promise": "^11.0.0", "left-pad": "1.0.0"},
            "devDependencies": {"vitest": "^1.0.0", "@playwright/test": "^1.40.0"},
        }
    )
    project_builder.write(
        {
            "CLAUDE.md": "# Instructions\n",
            "README.md": "# Media tool\n",
            "docker-compose.yml": "services: {}\n",
            "tsconfig.json": "{}\n",
            ".github/workflows/ci.yml": "on: push\n",
            ".cache/data.bin": "x",
        }
    )
    project_builder.mkdirs(["packages/frontend", "packages/backend", "db/migrations", "packages/.hidden"])

    fingerprint = project_builder.fingerprint()

    assert fingerprint.repository_remote_url == "git@github.com:acme/media-tool.git"
    assert fingerprint.directory_tree == [
        ".github",
        ".github/workflows",
        "db",
        "db/migrations",
        "packages",
        "packages/backend",
        "packages/frontend",
    ]
    assert fingerprint.manifest is not None
    assert fingerprint.manifest["name"] == "media-tool"
    assert fingerprint.uses_container_compose is True
    assert fingerprint.frameworks_detected == {
        "react",
        "postgresql",
        "vitest",
        "playwright",
        "docker",
        "typescript",
        "monorepo",
        "database-migrations",
    }
    assert fingerprint.distinguishing_markers == {
        "CLAUDE.md",
        "README.md",
        "dir:db/migrations",
        "dir:packages/frontend",
        "dir:packages/backend",
    }
    assert fingerprint.file_presence_flags["package.json"] is True
    assert fingerprint.file_presence_flags["docker-compose.yml"] is True
    assert fingerprint.file_presence_flags["Dockerfile"] is False


def test_fingerprint_tolerates_missing_repository_and_bad_manifest(project_builder) -> None:
    project_builder.remote = None
    project_builder.write({"package.json": "{ not json", "src/index.ts": "export {}\n"})

    fingerprint = project_builder.fingerprint()

    assert fingerprint.repository_remote_url is None
    assert fingerprint.manifest is None
    assert fingerprint.frameworks_detected == set()
    assert fingerprint.directory_tree == ["src"]


def test_fingerprint_ignores_non_object_manifest(project_builder) -> None:
    project_builder.write({"package.json": "[1, 2, 3]"})

    assert project_builder.fingerprint().manifest is None


def test_fingerprint_rejects_missing_directory(tmp_path: Path) -> None:
    engine = FingerprintEngine(RemoteReader(runner=lambda *a, **k: ""))

    with pytest.raises(FileNotFoundError):
        engine.fingerprint(tmp_path / "missing")


def test_directory_tree_stops_at_two_levels(tmp_path: Path) -> None:
    (tmp_path / "a" / "b" / "c").mkdir(parents=True)
    (tmp_path / "a" / "file.txt").write_text("x", encoding="utf-8")

    assert directory_tree(tmp_path) == ["a", "a/b"]


def test_remote_reader_handles_git_failures(tmp_path: Path) -> None:
    calls = []

    def runner(args, cwd, timeout):  # type: ignore[no-untyped-def]
        calls.append((list(args), Path(cwd), timeout))
        raise subprocess.CalledProcessError(2, args)

    reader = RemoteReader(runner=runner, timeout=3.0)

    assert reader.origin_url(tmp_path) is None
    assert calls == [(["git", "remote", "get-url", "origin"], tmp_path, 3.0)]


def test_remote_reader_treats_blank_output_as_absent(tmp_path: Path) -> None:
    reader = RemoteReader(runner=lambda args, cwd, timeout: "\n")

    assert reader.origin_url(tmp_path) is None


def test_unreadable_subdirectory_is_listed_without_children(project_builder, monkeypatch) -> None:
    project_builder.write_manifest({"dependencies": {"react": "^18.2.0"}})
    project_builder.write({"CLAUDE.md": "# Instructions\n"})
    project_builder.mkdirs(["locked/inner", "packages/frontend", "src"])
    real_iterdir = Path.iterdir

    def iterdir(self):  # type: ignore[no-untyped-def]
        if self.name == "locked":
            raise PermissionError(13, "Permission denied", str(self))
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)

    fingerprint = project_builder.fingerprint()

    assert fingerprint.directory_tree == ["locked", "packages", "packages/frontend", "src"]
    assert fingerprint.manifest == {"dependencies": {"react": "^18.2.0"}}
    assert "react" in fingerprint.frameworks_detected
    assert fingerprint.distinguishing_markers == {"CLAUDE.md", "dir:packages/frontend"}
    assert fingerprint.file_presence_flags["package.json"] is True
