"""Read-only git inspection used by the fingerprint engine."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable

from ..logging import get_logger

_LOGGER = get_logger("fingerprint.git")

Runner = Callable[..., str]


class RemoteReader:
    """Reads the origin remote URL of a working tree."""

    def __init__(self, runner: Runner | None = None, timeout: float = 10.0) -> None:
        self._runner = runner or self._default_runner
        self._timeout = timeout

    def origin_url(self, repo: Path) -> str | None:
        try:
            output = self._runner(
                ["git", "remote", "get-url", "origin"], cwd=repo, timeout=self._timeout
            )
        except (OSError, subprocess.SubprocessError) as exc:
            _LOGGER.debug("No origin remote for %s: %s", repo, exc)
            return None
        remote = output.strip()
        return remote or None

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path, timeout: float) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
        return completed.stdout


__all__ = ["RemoteReader"]
