"""Resolves the project context for a directory, learning new contexts on demand."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import CollabConfig, default_config
from .fingerprint import FingerprintEngine, RemoteReader
from .logging import get_logger
from .matching import ContextMatcher
from .models import ProjectContext, ProjectFingerprint, UsageMetadata, utc_now
from .stores import ContextCatalog

_LOGGER = get_logger("resolver")

_ID_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class Resolution:
    """Outcome of resolving a project directory."""

    context: ProjectContext
    fingerprint: ProjectFingerprint
    matched: bool
    tier: Optional[str] = None


class ContextResolver:
    """Fingerprints a project, matches it against the catalog and persists the result."""

    def __init__(
        self,
        config: CollabConfig | None = None,
        engine: FingerprintEngine | None = None,
        matcher: ContextMatcher | None = None,
        catalog: ContextCatalog | None = None,
    ) -> None:
        self._config = config or default_config()
        self._engine = engine or FingerprintEngine(RemoteReader(timeout=self._config.git_timeout))
        self._matcher = matcher or ContextMatcher(self._config.matching)
        self._catalog = catalog or ContextCatalog(self._config.contexts_dir)

    @property
    def catalog(self) -> ContextCatalog:
        return self._catalog

    def resolve(self, project_path: str | Path) -> Resolution:
        root = Path(project_path).expanduser().resolve()
        _LOGGER.info("Analyzing project %s", root)
        fingerprint = self._engine.fingerprint(root)
        if fingerprint.frameworks_detected:
            _LOGGER.info("Detected: %s", ", ".join(sorted(fingerprint.frameworks_detected)))

        result = self._matcher.match_catalog(fingerprint, self._catalog)
        if result is not None:
            self._catalog.save_context(result.context)
            _LOGGER.info("Matched known project: %s", result.context.display_name)
            return Resolution(
                context=result.context, fingerprint=fingerprint, matched=True, tier=result.tier
            )

        context = self.build_generic_context(root, fingerprint)
        existing = self._catalog.load_context(context.id)
        if existing is not None:
            # Same directory name, drifted structure: refresh instead of resetting usage.
            _LOGGER.info("Refreshing fingerprint of context %s", existing.id)
            existing.fingerprint = fingerprint
            existing.record_use()
            context = existing
        else:
            _LOGGER.info("Building new project context for %s", root.name)
        self._catalog.save_context(context)
        return Resolution(context=context, fingerprint=fingerprint, matched=False)

    def build_generic_context(self, root: Path, fingerprint: ProjectFingerprint) -> ProjectContext:
        """Return a minimal context for a project no stored context describes."""
        name = root.name or "project"
        slug = _ID_UNSAFE.sub("-", name).strip("-") or "project"
        now = utc_now()
        return ProjectContext(
            id=f"custom-{slug}",
            display_name=name,
            fingerprint=fingerprint,
            service_definitions={
                "main": {"type": "generic", "base_port": 3000, "command": "npm start"}
            },
            database_definition=None,
            workflow_defaults=self._config.workflow.as_dict(),
            usage=UsageMetadata(created_at=now, last_used_at=now, usage_count=1),
        )


__all__ = ["ContextResolver", "Resolution"]
