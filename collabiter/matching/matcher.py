"""Tiered matching of project fingerprints against learned contexts."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..config import MatchingConfig
from ..fingerprint.rules import manifest_dependencies
from ..logging import get_logger
from ..models import ProjectContext, ProjectFingerprint
from ..stores.catalog import ContextCatalog

_LOGGER = get_logger("matching")


@dataclass(frozen=True)
class MatchResult:
    """The selected context and the tier that selected it."""

    context: ProjectContext
    tier: str


@dataclass(frozen=True)
class MatchTier:
    """A single matching rule; tiers are tried strictly in order."""

    name: str
    predicate: Callable[[ProjectFingerprint, ProjectFingerprint], bool]

    def matches(self, observed: ProjectFingerprint, expected: ProjectFingerprint) -> bool:
        return self.predicate(observed, expected)


class ContextMatcher:
    """Selects the single best stored context for a fingerprint, or none."""

    def __init__(self, config: MatchingConfig | None = None) -> None:
        self._config = config or MatchingConfig()
        self._tiers: Sequence[MatchTier] = (
            MatchTier("remote", _remote_tier),
            MatchTier("manifest", _manifest_tier),
            MatchTier("markers", self._marker_tier),
            MatchTier("directories", self._directory_tier),
        )

    def match(
        self, fingerprint: ProjectFingerprint, contexts: Iterable[ProjectContext]
    ) -> Optional[MatchResult]:
        """Return the first candidate satisfying the highest tier.

        Every candidate is tried at a tier before any candidate is tried at
        the next one; ties within a tier go to the earliest candidate. The
        winner's usage metadata is updated before it is returned.
        """
        candidates = list(contexts)
        for tier in self._tiers:
            for context in candidates:
                if tier.matches(fingerprint, context.fingerprint):
                    context.record_use()
                    _LOGGER.info("Matched context %s via %s", context.id, tier.name)
                    return MatchResult(context=context, tier=tier.name)
        _LOGGER.debug("No stored context matched among %d candidates", len(candidates))
        return None

    def match_catalog(
        self, fingerprint: ProjectFingerprint, catalog: ContextCatalog
    ) -> Optional[MatchResult]:
        return self.match(fingerprint, catalog.list_contexts())

    def _marker_tier(self, observed: ProjectFingerprint, expected: ProjectFingerprint) -> bool:
        return markers_match(
            observed.distinguishing_markers,
            expected.distinguishing_markers,
            self._config.marker_ratio,
        )

    def _directory_tier(self, observed: ProjectFingerprint, expected: ProjectFingerprint) -> bool:
        similarity = directory_similarity(observed.directory_tree, expected.directory_tree)
        return similarity > self._config.directory_similarity


def remote_matches(observed: str, pattern: str) -> bool:
    """Match a remote URL against a glob where ``*`` and ``?`` are wildcards."""
    translated = "".join(
        ".*" if char == "*" else "." if char == "?" else re.escape(char) for char in pattern
    )
    return re.search(translated, observed, re.IGNORECASE) is not None


def manifest_matches(observed: Mapping[str, Any], expected: Mapping[str, Any]) -> bool:
    expected_workspaces = expected.get("workspaces")
    if expected_workspaces:
        return observed.get("workspaces") == expected_workspaces

    expected_deps = expected.get("dependencies")
    # An empty dependency table carries no identity signal.
    if isinstance(expected_deps, dict) and expected_deps:
        present = manifest_dependencies(observed)
        return all(name in present for name in expected_deps)
    return False


def markers_match(observed: Iterable[str], expected: Iterable[str], ratio: float) -> bool:
    expected_set = set(expected)
    if not expected_set:
        return False
    hits = len(expected_set.intersection(observed))
    # round() guards against products such as 10 * 0.7 == 7.000000000000001
    required = math.ceil(round(len(expected_set) * ratio, 9))
    return hits >= required


def directory_similarity(observed: Sequence[str], expected: Sequence[str]) -> float:
    """Fraction of the expected directories reproduced in the observed tree."""
    if not expected:
        return 0.0
    present = set(observed)
    hits = sum(1 for directory in expected if directory in present)
    return hits / len(expected)


def _remote_tier(observed: ProjectFingerprint, expected: ProjectFingerprint) -> bool:
    if not observed.repository_remote_url or not expected.repository_remote_url:
        return False
    return remote_matches(observed.repository_remote_url, expected.repository_remote_url)


def _manifest_tier(observed: ProjectFingerprint, expected: ProjectFingerprint) -> bool:
    if observed.manifest is None or expected.manifest is None:
        return False
    return manifest_matches(observed.manifest, expected.manifest)


__all__ = [
    "ContextMatcher",
    "MatchResult",
    "MatchTier",
    "directory_similarity",
    "manifest_matches",
    "markers_match",
    "remote_matches",
]
