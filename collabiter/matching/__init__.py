"""Context matching."""

from .matcher import (
    ContextMatcher,
    MatchResult,
    directory_similarity,
    manifest_matches,
    markers_match,
    remote_matches,
)

__all__ = [
    "ContextMatcher",
    "MatchResult",
    "directory_similarity",
    "manifest_matches",
    "markers_match",
    "remote_matches",
]
