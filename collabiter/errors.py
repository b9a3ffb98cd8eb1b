"""Error taxonomy shared by the fingerprint, matching and coordination layers."""

from __future__ import annotations

from typing import Sequence

CHECK_TITLES = {
    "has_tests": "Tests written",
    "no_circular_deps": "No circular dependencies",
    "design_reviewed": "Design reviewed",
    "api_integrated": "API integration complete",
    "types_exported": "Types properly exported",
}

CHECK_SUGGESTIONS = {
    "has_tests": "Write tests for the component and register them",
    "no_circular_deps": "Refactor imports to remove circular dependencies",
    "design_reviewed": "Review the design and mark the component as reviewed",
    "api_integrated": "Connect the component to its API endpoints",
    "types_exported": "Export the component types from its entry module",
}


class CollabiterError(RuntimeError):
    """Base class for errors raised by collabiter."""


class CircularDependency(CollabiterError):
    """Raised when a prospective set of imports would close a dependency cycle."""

    def __init__(self, candidate: str, cycle: Sequence[str]) -> None:
        self.candidate = candidate
        self.cycle = list(cycle)
        steps = "\n".join(f"  {index}. {path}" for index, path in enumerate(self.cycle, 1))
        super().__init__(
            f"Creating {candidate} with these imports would create a cycle:\n{steps}"
        )


class MissingComponentRecord(CollabiterError):
    """Raised when a component has never been registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown component: {name}")


class CompletionBlocked(CollabiterError):
    """Raised when a caller requires every completion check to pass and some do not."""

    def __init__(self, name: str, failed: Sequence[str]) -> None:
        self.name = name
        self.failed = list(failed)
        missing = "\n".join(f"  - {CHECK_TITLES.get(check, check)}" for check in self.failed)
        hints = "\n".join(
            f"  - {CHECK_SUGGESTIONS.get(check, 'Complete this requirement')}"
            for check in self.failed
        )
        super().__init__(
            f'Component "{name}" is not complete.\nMissing requirements:\n{missing}\n'
            f"To complete this component:\n{hints}"
        )


class ReservationConflict(CollabiterError):
    """Raised when a component is already reserved by a different owner."""

    def __init__(self, name: str, owner: str, holder: str) -> None:
        self.name = name
        self.owner = owner
        self.holder = holder
        super().__init__(f"Component {name} is reserved by {holder}, not {owner}")


class StorePersistenceFailure(CollabiterError):
    """Raised by persistence adapters when a read or write cannot complete."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Persistence failure for '{key}': {reason}")


class MalformedManifest(CollabiterError):
    """A package manifest exists but cannot be parsed. Recovered during fingerprinting."""


class UnreadableDirectory(CollabiterError):
    """A directory could not be listed. Recovered during fingerprinting."""


__all__ = [
    "CHECK_SUGGESTIONS",
    "CHECK_TITLES",
    "CircularDependency",
    "CollabiterError",
    "CompletionBlocked",
    "MalformedManifest",
    "MissingComponentRecord",
    "ReservationConflict",
    "StorePersistenceFailure",
    "UnreadableDirectory",
]
