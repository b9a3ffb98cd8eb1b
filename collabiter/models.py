"""Core data models shared across collabiter components."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

SCHEMA_VERSION = "1.0.0"


def utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class ProjectFingerprint:
    """Structural summary of a project directory used for identity comparison."""

    repository_remote_url: Optional[str] = None
    directory_tree: List[str] = field(default_factory=list)
    manifest: Optional[Dict[str, Any]] = None
    uses_container_compose: bool = False
    frameworks_detected: Set[str] = field(default_factory=set)
    distinguishing_markers: Set[str] = field(default_factory=set)
    file_presence_flags: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository_remote_url": self.repository_remote_url,
            "directory_tree": list(self.directory_tree),
            "manifest": copy.deepcopy(self.manifest),
            "uses_container_compose": self.uses_container_compose,
            "frameworks_detected": sorted(self.frameworks_detected),
            "distinguishing_markers": sorted(self.distinguishing_markers),
            "file_presence_flags": dict(self.file_presence_flags),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProjectFingerprint":
        """Build a fingerprint from either the snake_case or the legacy camelCase layout."""
        remote = _pick(payload, "repository_remote_url", "gitRemote")
        manifest = _pick(payload, "manifest", "packageJson")
        flags = _pick(payload, "file_presence_flags", "filePatterns")
        return cls(
            repository_remote_url=remote if isinstance(remote, str) and remote else None,
            directory_tree=sorted(_str_items(_pick(payload, "directory_tree", "directories"))),
            manifest=manifest if isinstance(manifest, dict) else None,
            uses_container_compose=bool(_pick(payload, "uses_container_compose", "dockerCompose")),
            frameworks_detected=set(_str_items(_pick(payload, "frameworks_detected", "frameworks"))),
            distinguishing_markers=set(
                _str_items(_pick(payload, "distinguishing_markers", "customMarkers"))
            ),
            file_presence_flags={
                str(name): bool(present)
                for name, present in (flags.items() if isinstance(flags, dict) else [])
            },
        )


@dataclass
class UsageMetadata:
    """Bookkeeping mutated every time a context is selected."""

    created_at: str
    last_used_at: str
    usage_count: int = 0

    def record_use(self) -> None:
        self.last_used_at = utc_now()
        self.usage_count += 1


@dataclass
class ProjectContext:
    """A named configuration profile learned for one project identity."""

    id: str
    display_name: str
    fingerprint: ProjectFingerprint
    schema_version: str = SCHEMA_VERSION
    description: Optional[str] = None
    service_definitions: Dict[str, Any] = field(default_factory=dict)
    database_definition: Optional[Dict[str, Any]] = None
    workflow_defaults: Dict[str, Any] = field(default_factory=dict)
    usage: Optional[UsageMetadata] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def record_use(self) -> None:
        if self.usage is None:
            now = utc_now()
            self.usage = UsageMetadata(created_at=now, last_used_at=now, usage_count=0)
        self.usage.record_use()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = copy.deepcopy(self.extras)
        data.update(
            {
                "id": self.id,
                "display_name": self.display_name,
                "schema_version": self.schema_version,
                "description": self.description,
                "fingerprint": self.fingerprint.to_dict(),
                "services": copy.deepcopy(self.service_definitions),
                "database": copy.deepcopy(self.database_definition),
                "workflow": copy.deepcopy(self.workflow_defaults),
                "usage": None
                if self.usage is None
                else {
                    "created_at": self.usage.created_at,
                    "last_used_at": self.usage.last_used_at,
                    "usage_count": self.usage.usage_count,
                },
            }
        )
        return data

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProjectContext":
        """Build a context from a stored document.

        Documents written by earlier manager releases use camelCase keys
        (``projectId``, ``name``, ``version``, ``metadata``, ``iteration``);
        they are mapped onto the same fields. Keys neither layout knows are
        kept in ``extras``.
        """
        context_id = _pick(payload, "id", "projectId")
        if not isinstance(context_id, str) or not context_id:
            raise ValueError("context document is missing a string 'id' or 'projectId'")
        fingerprint = payload.get("fingerprint")
        if not isinstance(fingerprint, dict):
            raise ValueError(f"context {context_id} is missing a fingerprint")

        legacy = payload.get("metadata")
        legacy = legacy if isinstance(legacy, dict) else {}
        usage_data = payload.get("usage")
        usage_data = usage_data if isinstance(usage_data, dict) else None
        usage = None
        if usage_data is not None or legacy:
            source = usage_data or {}
            created = _pick(source, "created_at") or legacy.get("created")
            last_used = _pick(source, "last_used_at") or legacy.get("lastUsed")
            count = _pick(source, "usage_count")
            if count is None:
                count = legacy.get("usageCount")
            created_at = created if isinstance(created, str) else utc_now()
            usage = UsageMetadata(
                created_at=created_at,
                last_used_at=last_used if isinstance(last_used, str) else created_at,
                usage_count=count if isinstance(count, int) and count >= 0 else 0,
            )

        name = _pick(payload, "display_name", "name")
        description = _pick(payload, "description") or legacy.get("description")
        services = payload.get("services")
        database = payload.get("database")
        workflow = _pick(payload, "workflow", "iteration")
        schema_version = _pick(payload, "schema_version", "version")
        extras = {
            key: copy.deepcopy(value)
            for key, value in payload.items()
            if key not in _CONTEXT_KEYS and key not in _LEGACY_CONTEXT_KEYS
        }
        return cls(
            id=context_id,
            display_name=name if isinstance(name, str) and name else context_id,
            fingerprint=ProjectFingerprint.from_dict(fingerprint),
            schema_version=schema_version if isinstance(schema_version, str) else SCHEMA_VERSION,
            description=description if isinstance(description, str) else None,
            service_definitions=copy.deepcopy(services) if isinstance(services, dict) else {},
            database_definition=copy.deepcopy(database) if isinstance(database, dict) else None,
            workflow_defaults=copy.deepcopy(workflow) if isinstance(workflow, dict) else {},
            usage=usage,
            extras=extras,
        )


_CONTEXT_KEYS = {
    "id",
    "display_name",
    "schema_version",
    "description",
    "fingerprint",
    "services",
    "database",
    "workflow",
    "usage",
}

_LEGACY_CONTEXT_KEYS = {"projectId", "name", "version", "metadata", "iteration"}


@dataclass
class DependencyNode:
    """Import/export relationships recorded for one component path."""

    imports: Set[str] = field(default_factory=set)
    exports: Set[str] = field(default_factory=set)
    dependents: Set[str] = field(default_factory=set)


class DependencyGraph:
    """Component import graph with dependents kept consistent with imports."""

    def __init__(self, nodes: Optional[Dict[str, DependencyNode]] = None) -> None:
        self.nodes: Dict[str, DependencyNode] = nodes or {}
        self.rebuild_dependents()

    def __contains__(self, path: object) -> bool:
        return path in self.nodes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return self.nodes == other.nodes

    def imports_of(self, path: str) -> Set[str]:
        node = self.nodes.get(path)
        return node.imports if node is not None else set()

    def set_node(self, path: str, imports: Iterable[str], exports: Iterable[str]) -> None:
        self.nodes[path] = DependencyNode(imports=set(imports), exports=set(exports))
        self.rebuild_dependents()

    def rebuild_dependents(self) -> None:
        for node in self.nodes.values():
            node.dependents.clear()
        for path, node in self.nodes.items():
            for target in node.imports:
                target_node = self.nodes.get(target)
                if target_node is not None:
                    target_node.dependents.add(path)

    def to_dict(self) -> Dict[str, Dict[str, List[str]]]:
        return {
            path: {
                "imports": sorted(node.imports),
                "exports": sorted(node.exports),
                "dependents": sorted(node.dependents),
            }
            for path, node in sorted(self.nodes.items())
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "DependencyGraph":
        nodes: Dict[str, DependencyNode] = {}
        if isinstance(payload, dict):
            for path, raw in payload.items():
                if not isinstance(path, str) or not isinstance(raw, dict):
                    continue
                nodes[path] = DependencyNode(
                    imports=set(_str_items(raw.get("imports"))),
                    exports=set(_str_items(raw.get("exports"))),
                )
        return cls(nodes)


@dataclass
class ComponentRecord:
    """Registration payload submitted once a component has been produced."""

    name: str
    path: str
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    tests: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "imports": list(self.imports),
            "exports": list(self.exports),
            "tests": list(self.tests),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ComponentRecord":
        created = payload.get("created_at")
        return cls(
            name=str(payload.get("name", "")),
            path=str(payload.get("path", "")),
            imports=_str_items(payload.get("imports")),
            exports=_str_items(payload.get("exports")),
            tests=_str_items(payload.get("tests")),
            created_at=created if isinstance(created, str) else None,
        )


class ComponentState(str, Enum):
    """Lifecycle of a component as seen through the coordination store."""

    UNREGISTERED = "unregistered"
    RESERVED = "reserved"
    REGISTERED = "registered"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


def _str_items(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple, set)):
        return []
    return [item for item in value if isinstance(item, str)]


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None
