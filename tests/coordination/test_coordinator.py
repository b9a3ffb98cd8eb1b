"""Tests for the component coordinator."""

from __future__ import annotations

from pathlib import Path

import pytest

from collabiter.coordination import COMPLETION_CHECKS, GRAPH_KEY, Coordinator
from collabiter.errors import (
    CircularDependency,
    CompletionBlocked,
    MissingComponentRecord,
    ReservationConflict,
)
from collabiter.models import ComponentRecord, ComponentState
from collabiter.stores import JsonFileStore, MemoryStore


def _record(name: str, path: str, imports=(), exports=("Props",), tests=("tests/x.spec.ts",)) -> ComponentRecord:
    return ComponentRecord(
        name=name, path=path, imports=list(imports), exports=list(exports), tests=list(tests)
    )


def test_check_passes_without_mutating_state(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Button", "src/Button.tsx"))
    before = memory_store.get(GRAPH_KEY)

    coordinator.check_prospective_imports("src/Form.tsx", ["src/Button.tsx"])

    assert memory_store.get(GRAPH_KEY) == before
    assert "src/Form.tsx" not in coordinator.graphs.load()


def test_reverse_registration_is_caught_before_persisting(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.check_prospective_imports("src/A.tsx", ["src/B.tsx"])
    coordinator.register_component(_record("A", "src/A.tsx", imports=["src/B.tsx"]))
    coordinator.register_component(_record("B", "src/B.tsx"))
    before = memory_store.get(GRAPH_KEY)

    with pytest.raises(CircularDependency) as excinfo:
        coordinator.check_prospective_imports("src/B.tsx", ["src/A.tsx"])

    assert excinfo.value.candidate == "src/B.tsx"
    assert excinfo.value.cycle == ["src/B.tsx", "src/A.tsx", "src/B.tsx"]
    assert "src/A.tsx" in str(excinfo.value)
    assert memory_store.get(GRAPH_KEY) == before


def test_longer_cycle_is_named_in_full(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("A", "a", imports=["b"]))
    coordinator.register_component(_record("B", "b", imports=["c"]))
    coordinator.register_component(_record("C", "c"))

    with pytest.raises(CircularDependency) as excinfo:
        coordinator.check_prospective_imports("c", ["d", "a"])

    assert excinfo.value.cycle == ["c", "a", "b", "c"]


def test_register_component_is_idempotent(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Lib", "src/lib.ts"))
    record = _record("Page", "src/page.tsx", imports=["src/lib.ts", "react"])

    once = coordinator.register_component(record)
    twice = coordinator.register_component(record)

    assert once == twice
    assert twice.nodes["src/lib.ts"].dependents == {"src/page.tsx"}
    assert memory_store.get("components/Page")["imports"] == ["src/lib.ts", "react"]


def test_dependents_follow_later_registration_and_reimport(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Page", "page", imports=["lib"]))
    graph = coordinator.register_component(_record("Lib", "lib"))

    assert graph.nodes["lib"].dependents == {"page"}

    graph = coordinator.register_component(_record("Page", "page", imports=[]))
    assert graph.nodes["lib"].dependents == set()


def test_evaluate_completion_reports_every_check(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Card", "src/Card.tsx"))
    coordinator.mark_design_reviewed("Card", reviewer="dana")

    checks = coordinator.evaluate_completion("Card")

    assert set(checks) == set(COMPLETION_CHECKS)
    assert all(checks.values())
    assert coordinator.component_state("Card") is ComponentState.COMPLETE


def test_empty_test_list_always_fails_has_tests(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Bare", "src/Bare.tsx", tests=()))
    coordinator.mark_design_reviewed("Bare")

    checks = coordinator.evaluate_completion("Bare")

    assert checks["has_tests"] is False
    assert checks["types_exported"] is True
    assert coordinator.component_state("Bare") is ComponentState.INCOMPLETE


def test_evaluate_completion_flags_committed_cycles(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    # Registering without a prior check can still corrupt the graph.
    coordinator.register_component(_record("A", "a", imports=["b"]))
    coordinator.register_component(_record("B", "b", imports=["a"]))

    assert coordinator.evaluate_completion("A")["no_circular_deps"] is False


def test_evaluate_completion_unknown_component(memory_store: MemoryStore) -> None:
    with pytest.raises(MissingComponentRecord):
        Coordinator(memory_store).evaluate_completion("Ghost")


def test_require_completion_raises_with_failed_checks(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Modal", "src/Modal.tsx", exports=(), tests=()))

    with pytest.raises(CompletionBlocked) as excinfo:
        coordinator.require_completion("Modal")

    assert excinfo.value.failed == ["has_tests", "design_reviewed", "types_exported"]
    assert "Design reviewed" in str(excinfo.value)


def test_register_tests_merges_and_resets_completion(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    coordinator.register_component(_record("Nav", "src/Nav.tsx", tests=()))
    coordinator.mark_design_reviewed("Nav")
    assert coordinator.evaluate_completion("Nav")["has_tests"] is False

    record = coordinator.register_tests("Nav", ["tests/nav.spec.ts", "tests/nav.spec.ts"])

    assert record.tests == ["tests/nav.spec.ts"]
    assert coordinator.component_state("Nav") is ComponentState.REGISTERED
    assert coordinator.require_completion("Nav")["has_tests"] is True


def test_register_tests_for_unknown_component(memory_store: MemoryStore) -> None:
    with pytest.raises(MissingComponentRecord):
        Coordinator(memory_store).register_tests("Ghost", ["t"])
    assert memory_store.get("components/Ghost") is None


def test_reservation_lifecycle(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)
    assert coordinator.component_state("Table") is ComponentState.UNREGISTERED

    coordinator.reserve_component("Table", "agent-1")
    coordinator.reserve_component("Table", "agent-1")
    assert coordinator.component_state("Table") is ComponentState.RESERVED

    with pytest.raises(ReservationConflict):
        coordinator.reserve_component("Table", "agent-2")

    coordinator.register_component(_record("Table", "src/Table.tsx"))
    assert coordinator.component_state("Table") is ComponentState.REGISTERED


def test_coordinate_agents_records_status_and_rules(memory_store: MemoryStore) -> None:
    coordinator = Coordinator(memory_store)

    coordinator.coordinate_agents(["frontend", "api"])

    assert memory_store.get("agents/frontend/status")["active"] is True
    assert memory_store.get("agents/api/status")["active"] is True
    assert memory_store.get("coordination/rules")["max_parallel_file_edits"] == 1


def test_coordinator_persists_through_json_files(tmp_path: Path) -> None:
    Coordinator(JsonFileStore(tmp_path)).register_component(_record("Lib", "lib"))
    Coordinator(JsonFileStore(tmp_path)).register_component(_record("App", "app", imports=["lib"]))

    graph = Coordinator(JsonFileStore(tmp_path)).graphs.load()

    assert graph.nodes["lib"].dependents == {"app"}
    assert (tmp_path / "dependencies" / "graph.json").exists()
    with pytest.raises(CircularDependency):
        Coordinator(JsonFileStore(tmp_path)).check_prospective_imports("lib", ["app"])
