from __future__ import annotations

import pytest

from stalecheck import BuildGraph, GraphCycleError, NodeKind
from stalecheck.graph import dependencies, downstream_nodes, leaf_nodes


def _diamond() -> BuildGraph:
    graph = BuildGraph()
    graph.add_target("D", "d()")
    graph.add_target("B", "b(D, x)", deps=["D", "x"])
    graph.add_target("C", "c(D)", deps=["D"])
    graph.add_target("A", "a(B, C)", deps=["B", "C"])
    return graph


def test_unknown_dependencies_become_imports():
    graph = _diamond()
    assert graph.targets() == ["A", "B", "C", "D"]
    assert graph.imports() == ["x"]
    assert graph.graph.nodes["x"]["kind"] == NodeKind.IMPORT


def test_import_is_promoted_when_declared_as_target():
    graph = BuildGraph()
    graph.add_target("A", "a(B)", deps=["B"])
    assert graph.imports() == ["B"]
    graph.add_target("B", "b()")
    assert graph.targets() == ["A", "B"]
    assert graph.imports() == []
    assert dependencies(graph.graph, "A") == ["B"]


def test_duplicate_target_and_target_as_import_are_rejected():
    graph = BuildGraph().add_target("A", "a()")
    with pytest.raises(ValueError, match="duplicate"):
        graph.add_target("A", "a2()")
    with pytest.raises(ValueError, match="already declared"):
        graph.add_import("A")


def test_cycles_are_reported():
    graph = BuildGraph()
    graph.add_target("A", "a(B)", deps=["B"])
    graph.add_target("B", "b(A)", deps=["A"])
    with pytest.raises(GraphCycleError, match="cycle"):
        graph.validate()
    with pytest.raises(GraphCycleError):
        BuildGraph().add_target("S", "s(S)", deps=["S"])


def test_schedule_and_import_views():
    graph = _diamond()
    schedule = graph.targets_graph()
    assert sorted(schedule.nodes) == ["A", "B", "C", "D"]
    assert "x" not in schedule
    assert leaf_nodes(schedule) == ["D"]
    assert leaf_nodes(graph.graph) == ["D", "x"]
    assert sorted(graph.imports_graph().nodes) == ["x"]

    schedule.remove_node("D")
    assert "D" in graph.graph


def test_downstream_nodes_follow_dependents():
    schedule = _diamond().targets_graph()
    assert downstream_nodes(schedule, ["D"]) == ["A", "B", "C"]
    assert downstream_nodes(schedule, ["C"]) == ["A"]
    assert downstream_nodes(schedule, ["A"]) == []
    assert downstream_nodes(schedule, ["not-there"]) == []
    assert downstream_nodes(schedule, []) == []


def test_misspelled_target_trigger_is_rejected_up_front(tmp_path):
    from stalecheck import MetaStore, build_context

    graph = BuildGraph().add_target("A", "a()", trigger="alwasy")
    with pytest.raises(ValueError, match="unknown trigger 'alwasy'"):
        build_context(graph, store=MetaStore(tmp_path / "cache"))

    ok = BuildGraph().add_target("A", "a()", trigger="Always")
    assert build_context(ok, store=MetaStore(tmp_path / "cache")).graph.nodes["A"]["trigger"] == "Always"
