"""Dependency graph model.

Edges point from a target to what it needs: ``A -> B`` means A depends on B,
so B must be current before A is judged. Leaves are therefore the nodes with
no outgoing edges, and "downstream" of a node is everything that can reach it.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import networkx as nx

from .errors import GraphCycleError
from .hashing import Command


class NodeKind(str, Enum):
    TARGET = "target"
    IMPORT = "import"


class BuildGraph:
    """Collects targets and imports and their dependency edges."""

    def __init__(self) -> None:
        self.graph: nx.DiGraph = nx.DiGraph()

    def __contains__(self, name: object) -> bool:
        return name in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def add_import(self, name: str, *, file: bool = False) -> "BuildGraph":
        if name in self.graph and self.graph.nodes[name].get("kind") == NodeKind.TARGET:
            raise ValueError(f"{name!r} is already declared as a target")
        self.graph.add_node(name, kind=NodeKind.IMPORT, is_file=bool(file), command=None, trigger=None)
        return self

    def add_target(
        self,
        name: str,
        command: Command = None,
        deps: Iterable[str] = (),
        *,
        file: bool = False,
        trigger: Optional[str] = None,
    ) -> "BuildGraph":
        existing = self.graph.nodes[name] if name in self.graph else None
        if existing is not None and existing.get("kind") == NodeKind.TARGET:
            raise ValueError(f"duplicate target {name!r}")
        # Promotes a placeholder import created by an earlier dependency reference.
        self.graph.add_node(name, kind=NodeKind.TARGET, is_file=bool(file), command=command, trigger=trigger)
        for dep in deps:
            if dep == name:
                raise GraphCycleError(f"target {name!r} depends on itself")
            if dep not in self.graph:
                self.graph.add_node(dep, kind=NodeKind.IMPORT, is_file=False, command=None, trigger=None)
            self.graph.add_edge(name, dep)
        return self

    def validate(self) -> None:
        if nx.is_directed_acyclic_graph(self.graph):
            return
        try:
            cycle = nx.find_cycle(self.graph)
        except nx.NetworkXNoCycle:  # pragma: no cover
            return
        path = " -> ".join(str(edge[0]) for edge in cycle) + f" -> {cycle[0][0]}"
        raise GraphCycleError(f"dependency graph has a cycle: {path}")

    def targets(self) -> list[str]:
        return sorted(n for n, kind in self.graph.nodes(data="kind") if kind == NodeKind.TARGET)

    def imports(self) -> list[str]:
        return sorted(n for n, kind in self.graph.nodes(data="kind") if kind == NodeKind.IMPORT)

    def targets_graph(self) -> nx.DiGraph:
        """Build-order schedule: targets only, imports dropped."""
        return self.graph.subgraph(self.targets()).copy()

    def imports_graph(self) -> nx.DiGraph:
        return self.graph.subgraph(self.imports()).copy()


def leaf_nodes(graph: nx.DiGraph) -> list[str]:
    return sorted(n for n, degree in graph.out_degree() if degree == 0)


def dependencies(graph: nx.DiGraph, name: str) -> list[str]:
    return sorted(graph.successors(name))


def downstream_nodes(graph: nx.DiGraph, from_: Iterable[str]) -> list[str]:
    """Every node that transitively depends on any node in ``from_``."""
    out: set[str] = set()
    for name in from_:
        if name in graph:
            out.update(nx.ancestors(graph, name))
    return sorted(out)


def is_file_node(graph: nx.DiGraph, name: str) -> bool:
    return bool(graph.nodes[name].get("is_file", False))
