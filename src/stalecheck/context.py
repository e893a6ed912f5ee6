from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import networkx as nx

from .config import Settings
from .errors import ConfigTypeError
from .graph import BuildGraph
from .memo import HashMemo
from .store import MetaStore
from .triggers import Trigger

PreworkStep = Union[str, Callable[[dict[str, Any]], Any]]


@dataclass
class BuildContext:
    """Resolved inputs of one discovery call.

    Treated as read-only by the core; only ``hash_memo`` is attached and
    detached around staleness discovery.
    """

    graph: nx.DiGraph
    schedule: nx.DiGraph
    imports: nx.DiGraph
    store: MetaStore
    trigger: Trigger = Trigger.ANY
    jobs: int = 1
    jobs_preprocess: int = 1
    envir: dict[str, Any] = field(default_factory=dict)
    prework: list[PreworkStep] = field(default_factory=list)
    hash_memo: Optional[HashMemo] = field(default=None, repr=False)


def build_context(
    graph: BuildGraph,
    *,
    settings: Settings | None = None,
    store: MetaStore | None = None,
    envir: dict[str, Any] | None = None,
    trigger: Trigger | str | None = None,
    jobs: int | None = None,
    jobs_preprocess: int | None = None,
    prework: list[PreworkStep] | None = None,
) -> BuildContext:
    """Resolve a BuildGraph plus settings into a BuildContext."""
    if not isinstance(graph, BuildGraph):
        raise ConfigTypeError(f"build_context() expects a BuildGraph, got {type(graph).__name__}")
    graph.validate()
    for name in graph.targets():
        own = graph.graph.nodes[name].get("trigger")
        if own:
            Trigger.parse(own)
    settings = settings or Settings()
    if store is None:
        store = MetaStore(settings.resolve_path(settings.cache_dir))
    return BuildContext(
        graph=graph.graph.copy(),
        schedule=graph.targets_graph(),
        imports=graph.imports_graph(),
        store=store,
        trigger=Trigger.parse(trigger if trigger is not None else settings.trigger),
        jobs=max(1, int(settings.jobs if jobs is None else jobs)),
        jobs_preprocess=max(1, int(settings.jobs_preprocess if jobs_preprocess is None else jobs_preprocess)),
        envir=envir if envir is not None else {},
        prework=list(prework or []),
    )


def assert_context(obj: object) -> BuildContext:
    if isinstance(obj, BuildContext):
        return obj
    if isinstance(obj, BuildGraph):
        raise ConfigTypeError(
            "got a raw BuildGraph where a resolved BuildContext is required; "
            "call build_context() first and pass its result"
        )
    raise ConfigTypeError(f"expected a BuildContext, got {type(obj).__name__}")
