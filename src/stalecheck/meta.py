"""Recorded build metadata and the current values it is compared against."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ValidationError

from .errors import MetadataReadError
from .graph import NodeKind, dependencies, is_file_node
from .hashing import hash_command, hash_file, hash_object, hash_text

if TYPE_CHECKING:
    from .context import BuildContext


class Metadata(BaseModel):
    """What was true about a target the last time it was built."""

    name: str
    imported: bool = False
    is_file: bool = False
    trigger: Optional[str] = None
    command: Optional[str] = None
    depends: Optional[str] = None
    file: Optional[str] = None


def read_metadata(name: str, context: "BuildContext") -> Optional[Metadata]:
    raw = context.store.get_meta(name)
    if raw is None:
        return None
    try:
        return Metadata.model_validate(raw)
    except ValidationError as exc:
        raise MetadataReadError(name, f"{exc.error_count()} validation error(s)") from exc


def target_exists(name: str, context: "BuildContext") -> bool:
    if not context.store.exists(name):
        return False
    if name in context.graph and is_file_node(context.graph, name):
        return os.path.exists(name)
    return True


def get_hash(name: str, context: "BuildContext") -> Optional[str]:
    """Stored value hash of ``name``, memoized for the current call when a memo is attached."""
    memo = context.hash_memo
    if memo is None:
        return context.store.get_hash(name)
    return memo.get_or_compute(name, lambda: context.store.get_hash(name))


def current_command_hash(name: str, context: "BuildContext") -> str:
    return hash_command(context.graph.nodes[name].get("command"))


def current_depends_hash(name: str, context: "BuildContext") -> str:
    deps = dependencies(context.graph, name)
    return hash_text(json.dumps([[dep, get_hash(dep, context)] for dep in deps]))


def current_file_hash(name: str, context: "BuildContext") -> Optional[str]:
    if not is_file_node(context.graph, name) or not os.path.exists(name):
        return None
    return hash_file(name)


def record_build(context: "BuildContext", name: str, value: Any = None) -> Metadata:
    """Record that ``name`` was just built (producing ``value``, or its file).

    The build step itself lives outside this package; this stores exactly what
    later staleness checks compare against.
    """
    node = context.graph.nodes[name]
    if node.get("kind") != NodeKind.TARGET:
        raise ValueError(f"{name!r} is not a target")
    file_hash = current_file_hash(name, context)
    if is_file_node(context.graph, name):
        if file_hash is None:
            raise FileNotFoundError(f"build of {name!r} did not produce the file")
        value_hash = file_hash
    else:
        value_hash = hash_object(value)
    meta = Metadata(
        name=name,
        is_file=is_file_node(context.graph, name),
        trigger=node.get("trigger"),
        command=current_command_hash(name, context),
        depends=current_depends_hash(name, context),
        file=file_hash,
    )
    context.store.set_hash(name, value_hash)
    context.store.set_meta(name, meta.model_dump())
    return meta


def dependency_profile(name: str, context: "BuildContext") -> dict[str, dict[str, Any]]:
    """Recorded vs current hash for each signal a trigger can watch."""
    recorded = read_metadata(name, context)
    current = {
        "command": current_command_hash(name, context),
        "depends": current_depends_hash(name, context),
        "file": current_file_hash(name, context),
    }
    out: dict[str, dict[str, Any]] = {}
    for key, value in current.items():
        old = getattr(recorded, key) if recorded is not None else None
        out[key] = {"recorded": old, "current": value, "changed": old != value}
    return out
