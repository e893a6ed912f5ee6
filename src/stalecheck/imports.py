"""Imports: objects and files a plan needs but does not build."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Iterable

from loguru import logger

from .graph import is_file_node
from .hashing import hash_file, hash_object
from .meta import Metadata
from .parallel import lightly_parallelize

if TYPE_CHECKING:
    from .context import BuildContext

MISSING_HASH = "missing"


def missing_import(name: str, context: "BuildContext") -> bool:
    if is_file_node(context.graph, name):
        return not os.path.exists(name)
    return name not in context.envir


def display_key(name: str, context: "BuildContext") -> str:
    if name in context.graph and is_file_node(context.graph, name):
        return f'"{name}"'
    return name


def display_keys(names: Iterable[str], context: "BuildContext") -> list[str]:
    return [display_key(name, context) for name in names]


def import_hash(name: str, context: "BuildContext") -> str:
    if missing_import(name, context):
        return MISSING_HASH
    if is_file_node(context.graph, name):
        return hash_file(name)
    return hash_object(context.envir[name])


def _process_import(name: str, context: "BuildContext") -> str:
    value = import_hash(name, context)
    if value == MISSING_HASH:
        logger.warning(f"missing import: {display_key(name, context)}")
    context.store.set_hash(name, value)
    is_file = is_file_node(context.graph, name)
    meta = Metadata(name=name, imported=True, is_file=is_file, file=value if is_file else None)
    context.store.set_meta(name, meta.model_dump())
    return value


def process_imports(context: "BuildContext") -> dict[str, str]:
    """Refresh the stored hash of every import from the environment and filesystem."""
    names = sorted(context.imports.nodes)
    if not names:
        return {}
    logger.debug(f"processing {len(names)} imports")
    return lightly_parallelize(names, lambda name: _process_import(name, context), jobs=context.jobs_preprocess)
