"""Which targets are out of date, and which imports are missing."""

from __future__ import annotations

from loguru import logger

from .context import BuildContext, assert_context
from .errors import MetadataReadError
from .graph import downstream_nodes, leaf_nodes
from .imports import display_keys, missing_import, process_imports
from .interrupts import check_cancelled
from .memo import scoped_hash_memo
from .meta import read_metadata, target_exists
from .parallel import lightly_parallelize
from .prework import run_prework
from .triggers import should_build


def outdated(context: BuildContext, make_imports: bool = True, do_prework: bool = True) -> list[str]:
    """List the targets the next build will rebuild.

    Targets found stale on their own are combined with everything downstream
    of them in the schedule. An empty list means up to date under the active
    trigger.
    """
    context = assert_context(context)
    if do_prework:
        run_prework(context)
    if make_imports:
        process_imports(context)
    stale = first_outdated(context)
    logger.debug("find downstream outdated targets")
    downstream = downstream_nodes(context.schedule, stale)
    return sorted(set(stale) | set(downstream))


def _target_is_stale(target: str, context: BuildContext) -> bool:
    if not target_exists(target, context):
        return True
    try:
        recorded = read_metadata(target, context)
    except MetadataReadError as exc:
        logger.warning(f"treating {target} as outdated: {exc}")
        return True
    return should_build(target, recorded, context)


def first_outdated(context: BuildContext) -> list[str]:
    """Find the targets that are stale independently of their dependencies.

    Leaves of a working copy of the schedule are checked in parallel. Clean
    leaves are pruned, exposing their dependents; stale leaves stay put so
    their dependents never become leaves. The loop stops once a round prunes
    nothing, i.e. every newly exposed leaf was stale.
    """
    out: list[str] = []
    with scoped_hash_memo(context):
        schedule = context.schedule.copy()
        while True:
            check_cancelled()
            logger.debug("find more outdated targets")
            seen = set(out)
            new_leaves = [n for n in leaf_nodes(schedule) if n not in seen]
            do_build = lightly_parallelize(
                new_leaves,
                lambda target: _target_is_stale(target, context),
                jobs=context.jobs_preprocess,
            )
            out.extend(n for n in new_leaves if do_build[n])
            if all(do_build.values()):
                break
            schedule.remove_nodes_from([n for n in new_leaves if not do_build[n]])
    return out


def missed(context: BuildContext) -> list[str]:
    """Imports the plan needs that are absent from the environment or filesystem."""
    context = assert_context(context)
    imports = sorted(context.imports.nodes)
    is_missing = lightly_parallelize(imports, lambda name: missing_import(name, context), jobs=context.jobs)
    if not any(is_missing.values()):
        return []
    return sorted(display_keys([name for name in imports if is_missing[name]], context))
