from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Hashable, Iterable, TypeVar

from loguru import logger

from .errors import WorkerEvaluationError
from .interrupts import check_cancelled

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def lightly_parallelize(items: Iterable[K], fn: Callable[[K], V], jobs: int = 1) -> dict[K, V]:
    """Apply ``fn`` to every item with up to ``jobs`` threads.

    ``jobs <= 1`` runs sequentially in the calling thread. Any failure aborts
    the whole map with WorkerEvaluationError; no partial result is returned.
    """
    items = list(dict.fromkeys(items))
    out: dict[K, V] = {}

    if jobs <= 1 or len(items) <= 1:
        for item in items:
            check_cancelled()
            try:
                out[item] = fn(item)
            except Exception as exc:
                raise WorkerEvaluationError(item, exc) from exc
        return out

    workers = min(int(jobs), len(items))
    logger.debug(f"evaluating {len(items)} items with {workers} workers")
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        future_to_item = {executor.submit(fn, item): item for item in items}
        for future in as_completed(future_to_item):
            check_cancelled()
            item = future_to_item[future]
            try:
                out[item] = future.result()
            except Exception as exc:
                raise WorkerEvaluationError(item, exc) from exc
    except BaseException:
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return out
