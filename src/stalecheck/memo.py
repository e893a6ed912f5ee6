from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from .errors import CacheScopeViolation

if TYPE_CHECKING:
    from .context import BuildContext


class HashMemo:
    """Short-lived map from node name to its stored hash.

    Workers read and insert concurrently without a shared lock: single dict
    operations are atomic, and two workers racing on the same miss compute
    the same deterministic value, so the last write wins harmlessly.
    """

    def __init__(self) -> None:
        self._data: dict[str, Optional[str]] = {}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get_or_compute(self, key: str, compute: Callable[[], Optional[str]]) -> Optional[str]:
        try:
            return self._data[key]
        except KeyError:
            pass
        value = compute()
        self._data[key] = value
        return value

    def clear(self) -> None:
        self._data.clear()


@contextmanager
def scoped_hash_memo(context: "BuildContext") -> Iterator[HashMemo]:
    """Attach a fresh memo to ``context`` for one call; always clear and detach it."""
    current = context.hash_memo
    if current is not None and len(current):
        raise CacheScopeViolation(f"hash memo already holds {len(current)} entries at call entry")
    memo = HashMemo()
    context.hash_memo = memo
    try:
        yield memo
    finally:
        memo.clear()
        context.hash_memo = None
