"""Per-node memoization of dependency snapshots.

For every cache-enabled node the controller remembers the tuple of dependency
values that produced the node's current value. The scheduler consults it
before invoking a hydrator: an unchanged snapshot means the hydrator would be
called with the same inputs, so the call is skipped.
"""

from typing import Any, Dict, Tuple

from hydragraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.CACHE)

Snapshot = Tuple[Any, ...]


def snapshots_equal(previous: Snapshot, current: Snapshot) -> bool:
    """Structural comparison of two snapshots.

    Values whose equality cannot be reduced to a bool (array-likes, for
    instance) compare as different.
    """
    if len(previous) != len(current):
        return False
    for old, new in zip(previous, current):
        if old is new:
            continue
        try:
            if not bool(old == new):
                return False
        except Exception:
            return False
    return True


class CacheController:
    """Remembers the dependency snapshot behind each node's current value."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, Snapshot] = {}
        self.hits = 0
        self.misses = 0

    def store(self, name: str, snapshot: Snapshot) -> None:
        """Record the snapshot that produced ``name``'s current value."""
        self._snapshots[name] = tuple(snapshot)

    def forget(self, name: str) -> None:
        """Drop the entry for ``name``; the next evaluation always hydrates."""
        self._snapshots.pop(name, None)

    def clear(self) -> None:
        self._snapshots.clear()

    def has_entry(self, name: str) -> bool:
        return name in self._snapshots

    def lookup(self, name: str, snapshot: Snapshot) -> bool:
        """Return True when ``snapshot`` matches the recorded one for ``name``."""
        previous = self._snapshots.get(name)
        if previous is not None and snapshots_equal(previous, tuple(snapshot)):
            self.hits += 1
            logger.debug(f"Cache hit for {name}")
            return True
        self.misses += 1
        logger.debug(f"Cache miss for {name}")
        return False

    def stats(self) -> Dict[str, int]:
        return {"entries": len(self._snapshots), "hits": self.hits, "misses": self.misses}
