"""
Concurrent Search Example

This example demonstrates:
1. Type-ahead style input where each keystroke supersedes the last search
2. Stale hydration results being discarded
3. Caching of unchanged inputs and a concurrency limit from GraphConfig

Results from earlier keystrokes finish *after* later ones; only the latest
query's results are ever shown.
"""

import asyncio
import random
from typing import List

from hydragraph import GraphConfig, GraphStore, NodeHandle
from hydragraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)

logger = get_logger(LogComponent.SCHEDULER)

SERVICES = ["api-gateway", "api-users", "auth", "billing", "search", "search-indexer"]

async def search_services(query: str) -> List[str]:
    """Slow search; shorter queries take longer to answer."""
    await asyncio.sleep(0.3 / max(len(query), 1) + random.uniform(0, 0.05))
    return [service for service in SERVICES if service.startswith(query)]

def render(handle: NodeHandle) -> None:
    print(f"{Colors.SUCCESS}{handle.name}:{Colors.RESET} {handle.display_value()}")

async def main():
    """Type a query one character at a time."""
    configure_logging(
        default_level=LogLevel.INFO,
        component_levels={LogComponent.SCHEDULER: LogLevel.DEBUG},
    )

    store = GraphStore(
        {
            "query": None,
            "results": {"deps": ["query"], "hydrator": search_services},
            "count": {"deps": ["results"], "hydrator": len},
        },
        config=GraphConfig(max_concurrent_hydrations=4, log_transitions=True),
    )
    store["results"].subscribe(render)
    await store.resolve()

    for prefix in ("a", "ap", "api", "api-"):
        print(f"{Colors.INFO}query = {prefix!r}{Colors.RESET}")
        store["query"].assign(prefix)
        await asyncio.sleep(0.02)

    await store.settled(timeout=5)
    print(f"\n{Colors.INFO}{store['count'].value} matches for {store['query'].value!r}{Colors.RESET}")

    # Same query again: the cache skips the search entirely
    store["query"].assign("api-")
    print(f"Loading after re-typing the same query: {store['results'].is_loading}")
    print(f"Cache: {store.cache.stats()}")

    store.close()

if __name__ == "__main__":
    asyncio.run(main())
