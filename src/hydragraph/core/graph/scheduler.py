"""Hydration scheduler.

The scheduler keeps a registered graph consistent as values change. Every
mutation marks the changed node's transitive dependents dirty; a propagation
step then walks the graph in topological order and evaluates each dirty node
whose dependencies have settled (neither dirty nor waiting on an outstanding
hydration). Evaluating a node either:

1. inherits an ancestor's error without calling the hydrator,
2. leaves the node unresolved while a dependency has never resolved,
3. does nothing when no dependency changed since the last evaluation,
4. skips the hydrator on a cache hit, or
5. launches the hydrator.

Synchronous hydrator results commit immediately. Awaitable results are awaited
in an asyncio task tagged with the node's version at launch; a result whose tag
no longer matches the node's version is stale and silently discarded.

Mutations issued while a step is running (from a synchronous hydrator or a
subscriber callback) are queued and applied once the step has finished.
"""

import asyncio
import inspect
from collections import deque
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple

from hydragraph.core.config import GraphConfig
from hydragraph.core.errors import GraphClosedError, HydrationError, PathNotFoundError
from hydragraph.core.graph.cache import CacheController, Snapshot
from hydragraph.core.graph.nodes.base.node import DataNode
from hydragraph.core.graph.paths import PathLike, set_in
from hydragraph.core.logging import get_logger, log_verbose, LogComponent

if TYPE_CHECKING:
    from hydragraph.core.graph.base import GraphStore

logger = get_logger(LogComponent.SCHEDULER)

Mutation = Callable[[], None]


class Scheduler:
    """Drives hydration and propagation for one GraphStore.

    Attributes:
        started: Whether the initial resolution pass has begun
        closed: Whether the owning store has been discarded
    """

    def __init__(self, store: "GraphStore", cache: CacheController, config: GraphConfig) -> None:
        self._store = store
        self._cache = cache
        self._config = config

        self._dirty: Set[str] = set()
        self._forced: Set[str] = set()
        # node name -> version tag of its current outstanding attempt
        self._inflight: Dict[str, int] = {}
        # node name -> dependency versions seen at its last evaluation
        self._seen: Dict[str, Tuple[int, ...]] = {}
        self._queue: Deque[Mutation] = deque()
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._idle_waiters: List["asyncio.Future[None]"] = []
        self._busy = False

        self.started = False
        self.closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def inflight(self) -> Dict[str, int]:
        return dict(self._inflight)

    @property
    def dirty(self) -> Set[str]:
        return set(self._dirty)

    def pending_tasks(self) -> Iterable["asyncio.Task[None]"]:
        """Tasks still awaiting hydrator results, including stale ones."""
        return set(self._tasks)

    def is_idle(self) -> bool:
        """No dirty node will be evaluated and no current attempt is outstanding."""
        if self._inflight:
            return False
        return not (self.started and self._dirty)

    # ------------------------------------------------------------------
    # Mutation entry points
    # ------------------------------------------------------------------

    def submit(self, mutation: Mutation) -> None:
        """Apply ``mutation`` and propagate, or queue it if a step is running."""
        if self.closed:
            raise GraphClosedError("Graph store has been closed")
        self._queue.append(mutation)
        if self._busy:
            logger.debug("Queued nested mutation until the current propagation step completes")
            return
        self._drain()

    def start(self) -> None:
        """Begin the initial resolution pass."""
        if self.started:
            return

        def begin() -> None:
            self.started = True
            self._dirty.update(
                name for name in self._store.order if not self._store.node(name).is_leaf
            )
            logger.info(f"Starting initial resolution of {len(self._dirty)} derived nodes")

        self.submit(begin)

    def assign(self, name: str, value: Any) -> None:
        self.submit(partial(self._apply_assignment, name, value))

    def update(self, name: str, path: PathLike, value: Any) -> None:
        """Set ``value`` at ``path`` in whatever value ``name`` holds when the update is applied."""
        self.submit(partial(self._apply_update, name, path, value))

    def refresh(self, name: str) -> None:
        self.submit(partial(self._apply_refresh, name))

    def close(self) -> None:
        """Stop propagation; outstanding attempts become stale."""
        self.closed = True
        self._queue.clear()
        self._dirty.clear()
        self._forced.clear()
        self._inflight.clear()
        self._wake_idle_waiters()

    async def settled(self, timeout: Optional[float] = None) -> None:
        """Wait until the graph is idle.

        Raises:
            asyncio.TimeoutError: If ``timeout`` seconds pass first
        """
        if self.is_idle() or self.closed:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._idle_waiters.append(waiter)
        if timeout is None:
            await waiter
        else:
            await asyncio.wait_for(waiter, timeout)

    # ------------------------------------------------------------------
    # Mutations, always applied from _drain
    # ------------------------------------------------------------------

    def _apply_assignment(self, name: str, value: Any) -> None:
        node = self._store.node(name)
        if self._inflight.pop(name, None) is not None:
            logger.debug(f"Assignment to {name} supersedes its outstanding hydration")
        self._dirty.discard(name)
        self._forced.discard(name)
        node.state.resolve(value)

        # A manual override stands until a dependency changes.
        deps = [self._store.node(dep) for dep in node.deps]
        self._seen[name] = tuple(dep.state.version for dep in deps)
        if node.cache and deps and all(dep.has_value and dep.state.error is None for dep in deps):
            self._cache.store(name, tuple(dep.state.value for dep in deps))
        else:
            self._cache.forget(name)

        self._transition(node, "assigned")
        self._invalidate_dependents(name)

    def _apply_update(self, name: str, path: PathLike, value: Any) -> None:
        node = self._store.node(name)
        try:
            updated = set_in(node.state.value, path, value, node=name)
        except PathNotFoundError as e:
            # An earlier queued mutation changed the value's shape
            logger.warning(f"Dropping queued update of {name}: {e}")
            return
        self._apply_assignment(name, updated)

    def _apply_refresh(self, name: str) -> None:
        node = self._store.node(name)
        if node.is_leaf:
            logger.debug(f"Ignoring refresh of leaf node {name}")
            return
        self._forced.add(name)
        self._dirty.add(name)
        self._invalidate_dependents(name)

    def _invalidate_dependents(self, name: str) -> None:
        dependents = self._store.dependents_of(name)
        if dependents:
            log_verbose(logger, f"Invalidating dependents of {name}: {sorted(dependents)}")
        self._dirty.update(dependents)

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _drain(self) -> None:
        self._busy = True
        try:
            while self._queue:
                mutation = self._queue.popleft()
                mutation()
                self._pump()
        finally:
            self._busy = False
        if self.is_idle():
            self._wake_idle_waiters()

    def _pump(self) -> None:
        """Evaluate every dirty node whose dependencies have settled."""
        if not self.started or self.closed:
            return
        progressed = True
        while progressed and self._dirty:
            progressed = False
            for name in self._store.order:
                if name not in self._dirty or not self._deps_settled(name):
                    continue
                if self._evaluate(name):
                    progressed = True

    def _deps_settled(self, name: str) -> bool:
        return all(
            dep not in self._dirty and dep not in self._inflight
            for dep in self._store.node(name).deps
        )

    def _evaluate(self, name: str) -> bool:
        """Evaluate one dirty node. Returns False if the node was deferred."""
        node = self._store.node(name)
        deps = [self._store.node(dep) for dep in node.deps]
        forced = name in self._forced
        versions = tuple(dep.state.version for dep in deps)

        failed = next((dep for dep in deps if dep.state.error is not None), None)
        if failed is not None:
            self._finish_evaluation(name, versions)
            self._inherit_error(node, failed)
            return True

        if not all(dep.has_value for dep in deps):
            self._finish_evaluation(name, versions)
            logger.debug(f"Node {name} is waiting on unresolved dependencies")
            return True

        if not forced and self._seen.get(name) == versions:
            # Re-marked dirty, but nothing upstream actually changed.
            self._dirty.discard(name)
            return True

        snapshot = tuple(dep.state.value for dep in deps)
        if (
            not forced
            and node.cache
            and node.state.error is None
            and name not in self._inflight
            and self._cache.lookup(name, snapshot)
        ):
            self._finish_evaluation(name, versions)
            return True

        if self._at_capacity(name):
            logger.debug(f"Deferring {name}: hydration limit reached")
            return False

        self._finish_evaluation(name, versions)
        self._launch(node, snapshot)
        return True

    def _finish_evaluation(self, name: str, versions: Tuple[int, ...]) -> None:
        self._dirty.discard(name)
        self._forced.discard(name)
        self._seen[name] = versions

    def _at_capacity(self, name: str) -> bool:
        limit = self._config.max_concurrent_hydrations
        if limit is None or name in self._inflight:
            return False
        return len(self._inflight) >= limit

    def _inherit_error(self, node: DataNode, failed: DataNode) -> None:
        if self._inflight.pop(node.name, None) is not None:
            logger.debug(f"Outstanding hydration of {node.name} superseded by an inherited error")
        node.state.fail(failed.state.error.inherit(node.name))
        self._cache.forget(node.name)
        logger.debug(f"Node {node.name} inherits error from {failed.state.error.origin}")
        self._transition(node, "inherited error")

    def _launch(self, node: DataNode, snapshot: Snapshot) -> None:
        name = node.name
        token = node.state.begin_attempt()
        self._inflight.pop(name, None)
        logger.debug(f"Hydrating {name} (version {token})")

        try:
            result = node.hydrator(*snapshot)
        except Exception as e:
            self._record_failure(node, e)
            return

        if not inspect.isawaitable(result):
            self._commit(node, snapshot, result)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            if inspect.iscoroutine(result):
                result.close()
            self._record_failure(node, e)
            return

        self._inflight[name] = token
        node.state.mark_loading()
        self._transition(node, "loading")
        task = loop.create_task(self._await_attempt(name, token, snapshot, result))
        self._tasks.add(task)
        task.add_done_callback(partial(self._attempt_done, name, token, result))

    async def _await_attempt(self, name: str, token: int, snapshot: Snapshot, pending: Any) -> None:
        try:
            result = await pending
        except Exception as e:
            outcome = partial(self._settle_attempt, name, token, snapshot, error=e)
        else:
            outcome = partial(self._settle_attempt, name, token, snapshot, result=result)
        if self.closed:
            logger.debug(f"Discarding result for {name}: graph store closed")
            return
        self.submit(outcome)

    def _settle_attempt(
        self,
        name: str,
        token: int,
        snapshot: Snapshot,
        result: Any = None,
        error: Optional[BaseException] = None
    ) -> None:
        node = self._store.node(name)
        if self._inflight.get(name) != token or node.state.version != token:
            logger.debug(f"Discarding stale result for {name} (version {token}, now {node.state.version})")
            return
        del self._inflight[name]
        if error is not None:
            self._record_failure(node, error)
        else:
            self._commit(node, snapshot, result)

    def _attempt_done(self, name: str, token: int, pending: Any, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            return
        # A task cancelled before its first step never awaited the hydrator
        if inspect.iscoroutine(pending):
            pending.close()
        if not self.closed:
            self.submit(partial(self._abandon_attempt, name, token))

    def _abandon_attempt(self, name: str, token: int) -> None:
        """A cancelled attempt leaves the node's value and error as they were."""
        if self._inflight.get(name) != token:
            return
        del self._inflight[name]
        node = self._store.node(name)
        node.state.settle_idle()
        logger.debug(f"Hydration of {name} was cancelled (version {token})")
        self._transition(node, "cancelled")

    def _commit(self, node: DataNode, snapshot: Snapshot, result: Any) -> None:
        try:
            value = node.transform_result(result)
        except Exception as e:
            self._record_failure(node, e)
            return
        node.state.resolve(value)
        if node.cache:
            self._cache.store(node.name, snapshot)
        logger.debug(f"Resolved {node.name} (version {node.state.version})")
        self._transition(node, "resolved")

    def _record_failure(self, node: DataNode, error: BaseException) -> None:
        try:
            failure = HydrationError.from_exception(node.name, error, node.definition.transform_error)
        except Exception:
            logger.exception(f"Error transform for {node.name} failed; using the default message")
            failure = HydrationError(node.name, error)
        node.state.fail(failure)
        self._cache.forget(node.name)
        logger.warning(f"Hydration of {node.name} failed: {failure.message}")
        self._transition(node, "errored")

    def _transition(self, node: DataNode, event: str) -> None:
        if self._config.log_transitions:
            log_verbose(
                logger,
                f"{node.name} --[{event}]--> {node.state.status.value} (version {node.state.version})"
            )
        self._store.notify(node.name)

    def _wake_idle_waiters(self) -> None:
        waiters, self._idle_waiters = self._idle_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
