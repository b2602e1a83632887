"""Graph Store

This module defines the store that owns a wizard's data graph. The store:
1. Registers node definitions and validates the dependency graph
2. Hands out NodeHandles for reading and mutating nodes
3. Owns the Scheduler and CacheController that keep derived nodes consistent
4. Notifies subscribers whenever a node changes

Example:
    ```python
    async def fetch_node(name):
        return await client.describe_node(name)

    store = GraphStore({
        "node_name": None,
        "node_info": {"deps": ["node_name"], "hydrator": fetch_node},
    })
    store.start()

    store.get("node_name").assign("ip-10-0-0-1")
    await store.settled()
    info = store.get("node_info").display_value()
    ```
"""

from collections import deque
from collections.abc import Mapping
from graphlib import CycleError as _GraphlibCycleError, TopologicalSorter
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from hydragraph.core.config import GraphConfig
from hydragraph.core.errors import (
    CycleError,
    DuplicateNodeError,
    GraphDefinitionError,
    PathNotFoundError,
    UnknownDependencyError,
    UnknownNodeError,
)
from hydragraph.core.graph.cache import CacheController
from hydragraph.core.graph.nodes.base.node import DataNode, NodeDefinition
from hydragraph.core.graph.nodes.handle import Listener, NodeHandle
from hydragraph.core.graph.paths import PathLike, set_in
from hydragraph.core.graph.scheduler import Scheduler
from hydragraph.core.logging import get_logger, log_state, LogComponent

logger = get_logger(LogComponent.GRAPH)

Definitions = Union[
    Mapping,
    Iterable[NodeDefinition],
]


class GraphStore(BaseModel):
    """The data graph of one wizard instance.

    Attributes:
        nodes: Dictionary mapping node names to DataNode instances
        config: Store configuration
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    nodes: Dict[str, DataNode] = Field(default_factory=dict)
    config: GraphConfig = Field(default_factory=GraphConfig)

    _order: List[str] = PrivateAttr(default_factory=list)
    _dependents: Dict[str, List[str]] = PrivateAttr(default_factory=dict)
    _downstream: Dict[str, Set[str]] = PrivateAttr(default_factory=dict)
    _handles: Dict[str, NodeHandle] = PrivateAttr(default_factory=dict)
    _listeners: Dict[Optional[str], List[Listener]] = PrivateAttr(default_factory=dict)
    _cache: CacheController = PrivateAttr(default_factory=CacheController)
    _scheduler: Scheduler = PrivateAttr()
    _registered: bool = PrivateAttr(default=False)

    def __init__(self, definitions: Optional[Definitions] = None, **data: Any):
        super().__init__(**data)
        self._scheduler = Scheduler(self, self._cache, self.config)
        if definitions is not None:
            self.register(definitions)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, definitions: Definitions) -> "GraphStore":
        """Build the graph from node definitions.

        Args:
            definitions: Mapping of node name -> definition (dict, NodeDefinition
                or None for a bare leaf), or an iterable of NodeDefinitions

        Returns:
            Self for chaining.

        Raises:
            CycleError: If the dependency relation has a cycle
            UnknownDependencyError: If a dependency names an undeclared node
            DuplicateNodeError: If a name is declared twice
            GraphDefinitionError: If a definition is malformed or the store is already registered
        """
        if self._registered:
            raise GraphDefinitionError("Graph has already been registered")

        parsed = self._parse_definitions(definitions)
        for definition in parsed.values():
            for dep in definition.deps:
                if dep not in parsed:
                    raise UnknownDependencyError(definition.name, dep)

        order = self._topological_order(parsed)

        self.nodes = {
            name: DataNode.from_definition(parsed[name], self.config.default_cache)
            for name in parsed
        }
        self._dependents = {name: [] for name in parsed}
        for definition in parsed.values():
            for dep in dict.fromkeys(definition.deps):
                self._dependents[dep].append(definition.name)
        self._order = order
        self._registered = True

        leaves = sum(1 for node in self.nodes.values() if node.is_leaf)
        logger.info(
            f"Registered data graph: {len(self.nodes)} nodes "
            f"({leaves} leaves, {len(self.nodes) - leaves} derived)"
        )
        return self

    @staticmethod
    def _parse_definitions(definitions: Definitions) -> Dict[str, NodeDefinition]:
        parsed: Dict[str, NodeDefinition] = {}
        try:
            if isinstance(definitions, Mapping):
                for name, entry in definitions.items():
                    parsed[name] = NodeDefinition.build(name, entry)
                return parsed

            for entry in definitions:
                definition = entry if isinstance(entry, NodeDefinition) else NodeDefinition.model_validate(entry)
                if definition.name in parsed:
                    raise DuplicateNodeError(definition.name)
                parsed[definition.name] = definition
        except ValueError as e:
            raise GraphDefinitionError(f"Invalid node definition: {e}") from e
        return parsed

    @staticmethod
    def _topological_order(parsed: Dict[str, NodeDefinition]) -> List[str]:
        sorter = TopologicalSorter({name: definition.deps for name, definition in parsed.items()})
        try:
            return list(sorter.static_order())
        except _GraphlibCycleError as e:
            cycle = list(e.args[1]) if len(e.args) > 1 else []
            # graphlib lists each node before the node that depends on it
            raise CycleError(cycle) from e

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def node(self, name: str) -> DataNode:
        """Get the runtime node for ``name``.

        Raises:
            UnknownNodeError: If no such node was registered
        """
        try:
            return self.nodes[name]
        except KeyError:
            raise UnknownNodeError(name) from None

    def get(self, name: str) -> NodeHandle:
        """Get the handle for ``name``.

        Raises:
            UnknownNodeError: If no such node was registered
        """
        self.node(name)
        handle = self._handles.get(name)
        if handle is None:
            handle = self._handles[name] = NodeHandle(self, name)
        return handle

    def __getitem__(self, name: str) -> NodeHandle:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    @property
    def order(self) -> List[str]:
        """Node names in dependency order."""
        return list(self._order)

    @property
    def cache(self) -> CacheController:
        return self._cache

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def dependents_of(self, name: str) -> Set[str]:
        """All nodes that depend on ``name``, directly or transitively."""
        self.node(name)
        downstream = self._downstream.get(name)
        if downstream is None:
            downstream = set()
            to_process = deque(self._dependents[name])
            while to_process:
                current = to_process.popleft()
                if current not in downstream:
                    downstream.add(current)
                    to_process.extend(self._dependents[current])
            self._downstream[name] = downstream
        return set(downstream)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the initial resolution pass. Safe to call more than once."""
        self._scheduler.start()

    async def resolve(self, timeout: Optional[float] = None) -> "GraphStore":
        """Start the initial resolution pass and wait until the graph settles."""
        self.start()
        await self.settled(timeout)
        return self

    async def settled(self, timeout: Optional[float] = None) -> None:
        """Wait until no node is dirty or waiting on a current hydration.

        Raises:
            asyncio.TimeoutError: If the graph does not settle within ``timeout``
                (defaults to ``config.settle_timeout``)
        """
        await self._scheduler.settled(self.config.settle_timeout if timeout is None else timeout)

    def close(self) -> None:
        """Discard the graph. Late hydration results are ignored from now on."""
        self._scheduler.close()
        self._listeners.clear()
        logger.info("Closed data graph")

    @property
    def closed(self) -> bool:
        return self._scheduler.closed

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def assign(self, name: str, value: Any) -> None:
        """Overwrite ``name``'s value and propagate to its dependents."""
        self.node(name)
        self._scheduler.assign(name, value)

    def update_data(self, name: str, path: PathLike, value: Any) -> None:
        """Copy-on-write update of ``name``'s value at ``path``, then assign it.

        Raises:
            PathNotFoundError: If the node has no value or ``path`` does not resolve in it
        """
        node = self.node(name)
        if not node.has_value:
            raise PathNotFoundError(name, path, reason="node has no value yet")
        set_in(node.state.value, path, value, node=name)
        self._scheduler.update(name, path, value)

    def hydrate(self, name: str) -> None:
        """Force ``name`` to re-run its hydrator and re-evaluate its dependents."""
        self.node(name)
        self._scheduler.refresh(name)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, callback: Listener, name: Optional[str] = None) -> Callable[[], None]:
        """Call ``callback(handle)`` when ``name`` (or, if None, any node) changes.

        Returns:
            A function that removes the subscription.
        """
        if name is not None:
            self.node(name)
        listeners = self._listeners.setdefault(name, [])
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners.get(name, []):
                self._listeners[name].remove(callback)

        return unsubscribe

    def notify(self, name: str) -> None:
        """Deliver a change notification for ``name`` to its subscribers."""
        callbacks = list(self._listeners.get(name, [])) + list(self._listeners.get(None, []))
        if not callbacks:
            return
        handle = self.get(name)
        for callback in callbacks:
            try:
                callback(handle)
            except Exception:
                logger.exception(f"Subscriber for node {name} raised")

    # ------------------------------------------------------------------
    # Debugging
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Plain snapshot of every node's state, in dependency order."""
        return {name: self.nodes[name].state.to_dict() for name in self._order}

    def log_state(self) -> None:
        """Log every node's state at DEBUG level."""
        log_state(logger, self.to_dict())

    def __repr__(self) -> str:
        return f"GraphStore({self._order})"
