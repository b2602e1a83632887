"""
Node handle

The handle is what wizard steps hold on to. It reads a node's current value,
error and loading state, mutates the node, and lets the UI layer subscribe to
change notifications.
"""

from typing import TYPE_CHECKING, Any, Callable, List, Optional

from pydantic import BaseModel

from hydragraph.core.errors import HydrationError
from hydragraph.core.graph.paths import PathLike
from hydragraph.core.graph.state import NO_VALUE, NodeStatus

if TYPE_CHECKING:
    from hydragraph.core.graph.base import GraphStore

Listener = Callable[["NodeHandle"], None]


class NodeHandle:
    """
    Façade over a single node of a GraphStore.

    Handles are cheap views: all state lives in the store, so a handle always
    reflects the node's latest state.
    """

    def __init__(self, store: "GraphStore", name: str) -> None:
        self._store = store
        self._name = name

    @property
    def _node(self):
        return self._store.node(self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def deps(self) -> List[str]:
        return list(self._node.deps)

    @property
    def value(self) -> Any:
        """The raw last good value, or NO_VALUE."""
        return self._node.state.value

    @property
    def has_value(self) -> bool:
        return self._node.state.has_value

    @property
    def error(self) -> Optional[HydrationError]:
        """Most recent failure recorded for this node, own or inherited."""
        return self._node.state.error

    @property
    def is_loading(self) -> bool:
        return self._node.state.is_loading

    @property
    def version(self) -> int:
        return self._node.state.version

    @property
    def status(self) -> NodeStatus:
        return self._node.state.status

    def display_value(self) -> Any:
        """Last successfully resolved value, kept while a refresh is in flight.

        Pydantic models are rendered as plain data; a node that has never
        resolved returns NO_VALUE.
        """
        value = self._node.state.value
        if isinstance(value, BaseModel):
            return value.model_dump()
        return value

    def assign(self, value: Any) -> None:
        """Overwrite the node's value and propagate to its dependents."""
        self._store.assign(self._name, value)

    def update_data(self, path: PathLike, value: Any) -> None:
        """Set ``value`` at ``path`` inside the current value, then assign the copy.

        Raises:
            PathNotFoundError: If ``path`` does not exist in the current value
        """
        self._store.update_data(self._name, path, value)

    def hydrate(self) -> None:
        """Re-run the node's hydrator even if its inputs are unchanged."""
        self._store.hydrate(self._name)

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Call ``callback(handle)`` whenever this node changes. Returns an unsubscribe function."""
        return self._store.subscribe(callback, name=self._name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeHandle):
            return NotImplemented
        return self._store is other._store and self._name == other._name

    def __hash__(self) -> int:
        return hash((id(self._store), self._name))

    def __repr__(self) -> str:
        state = self._node.state
        shown = "<no value>" if state.value is NO_VALUE else repr(state.value)
        return f"NodeHandle({self._name!r}, status={state.status.value}, value={shown})"
