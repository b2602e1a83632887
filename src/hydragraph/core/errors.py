"""Error taxonomy for the hydration graph.

Registration and lookup errors are raised immediately and abort wizard setup.
HydrationError is never raised by the engine; it is attached to a node's
``error`` field and inherited by the node's dependents.
"""

from typing import Any, Callable, List, Optional, Sequence, Union


class HydraGraphError(Exception):
    """Base exception for hydragraph errors."""
    pass


class GraphDefinitionError(HydraGraphError):
    """Raised when a set of node definitions cannot form a valid graph."""
    pass


class CycleError(GraphDefinitionError):
    """Raised when the dependency relation contains a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Cyclic dependency detected: {' -> '.join(cycle)}")


class UnknownDependencyError(GraphDefinitionError):
    """Raised when a node lists a dependency that was never declared."""

    def __init__(self, node: str, dependency: str):
        self.node = node
        self.dependency = dependency
        super().__init__(f"Node '{node}' depends on unknown node '{dependency}'")


class DuplicateNodeError(GraphDefinitionError):
    """Raised when two definitions share a name."""

    def __init__(self, name: str, detail: Optional[str] = None):
        self.name = name
        super().__init__(detail or f"Node '{name}' is declared more than once")


class UnknownNodeError(HydraGraphError, LookupError):
    """Raised when looking up a node that is not part of the graph."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Non-existent data node: {name}")


class PathNotFoundError(HydraGraphError, LookupError):
    """Raised by update_data when a path does not resolve in the current value."""

    def __init__(
        self,
        node: str,
        path: Union[str, Sequence[Any]],
        segment: Any = None,
        reason: Optional[str] = None
    ):
        self.node = node
        self.path = path
        self.segment = segment
        detail = reason or f"segment {segment!r} not found"
        super().__init__(f"Path {path!r} does not resolve in node '{node}': {detail}")


class GraphClosedError(HydraGraphError):
    """Raised when mutating a store that has been closed."""
    pass


def default_error_message(error: BaseException) -> str:
    """Render a hydrator failure for display.

    Prefers a ``response.display_text`` attribute (API client errors carry the
    server's display text there), then the exception text, then its type name.
    """
    response = getattr(error, "response", None)
    display_text = getattr(response, "display_text", None)
    if display_text:
        return str(display_text)
    return str(error) or type(error).__name__


class HydrationError(HydraGraphError):
    """A hydrator failure recorded on a node.

    Attributes:
        node: Node the error is attached to
        cause: The exception the hydrator raised, kept verbatim
        origin: Node whose hydrator actually failed
        message: Display text for the failure
    """

    def __init__(
        self,
        node: str,
        cause: BaseException,
        origin: Optional[str] = None,
        message: Optional[str] = None
    ):
        self.node = node
        self.cause = cause
        self.origin = origin or node
        self.message = message if message is not None else default_error_message(cause)
        super().__init__(self.message)
        self.__cause__ = cause

    @classmethod
    def from_exception(
        cls,
        node: str,
        error: BaseException,
        transform: Optional[Callable[[BaseException], Any]] = None
    ) -> "HydrationError":
        """Wrap a hydrator exception, rendering its message with ``transform``."""
        message = transform(error) if transform is not None else None
        return cls(node, error, message=None if message is None else str(message))

    @property
    def inherited(self) -> bool:
        """True when the failure happened in an ancestor of ``node``."""
        return self.origin != self.node

    def inherit(self, node: str) -> "HydrationError":
        """Copy of this error attached to a dependent node."""
        return HydrationError(node, self.cause, origin=self.origin, message=self.message)

    def __repr__(self) -> str:
        return f"HydrationError(node={self.node!r}, origin={self.origin!r}, message={self.message!r})"
