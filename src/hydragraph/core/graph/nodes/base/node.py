"""Data node definitions for the hydration graph.

A NodeDefinition is the declared shape of a node: its name, the ordered names
of the nodes it consumes and the hydrator that derives its value from them. A
DataNode pairs a validated definition with the node's mutable NodeState.

Typical Usage:
    - Declare a mapping of node name -> definition dict for a wizard
    - Leave out ``hydrator`` for leaf nodes that are only set by assignment
    - List ``deps`` in the order their values should be passed to the hydrator
"""

from typing import Any, Callable, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from hydragraph.core.graph.state import NO_VALUE, NodeState
from hydragraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)


class NodeDefinition(BaseModel):
    """
    Declared shape of a data node.

    Attributes:
        name: Unique node identifier within a graph
        deps: Names of the nodes whose resolved values feed the hydrator, in argument order
        hydrator: Function from dependency values to a value or an awaitable of one
        cache: Skip hydration when the dependency snapshot is unchanged (None = store default)
        transform_response: Applied to a hydrator's result before it is committed
        transform_error: Maps a hydrator's exception to the node's error message
        initial: Starting value; a node with one starts resolved
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique identifier for this node")
    deps: List[str] = Field(default_factory=list)
    hydrator: Optional[Callable[..., Any]] = None
    cache: Optional[bool] = None
    transform_response: Optional[Callable[[Any], Any]] = None
    transform_error: Optional[Callable[[BaseException], Any]] = None
    initial: Any = NO_VALUE

    @model_validator(mode='after')
    def validate_definition(self) -> 'NodeDefinition':
        """Validate node configuration."""
        if not self.name:
            raise ValueError("Node must have a name")
        if self.hydrator is None:
            if self.deps:
                raise ValueError(f"Leaf node {self.name} declares deps but no hydrator")
            if self.transform_response is not None or self.transform_error is not None:
                raise ValueError(f"Leaf node {self.name} declares transforms but no hydrator")
        return self

    @classmethod
    def build(
        cls,
        name: str,
        entry: Union["NodeDefinition", Dict[str, Any], None]
    ) -> "NodeDefinition":
        """Build a definition from an entry of a wizard's name -> definition mapping.

        Args:
            name: Key the entry was declared under
            entry: A NodeDefinition, a dict of its fields, or None for a bare leaf

        Raises:
            ValueError: If ``entry`` carries a name different from ``name``
        """
        if entry is None:
            return cls(name=name)
        if isinstance(entry, NodeDefinition):
            if entry.name != name:
                raise ValueError(f"Definition named {entry.name} declared under key {name}")
            return entry
        data = dict(entry)
        declared = data.setdefault("name", name)
        if declared != name:
            raise ValueError(f"Definition named {declared} declared under key {name}")
        return cls.model_validate(data)


class DataNode(BaseModel):
    """
    A node of a registered graph: its definition plus mutable state.

    Attributes:
        definition: The validated node definition
        state: Current value, error, loading flag and version
        cache: Effective cache policy after applying the store default
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    definition: NodeDefinition
    state: NodeState = Field(default_factory=NodeState)
    cache: bool = True

    @classmethod
    def from_definition(cls, definition: NodeDefinition, default_cache: bool = True) -> "DataNode":
        """Create a runtime node, seeding its state from ``definition.initial``."""
        node = cls(
            definition=definition,
            cache=default_cache if definition.cache is None else definition.cache,
        )
        if definition.initial is not NO_VALUE:
            node.state.resolve(definition.initial)
            logger.debug(f"Node {definition.name} seeded with an initial value")
        return node

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def deps(self) -> List[str]:
        return self.definition.deps

    @property
    def hydrator(self) -> Optional[Callable[..., Any]]:
        return self.definition.hydrator

    @property
    def is_leaf(self) -> bool:
        return self.definition.hydrator is None

    @property
    def has_value(self) -> bool:
        return self.state.has_value

    def transform_result(self, result: Any) -> Any:
        """Apply the definition's response transform, if any."""
        if self.definition.transform_response is None:
            return result
        return self.definition.transform_response(result)

    def __repr__(self) -> str:
        return f"DataNode(name={self.name!r}, status={self.state.status.value}, version={self.state.version})"
