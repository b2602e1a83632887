"""Graph package initialization.

Exposes the graph store and the pieces needed to declare wizard data graphs.
"""

from hydragraph.core.graph.base import GraphStore
from hydragraph.core.graph.cache import CacheController
from hydragraph.core.graph.scheduler import Scheduler
from hydragraph.core.graph.state import NO_VALUE, NodeState, NodeStatus
from hydragraph.core.graph.nodes.base.node import DataNode, NodeDefinition
from hydragraph.core.graph.nodes.handle import NodeHandle

__all__ = [
    # Core classes
    "GraphStore",
    "Scheduler",
    "CacheController",
    "NodeHandle",
    "NodeDefinition",
    "DataNode",
    "NodeState",
    "NodeStatus",

    # Sentinels
    "NO_VALUE",
]
