"""Node package initialization.

Exposes node definitions and the handle used by wizard steps.
"""

from hydragraph.core.graph.nodes.base.node import DataNode, NodeDefinition
from hydragraph.core.graph.nodes.handle import NodeHandle

__all__ = [
    "DataNode",
    "NodeDefinition",
    "NodeHandle",
]
