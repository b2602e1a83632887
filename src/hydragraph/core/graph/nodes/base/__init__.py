"""Base node definitions."""

from hydragraph.core.graph.nodes.base.node import DataNode, NodeDefinition

__all__ = [
    "DataNode",
    "NodeDefinition",
]
