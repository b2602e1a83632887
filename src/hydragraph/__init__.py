"""Hydragraph - dependency/hydration graph for wizard-style workflows."""

from hydragraph.core.config import GraphConfig
from hydragraph.core.errors import (
    CycleError,
    DuplicateNodeError,
    GraphClosedError,
    GraphDefinitionError,
    HydraGraphError,
    HydrationError,
    PathNotFoundError,
    UnknownDependencyError,
    UnknownNodeError,
)
from hydragraph.core.graph import (
    GraphStore,
    NodeDefinition,
    NodeHandle,
    NodeStatus,
    NO_VALUE,
)
from hydragraph.core.logging import configure_logging, LogLevel, LogComponent

__all__ = [
    'GraphStore',
    'NodeDefinition',
    'NodeHandle',
    'NodeStatus',
    'NO_VALUE',
    'GraphConfig',
    'HydraGraphError',
    'GraphDefinitionError',
    'CycleError',
    'UnknownDependencyError',
    'DuplicateNodeError',
    'UnknownNodeError',
    'PathNotFoundError',
    'GraphClosedError',
    'HydrationError',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
