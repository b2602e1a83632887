"""Core modules for hydragraph."""

from hydragraph.core.config import GraphConfig
from hydragraph.core.logging import configure_logging, LogLevel, LogComponent

__all__ = [
    'GraphConfig',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
