"""State management for data nodes.

This module provides:
1. NodeStatus: An enumeration of node resolution statuses
2. NO_VALUE: The sentinel held by a node that has never resolved
3. NodeState: The mutable state container attached to every data node
"""

from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from hydragraph.core.errors import HydrationError


class NoValue:
    """Marker for a node that has never held a resolved value."""

    _instance: Optional["NoValue"] = None

    def __new__(cls) -> "NoValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __copy__(self) -> "NoValue":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "NoValue":
        return self

    def __reduce__(self):
        return (NoValue, ())


NO_VALUE = NoValue()


class NodeStatus(str, Enum):
    """Node resolution status."""
    UNRESOLVED = "unresolved"
    LOADING = "loading"
    RESOLVED = "resolved"
    ERRORED = "errored"


class NodeState(BaseModel):
    """
    Mutable state of a single data node.

    Attributes:
        value: Last successfully resolved value, or NO_VALUE
        error: Most recent failure for this node (own or inherited)
        is_loading: Whether an attempt for the current version is outstanding
        version: Counter bumped on each launched attempt, resolution and assignment
        status: Position in the unresolved/loading/resolved/errored state machine
        updated_at: Time of the last state modification
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Any = NO_VALUE
    error: Optional[HydrationError] = None
    is_loading: bool = False
    version: int = 0
    status: NodeStatus = NodeStatus.UNRESOLVED
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_value(self) -> bool:
        return self.value is not NO_VALUE

    def begin_attempt(self) -> int:
        """Advance the version for a new hydration attempt and return its tag."""
        self.version += 1
        return self.version

    def mark_loading(self) -> None:
        """Mark an attempt for the current version as outstanding."""
        self.is_loading = True
        self.status = NodeStatus.LOADING
        self._update_timestamp()

    def resolve(self, value: Any) -> None:
        """Commit a new value, clearing any error."""
        self.value = value
        self.error = None
        self.is_loading = False
        self.version += 1
        self.status = NodeStatus.RESOLVED
        self._update_timestamp()

    def fail(self, error: HydrationError) -> None:
        """Record a failure. The last good value is kept."""
        self.error = error
        self.is_loading = False
        self.status = NodeStatus.ERRORED
        self._update_timestamp()

    def settle_idle(self) -> None:
        """Drop the loading flag without touching value or error."""
        self.is_loading = False
        if self.error is not None:
            self.status = NodeStatus.ERRORED
        elif self.has_value:
            self.status = NodeStatus.RESOLVED
        else:
            self.status = NodeStatus.UNRESOLVED
        self._update_timestamp()

    def to_dict(self) -> Dict[str, Any]:
        """Plain snapshot of the state for logging and debugging."""
        return {
            "status": self.status.value,
            "version": self.version,
            "is_loading": self.is_loading,
            "has_value": self.has_value,
            "error": self.error.message if self.error is not None else None,
            "error_origin": self.error.origin if self.error is not None else None,
            "updated_at": self.updated_at.isoformat(),
        }

    def _update_timestamp(self) -> None:
        """Update the last modified timestamp."""
        object.__setattr__(self, "updated_at", datetime.now())
