"""Shared fixtures for graph tests."""

import asyncio
from typing import Any, Callable, Dict, List, Tuple

import pytest

from hydragraph import GraphStore


class CallRecorder:
    """Wraps hydrators and records every invocation in order."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.events: List[str] = []

    def sync(self, name: str, func: Callable[..., Any]) -> Callable[..., Any]:
        def hydrator(*args: Any) -> Any:
            self.calls.append((name, args))
            return func(*args)
        return hydrator

    def slow(self, name: str, func: Callable[..., Any], delay: float = 0.01) -> Callable[..., Any]:
        async def hydrator(*args: Any) -> Any:
            self.calls.append((name, args))
            self.events.append(f"start:{name}")
            await asyncio.sleep(delay)
            self.events.append(f"end:{name}")
            return func(*args)
        return hydrator

    def count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)

    def names(self) -> List[str]:
        return [called for called, _ in self.calls]

    def reset(self) -> None:
        self.calls.clear()
        self.events.clear()


@pytest.fixture
def recorder() -> CallRecorder:
    """Fixture providing a fresh call recorder."""
    return CallRecorder()


@pytest.fixture
def uppercase_store() -> GraphStore:
    """The input -> output example graph."""
    return GraphStore({
        "input": None,
        "output": {"deps": ["input"], "hydrator": lambda v: v["name"].upper()},
    })


@pytest.fixture
def diamond_definitions(recorder: CallRecorder) -> Dict[str, Any]:
    """source -> (left, right) -> joined, with slow async hydrators."""
    return {
        "source": None,
        "left": {"deps": ["source"], "hydrator": recorder.slow("left", lambda s: s + 1, 0.02)},
        "right": {"deps": ["source"], "hydrator": recorder.slow("right", lambda s: s * 2, 0.01)},
        "joined": {
            "deps": ["left", "right"],
            "hydrator": recorder.slow("joined", lambda l, r: (l, r)),
            "cache": False,
        },
    }
