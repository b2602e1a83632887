"""Tests for hydration failures and their propagation."""

import logging
from types import SimpleNamespace
from typing import List

import pytest

from hydragraph import (
    CycleError,
    GraphDefinitionError,
    GraphStore,
    HydraGraphError,
    HydrationError,
    NodeStatus,
    NO_VALUE,
    PathNotFoundError,
    UnknownDependencyError,
    UnknownNodeError,
)


class ApiError(Exception):
    """Client error carrying the server's display text on its response."""

    def __init__(self, display_text: str):
        super().__init__("HTTP 500")
        self.response = SimpleNamespace(display_text=display_text)


def fail_on(bad_value):
    def hydrator(value):
        if value == bad_value:
            raise ValueError(f"bad value: {value}")
        return value
    return hydrator


class TestHydrationFailures:
    """Test failures recorded on the failing node."""

    def test_sync_failure_is_recorded(self):
        """Test a failing sync hydrator."""
        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fail_on(1)}})
        store.start()
        store["input"].assign(1)

        output = store["output"]
        assert output.status == NodeStatus.ERRORED
        assert output.value is NO_VALUE
        assert output.is_loading is False
        assert output.error.message == "bad value: 1"
        assert output.error.origin == "output"
        assert output.error.inherited is False
        assert isinstance(output.error.cause, ValueError)

    @pytest.mark.asyncio
    async def test_async_failure_is_recorded(self):
        """Test a failing async hydrator."""
        async def fetch(value):
            raise TimeoutError("timed out")

        store = GraphStore({"input": {"initial": 1}, "output": {"deps": ["input"], "hydrator": fetch}})
        await store.resolve(timeout=1)

        assert store["output"].status == NodeStatus.ERRORED
        assert store["output"].error.message == "timed out"

    def test_failure_keeps_last_good_value(self):
        """Test that a failure keeps the last good value."""
        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fail_on(2)}})
        store.start()
        store["input"].assign(1)
        store["input"].assign(2)

        output = store["output"]
        assert output.error is not None
        assert output.display_value() == 1

    def test_recovery_clears_error(self):
        """Test that a later success clears the error."""
        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fail_on(1)}})
        store.start()
        store["input"].assign(1)
        store["input"].assign(2)

        assert store["output"].error is None
        assert store["output"].status == NodeStatus.RESOLVED
        assert store["output"].value == 2

    def test_failure_is_logged(self, caplog):
        """Test the warning logged for a failure."""
        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fail_on(1)}})
        store.start()
        with caplog.at_level(logging.WARNING, logger="hydragraph"):
            store["input"].assign(1)
        assert "Hydration of output failed: bad value: 1" in caplog.text


class TestErrorMessages:
    """Test how failures are rendered for display."""

    def test_display_text_preferred(self):
        """Test that a response display_text becomes the message."""
        def fetch(value):
            raise ApiError("Node not found")

        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fetch}})
        store.start()
        store["input"].assign(1)
        assert store["output"].error.message == "Node not found"

    def test_empty_message_uses_type_name(self):
        """Test the message of an exception without text."""
        def fetch(value):
            raise KeyError()

        store = GraphStore({"input": None, "output": {"deps": ["input"], "hydrator": fetch}})
        store.start()
        store["input"].assign(1)
        assert store["output"].error.message == "KeyError"

    def test_transform_error(self):
        """Test a custom error transform."""
        store = GraphStore({
            "input": None,
            "output": {
                "deps": ["input"],
                "hydrator": fail_on(1),
                "transform_error": lambda e: f"Could not load: {e}",
            },
        })
        store.start()
        store["input"].assign(1)
        assert store["output"].error.message == "Could not load: bad value: 1"

    def test_failing_transform_error_falls_back(self, caplog):
        """Test a raising error transform."""
        def broken(error):
            raise RuntimeError("transform failed")

        store = GraphStore({
            "input": None,
            "output": {"deps": ["input"], "hydrator": fail_on(1), "transform_error": broken},
        })
        store.start()
        with caplog.at_level(logging.ERROR, logger="hydragraph"):
            store["input"].assign(1)

        assert store["output"].error.message == "bad value: 1"
        assert "Error transform for output failed" in caplog.text

    def test_transform_response(self):
        """Test a response transform."""
        store = GraphStore({
            "input": None,
            "output": {
                "deps": ["input"],
                "hydrator": lambda v: {"items": v},
                "transform_response": lambda r: len(r["items"]),
            },
        })
        store.start()
        store["input"].assign([1, 2, 3])
        assert store["output"].value == 3

    def test_failing_transform_response_is_a_hydration_error(self):
        """Test a raising response transform."""
        store = GraphStore({
            "input": None,
            "output": {"deps": ["input"], "hydrator": lambda v: v, "transform_response": len},
        })
        store.start()
        store["input"].assign(42)

        assert store["output"].status == NodeStatus.ERRORED
        assert isinstance(store["output"].error.cause, TypeError)


class TestErrorPropagation:
    """Test that failures flow to dependents without calling their hydrators."""

    def test_dependents_inherit_error(self, recorder):
        """Test that dependents inherit an ancestor's error."""
        store = GraphStore({
            "input": None,
            "fetch": {"deps": ["input"], "hydrator": fail_on("bad")},
            "parse": {"deps": ["fetch"], "hydrator": recorder.sync("parse", str)},
            "render": {"deps": ["parse"], "hydrator": recorder.sync("render", str)},
        })
        store.start()
        store["input"].assign("bad")

        assert recorder.calls == []
        for name in ("parse", "render"):
            error = store[name].error
            assert store[name].status == NodeStatus.ERRORED
            assert error.origin == "fetch"
            assert error.node == name
            assert error.inherited is True
            assert error.message == "bad value: bad"

    def test_diamond_inherits_from_one_branch(self, recorder):
        """Test error inheritance through one branch of a diamond."""
        store = GraphStore({
            "source": None,
            "left": {"deps": ["source"], "hydrator": fail_on(1)},
            "right": {"deps": ["source"], "hydrator": lambda s: s * 2},
            "joined": {"deps": ["left", "right"], "hydrator": recorder.sync("joined", lambda l, r: l + r)},
        })
        store.start()
        store["source"].assign(1)

        assert store["right"].value == 2
        assert store["joined"].error.origin == "left"
        assert recorder.count("joined") == 0

    def test_recovery_propagates(self, recorder):
        """Test that recovery flows to dependents."""
        store = GraphStore({
            "input": None,
            "fetch": {"deps": ["input"], "hydrator": fail_on("bad")},
            "parse": {"deps": ["fetch"], "hydrator": recorder.sync("parse", str.upper)},
        })
        store.start()
        store["input"].assign("bad")
        store["input"].assign("good")

        assert store["parse"].error is None
        assert store["parse"].value == "GOOD"

    def test_unrelated_branch_unaffected(self):
        """Test that a failure leaves other branches alone."""
        store = GraphStore({
            "a": None,
            "b": None,
            "from_a": {"deps": ["a"], "hydrator": fail_on(1)},
            "from_b": {"deps": ["b"], "hydrator": lambda b: b + 1},
        })
        store.start()
        store["b"].assign(1)
        store["a"].assign(1)

        assert store["from_a"].error is not None
        assert store["from_b"].error is None
        assert store["from_b"].value == 2


class TestErrorTypes:
    """Test the error hierarchy."""

    def test_hierarchy(self):
        """Test the exception hierarchy."""
        assert issubclass(GraphDefinitionError, HydraGraphError)
        assert issubclass(CycleError, GraphDefinitionError)
        assert issubclass(UnknownDependencyError, GraphDefinitionError)
        assert issubclass(UnknownNodeError, LookupError)
        assert issubclass(PathNotFoundError, LookupError)
        assert issubclass(HydrationError, HydraGraphError)

    def test_unknown_node_message(self):
        """Test the unknown node message."""
        assert str(UnknownNodeError("cluster")) == "Non-existent data node: cluster"

    def test_cycle_message(self):
        """Test the cycle message."""
        assert "a -> b -> a" in str(CycleError(["a", "b", "a"]))

    def test_hydration_error_chains_cause(self):
        """Test that the cause is chained."""
        cause = ValueError("boom")
        error = HydrationError("node", cause)
        assert error.__cause__ is cause
        assert str(error) == "boom"

    def test_inherit(self):
        """Test copying an error onto a dependent."""
        error = HydrationError("fetch", ValueError("boom"), message="Fetch failed")
        inherited = error.inherit("render")

        assert inherited.node == "render"
        assert inherited.origin == "fetch"
        assert inherited.message == "Fetch failed"
        assert inherited.cause is error.cause
        assert error.inherited is False

    def test_from_exception_with_transform(self):
        """Test from_exception with a transform."""
        error = HydrationError.from_exception("node", ValueError("boom"), lambda e: 42)
        assert error.message == "42"

    def test_repr(self):
        """Test HydrationError representation."""
        error = HydrationError("node", ValueError("boom"))
        assert repr(error) == "HydrationError(node='node', origin='node', message='boom')"
