"""Tests for node handles."""

from typing import List

import pytest
from pydantic import BaseModel

from hydragraph import GraphStore, NodeStatus, NO_VALUE


class NodeInfo(BaseModel):
    name: str
    ready: bool


@pytest.fixture
def store() -> GraphStore:
    return GraphStore({
        "node_name": None,
        "node_info": {"deps": ["node_name"], "hydrator": lambda name: NodeInfo(name=name, ready=True)},
    })


class TestNodeHandle:
    """Test suite for the node handle."""

    def test_initial_state(self, store: GraphStore):
        """Test a handle before anything resolves."""
        handle = store["node_info"]
        assert handle.name == "node_info"
        assert handle.deps == ["node_name"]
        assert handle.value is NO_VALUE
        assert handle.has_value is False
        assert handle.error is None
        assert handle.is_loading is False
        assert handle.status == NodeStatus.UNRESOLVED
        assert handle.display_value() is NO_VALUE

    def test_handle_reflects_latest_state(self, store: GraphStore):
        """Test that a handle reads live state."""
        handle = store["node_info"]
        store.start()
        store["node_name"].assign("ip-10-0-0-1")
        assert handle.has_value is True
        assert handle.value == NodeInfo(name="ip-10-0-0-1", ready=True)

    def test_display_value_dumps_models(self, store: GraphStore):
        """Test display_value on a model value."""
        store.start()
        store["node_name"].assign("ip-10-0-0-1")
        assert store["node_info"].display_value() == {"name": "ip-10-0-0-1", "ready": True}

    def test_update_data_on_model_value(self, store: GraphStore):
        """Test update_data on a model value."""
        store.start()
        store["node_name"].assign("ip-10-0-0-1")
        store["node_info"].update_data("ready", False)

        assert store["node_info"].value.ready is False
        assert store["node_info"].status == NodeStatus.RESOLVED

    def test_hydrate(self, store: GraphStore):
        """Test a manual refresh through the handle."""
        store.start()
        store["node_name"].assign("ip-10-0-0-1")
        first = store["node_info"].value

        store["node_info"].hydrate()
        assert store["node_info"].value == first
        assert store["node_info"].value is not first

    def test_subscribe(self, store: GraphStore):
        """Test subscribing through the handle."""
        seen: List[NodeStatus] = []
        unsubscribe = store["node_info"].subscribe(lambda handle: seen.append(handle.status))
        store.start()
        store["node_name"].assign("ip-10-0-0-1")
        unsubscribe()
        store["node_name"].assign("ip-10-0-0-2")
        assert seen == [NodeStatus.RESOLVED]

    def test_equality(self, store: GraphStore):
        """Test handle equality and hashing."""
        other = GraphStore({"node_name": None})
        assert store["node_name"] == store.get("node_name")
        assert store["node_name"] != other["node_name"]
        assert len({store["node_name"], store["node_info"]}) == 2

    def test_repr(self, store: GraphStore):
        """Test handle representation."""
        assert repr(store["node_name"]) == "NodeHandle('node_name', status=unresolved, value=<no value>)"
        store["node_name"].assign("web")
        assert repr(store["node_name"]) == "NodeHandle('node_name', status=resolved, value='web')"
