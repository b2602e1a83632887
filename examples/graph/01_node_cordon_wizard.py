"""
Node Cordon Wizard Example

This example demonstrates:
1. Declaring a wizard's data graph with leaf and derived nodes
2. Async hydrators backed by a (fake) cluster API client
3. Reading values, loading flags and errors through node handles

The wizard:
- Takes a cluster and a node name from the user
- Looks up the node, then the pods scheduled on it
- Summarises what cordoning the node would affect
"""

import asyncio
from typing import Dict, List
from pydantic import BaseModel, Field

from hydragraph import GraphStore, NodeHandle
from hydragraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)

logger = get_logger(LogComponent.GRAPH)

###################################################################
# Models
###################################################################

class NodeInfo(BaseModel):
    """A cluster node as returned by the API."""
    name: str
    cluster: str
    unschedulable: bool = False
    labels: Dict[str, str] = Field(default_factory=dict)

class CordonPlan(BaseModel):
    """What cordoning a node would affect."""
    node: str
    pods: List[str]
    already_cordoned: bool

###################################################################
# Fake API client
###################################################################

class NotFound(Exception):
    """API error carrying the server's display text."""

    class Response:
        def __init__(self, display_text: str):
            self.display_text = display_text

    def __init__(self, display_text: str):
        super().__init__("404")
        self.response = self.Response(display_text)

class ClusterClient:
    """Stands in for a remote k8s API."""

    nodes = {
        ("staging", "ip-10-0-0-1"): ["web-0", "web-1", "worker-0"],
        ("staging", "ip-10-0-0-2"): ["db-0"],
    }

    async def describe_node(self, cluster: str, name: str) -> NodeInfo:
        await asyncio.sleep(0.05)
        if (cluster, name) not in self.nodes:
            raise NotFound(f"Node {name} not found in {cluster}")
        return NodeInfo(name=name, cluster=cluster, labels={"zone": "us-east-1a"})

    async def list_pods(self, cluster: str, node: str) -> List[str]:
        await asyncio.sleep(0.05)
        return list(self.nodes[(cluster, node)])

###################################################################
# Wizard graph
###################################################################

def build_wizard(client: ClusterClient) -> GraphStore:
    """Build the cordon wizard's data graph."""
    return GraphStore({
        "cluster": {"initial": "staging"},
        "node_name": None,
        "node_info": {
            "deps": ["cluster", "node_name"],
            "hydrator": client.describe_node,
        },
        "pods": {
            "deps": ["node_info"],
            "hydrator": lambda info: client.list_pods(info.cluster, info.name),
            "transform_response": sorted,
        },
        "plan": {
            "deps": ["node_info", "pods"],
            "hydrator": lambda info, pods: CordonPlan(
                node=info.name,
                pods=pods,
                already_cordoned=info.unschedulable,
            ),
        },
    })

def show(handle: NodeHandle) -> None:
    """Print a node the way a wizard step would render it."""
    if handle.is_loading:
        print(f"{Colors.DIM}{handle.name}: loading...{Colors.RESET}")
    elif handle.error is not None:
        print(f"{Colors.ERROR}{handle.name}: {handle.error.message}{Colors.RESET}")
    elif handle.has_value:
        print(f"{Colors.SUCCESS}{handle.name}:{Colors.RESET} {handle.display_value()}")

async def main():
    """Run the cordon wizard against two node names."""
    configure_logging(default_level=LogLevel.INFO)
    logger.info("Starting cordon wizard...")

    try:
        store = build_wizard(ClusterClient())
        store["plan"].subscribe(show)
        store.start()

        print(f"\n{Colors.INFO}Selecting ip-10-0-0-1{Colors.RESET}")
        store["node_name"].assign("ip-10-0-0-1")
        show(store["node_info"])
        await store.settled(timeout=5)

        print(f"\n{Colors.INFO}Selecting a node that does not exist{Colors.RESET}")
        store["node_name"].assign("ip-10-9-9-9")
        await store.settled(timeout=5)

        print(f"\n{Colors.INFO}Final graph state:{Colors.RESET}")
        for name, state in store.to_dict().items():
            print(f"  {name}: {state['status']} (version {state['version']})")

        store.close()

    except Exception as e:
        logger.error(f"Wizard failed: {str(e)}")
        raise

if __name__ == "__main__":
    asyncio.run(main())
