"""
Replica Sync - three replicas of each set variant diverge and converge

A simple example demonstrating the crdtsets package.
Run with: python main.py

State dictionaries are passed around directly; a real deployment would
encode them and ship them over its own transport.
"""

import asyncio
import json
import logging
import os
import sys

# Add the parent package to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "python"))

from crdtsets import (
    GrowOnlySet,
    LastWriteWinsElementSet,
    LogicalClock,
    ReplicaManager,
    TwoPhaseSet,
)

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("replica-sync")

NODES = ["alpha", "beta", "gamma"]


async def exchange_all(manager: ReplicaManager) -> None:
    """Every replica merges every other replica's state, in a scrambled order."""
    states = manager.states()
    for replica_id in reversed(manager.replica_ids):
        replica = await manager.get_replica(replica_id)
        for peer_id, state in states.items():
            if peer_id != replica_id:
                # Round-trip through JSON, as a transport would
                await replica.merge(json.loads(json.dumps(state)))


async def run_variant(name: str, manager: ReplicaManager) -> None:
    for node in NODES:
        await manager.create_replica(node)

    alpha = await manager.get_replica("alpha")
    beta = await manager.get_replica("beta")
    gamma = await manager.get_replica("gamma")

    # Concurrent, uncoordinated edits
    await alpha.add("milk")
    await alpha.add("eggs")
    await beta.add("bread")
    await beta.remove("milk")
    await gamma.add("milk")
    await gamma.add("jam")

    await exchange_all(manager)

    values = {replica_id: sorted(map(str, (await manager.get_replica(replica_id)).value)) for replica_id in NODES}
    logger.info(f"{name}: {values}")
    assert len({tuple(v) for v in values.values()}) == 1, "replicas diverged"


async def main() -> None:
    await run_variant("G-Set", ReplicaManager(lambda node: GrowOnlySet(node_id=node)))
    await run_variant("2P-Set", ReplicaManager(lambda node: TwoPhaseSet(node_id=node)))
    await run_variant(
        "LWW-Set",
        ReplicaManager(lambda node: LastWriteWinsElementSet(clock=LogicalClock(), node_id=node)),
    )


if __name__ == "__main__":
    asyncio.run(main())
