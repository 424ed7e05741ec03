"""pytest configuration for crdtsets.

Puts the ``python/`` source directory on the import path and provides
replica builders shared by the merge-law tests.
"""

import os
import sys
from typing import Any, Callable, Dict, Tuple

import pytest


def pytest_configure() -> None:
    """Configure pytest to include the python directory in sys.path."""

    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    src_path = os.path.join(repo_root, "python")

    if src_path not in sys.path:
        sys.path.insert(0, src_path)


def _gset_replicas() -> Tuple[Any, Any, Any, Any]:
    from crdtsets import GrowOnlySet

    a = GrowOnlySet.of(["a", "b"], node_id="A")
    b = GrowOnlySet.of(["b", "c"], node_id="B")
    c = GrowOnlySet.of(["d"], node_id="C")
    return a, b, c, GrowOnlySet()


def _twophase_replicas() -> Tuple[Any, Any, Any, Any]:
    from crdtsets import TwoPhaseSet

    a = TwoPhaseSet.of(["a", "b", "c"], node_id="A")
    a.remove("b")
    b = TwoPhaseSet.of(["b", "d"], node_id="B")
    b.remove("z")  # tombstone for an element it never saw
    c = TwoPhaseSet(node_id="C")
    c.add("d")
    c.remove("d")
    c.add("e")
    return a, b, c, TwoPhaseSet()


def _lww_replicas() -> Tuple[Any, Any, Any, Any]:
    from crdtsets import LastWriteWinsElementSet, ManualClock

    clock_a, clock_b, clock_c = ManualClock(1), ManualClock(1), ManualClock(1)
    a = LastWriteWinsElementSet(clock=clock_a, node_id="A")
    b = LastWriteWinsElementSet(clock=clock_b, node_id="B")
    c = LastWriteWinsElementSet(clock=clock_c, node_id="C")

    a.add("x")
    clock_a.set(2)
    a.remove("x")
    a.add("y")

    b.add("x")
    clock_b.set(3)
    b.add("z")
    b.remove("y")

    clock_c.set(2)
    c.add("y")
    c.remove("z")
    clock_c.set(5)
    c.add("w")
    return a, b, c, LastWriteWinsElementSet(clock=ManualClock(0))


REPLICA_BUILDERS: Dict[str, Callable[[], Tuple[Any, Any, Any, Any]]] = {
    "gset": _gset_replicas,
    "2pset": _twophase_replicas,
    "lww": _lww_replicas,
}


@pytest.fixture(params=sorted(REPLICA_BUILDERS))
def replicas(request: pytest.FixtureRequest) -> Tuple[Any, Any, Any, Any]:
    """Three diverged replicas of one variant plus an empty one."""
    return REPLICA_BUILDERS[request.param]()
