"""
CRDT (Conflict-free Replicated Data Types) set module.

Provides set variants that can be replicated across multiple nodes and
merged automatically without conflicts.
"""

from __future__ import annotations

from typing import Any, Mapping

from .base import (
    DEFAULT_NODE_ID,
    Mergeable,
    ReplicatedSet,
    StateCRDT,
    merge_all,
)
from .clock import Clock, LogicalClock, ManualClock, SystemClock
from .gset import GrowOnlySet
from .lww import EMPTY_MUTATION, NEVER, LastWriteWinsElementSet, Mutation
from .twophase import TwoPhaseSet
from ..errors import InvalidArgument, InvariantViolation

# Type tag -> set variant
VARIANTS: dict[str, type[StateCRDT[Any]]] = {
    GrowOnlySet.state_type: GrowOnlySet,
    TwoPhaseSet.state_type: TwoPhaseSet,
    LastWriteWinsElementSet.state_type: LastWriteWinsElementSet,
}


def load_state(data: Mapping[str, Any], node_id: str | None = DEFAULT_NODE_ID) -> StateCRDT[Any]:
    """
    Rebuild a set of whichever variant the state's type tag names.

    Raises:
        InvalidArgument: If data is None.
        InvariantViolation: If the tag is missing or unknown, or the state is malformed.
    """
    if data is None:
        raise InvalidArgument("State must not be None")
    state_type = data.get("type") if isinstance(data, Mapping) else None
    variant = VARIANTS.get(state_type) if isinstance(state_type, str) else None
    if variant is None:
        raise InvariantViolation(f"Unknown set state type: {state_type}")
    return variant.from_state(data, node_id=node_id)


__all__ = [
    # Base classes
    "ReplicatedSet",
    "Mergeable",
    "StateCRDT",
    "merge_all",
    # Clocks
    "Clock",
    "SystemClock",
    "LogicalClock",
    "ManualClock",
    # CRDT types
    "GrowOnlySet",
    "TwoPhaseSet",
    "LastWriteWinsElementSet",
    "Mutation",
    "NEVER",
    "EMPTY_MUTATION",
    # State loading
    "VARIANTS",
    "load_state",
]
