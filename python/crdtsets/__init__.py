"""
crdtsets - Conflict-free replicated sets.
"""

from crdtsets.crdt import (
    EMPTY_MUTATION,
    NEVER,
    VARIANTS,
    Clock,
    GrowOnlySet,
    LastWriteWinsElementSet,
    LogicalClock,
    ManualClock,
    Mergeable,
    Mutation,
    ReplicatedSet,
    StateCRDT,
    SystemClock,
    TwoPhaseSet,
    load_state,
    merge_all,
)
from crdtsets.errors import CRDTError, InvalidArgument, InvariantViolation

# State models
from crdtsets.protocol import (
    GSetState,
    TwoPhaseSetState,
    MutationEntry,
    LWWSetState,
    SetState,
    parse_state,
)

# Replica management
from crdtsets.replica import (
    Replica,
    ReplicaManager,
)

__version__ = "0.1.0"

__all__ = [
    # Base classes
    "ReplicatedSet",
    "Mergeable",
    "StateCRDT",
    "merge_all",
    # CRDT types
    "GrowOnlySet",
    "TwoPhaseSet",
    "LastWriteWinsElementSet",
    "Mutation",
    "NEVER",
    "EMPTY_MUTATION",
    "VARIANTS",
    "load_state",
    # Clocks
    "Clock",
    "SystemClock",
    "LogicalClock",
    "ManualClock",
    # Errors
    "CRDTError",
    "InvalidArgument",
    "InvariantViolation",
    # State models
    "GSetState",
    "TwoPhaseSetState",
    "MutationEntry",
    "LWWSetState",
    "SetState",
    "parse_state",
    # Replicas
    "Replica",
    "ReplicaManager",
]
