"""
Replica management for crdtsets.

The set types themselves do no locking: each instance expects a single
writer. ``Replica`` is that writer. It owns one set, serializes local
mutations and merges of remote state behind an ``asyncio.Lock``, and
swaps in the merged set. ``ReplicaManager`` keeps a collection of named
replicas of one variant.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Union

from .crdt.base import StateCRDT
from .crdt.lww import LastWriteWinsElementSet
from .errors import InvalidArgument

logger = logging.getLogger(__name__)


# Builds the empty set for a new replica, given its ID
CRDTFactory = Callable[[str], StateCRDT[Any]]

RemoteState = Union[StateCRDT[Any], Mapping[str, Any]]


def _observe_timestamps(own: StateCRDT[Any], incoming: StateCRDT[Any]) -> None:
    """Let a logical clock move past timestamps received from a peer."""
    if not isinstance(own, LastWriteWinsElementSet):
        return
    if not isinstance(incoming, LastWriteWinsElementSet):
        return
    observe = getattr(own.clock, "observe", None)
    if callable(observe):
        observe(incoming.latest_timestamp())


class Replica:
    """
    A single replica of a replicated set.

    Manages:
    - The local set state
    - Serialized local mutations
    - Merging of remote snapshots or replicas
    """

    def __init__(self, replica_id: str, crdt: StateCRDT[Any]):
        """
        Initialize a replica.

        Args:
            replica_id: Unique identifier for the replica.
            crdt: The set this replica owns.
        """
        if crdt is None:
            raise InvalidArgument("Replica needs a set to own")

        self.replica_id = replica_id
        self._crdt = crdt

        # Lock serializing every write to the owned set
        self._lock = asyncio.Lock()

        self._merge_count = 0

    @property
    def crdt(self) -> StateCRDT[Any]:
        """Get the replica's current set."""
        return self._crdt

    @property
    def value(self) -> set[Any]:
        """Get the currently present elements."""
        return self._crdt.value()

    @property
    def size(self) -> int:
        return self._crdt.size()

    @property
    def merge_count(self) -> int:
        """Number of merges applied to this replica."""
        return self._merge_count

    def contains(self, element: Any) -> bool:
        return self._crdt.contains(element)

    def get_state_dict(self) -> dict[str, Any]:
        """Get the full state as a serializable dictionary."""
        return self._crdt.state()

    async def add(self, element: Any) -> None:
        async with self._lock:
            self._crdt.add(element)

    async def remove(self, element: Any) -> bool:
        async with self._lock:
            return self._crdt.remove(element)

    async def clear(self) -> bool:
        async with self._lock:
            return self._crdt.clear()

    async def merge(self, remote: RemoteState) -> bool:
        """
        Merge a remote replica's state into this one.

        Args:
            remote: Either a set of the same variant or its ``state()`` dictionary.

        Returns:
            True if the set of present elements changed.

        Raises:
            InvalidArgument: If remote is None or of another variant.
            InvariantViolation: If a state dictionary is malformed.
        """
        if remote is None:
            raise InvalidArgument("Cannot merge with None")

        async with self._lock:
            if isinstance(remote, StateCRDT):
                incoming = remote
            else:
                incoming = type(self._crdt).from_state(remote)

            before = self._crdt.value()
            merged = self._crdt.merge(incoming)
            _observe_timestamps(self._crdt, incoming)
            self._crdt = merged
            self._merge_count += 1

            changed = merged.value() != before
            logger.debug(
                f"Replica {self.replica_id} merged remote state "
                f"(changed={changed}, size={merged.size()})"
            )
            return changed

    def __repr__(self) -> str:
        return f"Replica(replica_id={self.replica_id!r}, crdt={self._crdt!r})"


class ReplicaManager:
    """
    Manages multiple named replicas of one set variant.

    Provides:
    - Replica creation and retrieval
    - State export for every replica
    - Creation and deletion callbacks
    """

    def __init__(self, crdt_factory: CRDTFactory):
        """
        Initialize the replica manager.

        Args:
            crdt_factory: Builds the empty set for a new replica from its ID.
        """
        if crdt_factory is None:
            raise InvalidArgument("crdt_factory must not be None")

        self._factory = crdt_factory
        self._replicas: dict[str, Replica] = {}
        self._lock = asyncio.Lock()

        # Callbacks
        self._on_replica_created: list[Callable[[Replica], Awaitable[None]]] = []
        self._on_replica_deleted: list[Callable[[str], Awaitable[None]]] = []

    @property
    def replica_count(self) -> int:
        return len(self._replicas)

    @property
    def replica_ids(self) -> list[str]:
        return list(self._replicas.keys())

    async def create_replica(
        self,
        replica_id: str | None = None,
        initial_state: Mapping[str, Any] | None = None,
    ) -> Replica:
        """
        Create a new replica.

        Args:
            replica_id: Optional replica ID (generated if not provided).
            initial_state: Optional state dictionary to start from.

        Returns:
            The created replica, or the existing one with that ID.
        """
        replica_id = replica_id or str(uuid.uuid4())

        async with self._lock:
            if replica_id in self._replicas:
                return self._replicas[replica_id]

            crdt = self._factory(replica_id)
            if initial_state is not None:
                seed = type(crdt).from_state(initial_state)
                _observe_timestamps(crdt, seed)
                crdt = crdt.merge(seed)

            replica = Replica(replica_id, crdt)
            self._replicas[replica_id] = replica
            logger.debug(f"Created replica {replica_id} ({type(crdt).__name__})")

        for callback in self._on_replica_created:
            await callback(replica)

        return replica

    async def get_replica(self, replica_id: str) -> Replica | None:
        return self._replicas.get(replica_id)

    async def get_or_create_replica(
        self,
        replica_id: str,
        initial_state: Mapping[str, Any] | None = None,
    ) -> Replica:
        replica = self._replicas.get(replica_id)
        if replica:
            return replica
        return await self.create_replica(replica_id, initial_state)

    async def delete_replica(self, replica_id: str) -> bool:
        """
        Delete a replica.

        Returns:
            True if the replica was deleted, False if not found.
        """
        async with self._lock:
            if replica_id not in self._replicas:
                return False

            del self._replicas[replica_id]

        for callback in self._on_replica_deleted:
            await callback(replica_id)

        return True

    def has_replica(self, replica_id: str) -> bool:
        return replica_id in self._replicas

    def states(self) -> dict[str, dict[str, Any]]:
        """Get the state dictionary of every replica, keyed by replica ID."""
        return {
            replica_id: replica.get_state_dict()
            for replica_id, replica in self._replicas.items()
        }

    def on_replica_created(self, callback: Callable[[Replica], Awaitable[None]]) -> None:
        """Register a callback for replica creation events."""
        self._on_replica_created.append(callback)

    def on_replica_deleted(self, callback: Callable[[str], Awaitable[None]]) -> None:
        """Register a callback for replica deletion events."""
        self._on_replica_deleted.append(callback)


__all__ = [
    "CRDTFactory",
    "RemoteState",
    "Replica",
    "ReplicaManager",
]
