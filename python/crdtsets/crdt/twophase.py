"""
2P-Set (Two-Phase Set) CRDT implementation.

A 2P-Set keeps two grow-only sets: every element ever added, and the
tombstones of every element ever removed. An element is present if it
was added and has no tombstone. Removal is permanent, and a tombstone
beats an add no matter which one happened or arrived first
(remove-wins).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, FrozenSet, Tuple, TypeVar

from .base import DEFAULT_NODE_ID, StateCRDT, require_element, require_elements

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TwoPhaseSet(StateCRDT[T]):
    """
    Two-Phase Set (2P-Set / tombstone set).

    Tombstones are not required to be a subset of the added elements. A
    replica may see a remove before the add it cancels. The tombstone is
    kept and suppresses that add when it arrives.

    Example:
        todo = TwoPhaseSet[str]()
        todo.remove("milk")   # tombstone first
        todo.add("milk")      # no effect, "milk" is tombstoned
        print(todo.contains("milk"))  # False
    """

    state_type = "2pset"

    def __init__(self, node_id: str | None = DEFAULT_NODE_ID):
        super().__init__(node_id)
        # Current and past elements
        self._added: set[T] = set()
        # Removed elements; never shrinks
        self._tombstones: set[T] = set()

    @classmethod
    def of(cls, elements: Iterable[T], node_id: str | None = DEFAULT_NODE_ID) -> "TwoPhaseSet[T]":
        """Create a set holding the given elements and no tombstones."""
        return cls.create(elements, (), node_id=node_id)

    @classmethod
    def create(
        cls,
        added: Iterable[T],
        tombstones: Iterable[T],
        node_id: str | None = DEFAULT_NODE_ID,
    ) -> "TwoPhaseSet[T]":
        """
        Create a set from raw added elements and tombstones.

        Both collections are copied, so later changes to them do not
        affect the set.

        Raises:
            InvalidArgument: If a collection or one of its members is None.
        """
        added_items = require_elements(added, "added")
        tombstone_items = require_elements(tombstones, "tombstones")

        two_phase: TwoPhaseSet[T] = cls(node_id)
        two_phase._added.update(added_items)
        two_phase._tombstones.update(tombstone_items)
        return two_phase

    def add(self, element: T) -> None:
        """
        Add an element unless it has a tombstone.

        Once an element has been removed, adding it again has no effect.
        """
        require_element(element)
        if element in self._tombstones:
            return
        self._added.add(element)

    def remove(self, element: T) -> bool:
        """
        Tombstone an element.

        The tombstone is recorded even if the element was never added here,
        so that it still wins over an add delivered later.
        """
        self._tombstones.add(require_element(element))
        return True

    def clear(self) -> bool:
        """Tombstone every present element."""
        self._tombstones.update(self._added)
        return True

    def contains(self, element: T) -> bool:
        require_element(element)
        return element in self._added and element not in self._tombstones

    def size(self) -> int:
        return len(self._added - self._tombstones)

    def value(self) -> set[T]:
        return self._added - self._tombstones

    def added_elements(self) -> set[T]:
        """Get a copy of every element that has been added, present or not."""
        return set(self._added)

    def tombstones(self) -> set[T]:
        """Get a copy of every element that has been removed."""
        return set(self._tombstones)

    def merge(self, other: "TwoPhaseSet[T]") -> "TwoPhaseSet[T]":
        """Return the component-wise union of both sets."""
        self._check_mergeable(other)
        merged: TwoPhaseSet[T] = type(self)(self.node_id)
        merged._added = self._added | other._added
        merged._tombstones = self._tombstones | other._tombstones
        logger.debug(
            f"Merged 2P-Set {self.node_id}: added={len(merged._added)} "
            f"tombstones={len(merged._tombstones)}"
        )
        return merged

    def state(self) -> dict[str, Any]:
        """Get the full state for transmission."""
        return {
            "type": self.state_type,
            "added": list(self._added),
            "tombstones": list(self._tombstones),
        }

    @classmethod
    def from_state(cls, data: Mapping[str, Any], node_id: str | None = DEFAULT_NODE_ID) -> "TwoPhaseSet[T]":
        """Reconstruct a set from transmitted state."""
        parsed = cls._parse_state(data)
        two_phase: TwoPhaseSet[T] = cls(node_id)
        two_phase._added = set(parsed.added)  # type: ignore[union-attr]
        two_phase._tombstones = set(parsed.tombstones)  # type: ignore[union-attr]
        return two_phase

    def _state_key(self) -> Tuple[FrozenSet[T], FrozenSet[T]]:
        return frozenset(self._added), frozenset(self._tombstones)

    def __repr__(self) -> str:
        return (
            f"TwoPhaseSet(node_id={self.node_id!r}, added={len(self._added)}, "
            f"tombstones={len(self._tombstones)}, size={self.size()})"
        )
