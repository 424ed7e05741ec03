"""
G-Set (Grow-only Set) CRDT implementation.

Elements can only be added. Merge is set union, which is commutative,
associative and idempotent without any ordering information.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, FrozenSet, TypeVar

from .base import DEFAULT_NODE_ID, StateCRDT, require_element, require_elements

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GrowOnlySet(StateCRDT[T]):
    """
    Grow-only Set (G-Set).

    ``remove`` and ``clear`` are refused and report False.

    Example:
        tags = GrowOnlySet[str]()
        tags.add("apple")
        tags.remove("apple")  # False, still present
        print(tags.value())  # {"apple"}
    """

    state_type = "gset"

    def __init__(self, node_id: str | None = DEFAULT_NODE_ID):
        super().__init__(node_id)
        self._elements: set[T] = set()

    @classmethod
    def of(cls, elements: Iterable[T], node_id: str | None = DEFAULT_NODE_ID) -> "GrowOnlySet[T]":
        """Create a set holding the given elements."""
        gset: GrowOnlySet[T] = cls(node_id)
        gset._elements.update(require_elements(elements))
        return gset

    def add(self, element: T) -> None:
        """Add an element. Adding it again has no effect."""
        self._elements.add(require_element(element))

    def remove(self, element: T) -> bool:
        """Removals are not supported; always returns False."""
        require_element(element)
        return False

    def clear(self) -> bool:
        """Clearing is not supported; always returns False."""
        return False

    def contains(self, element: T) -> bool:
        return require_element(element) in self._elements

    def size(self) -> int:
        return len(self._elements)

    def value(self) -> set[T]:
        return set(self._elements)

    def merge(self, other: "GrowOnlySet[T]") -> "GrowOnlySet[T]":
        """Return the union of both sets."""
        self._check_mergeable(other)
        merged: GrowOnlySet[T] = type(self)(self.node_id)
        merged._elements = self._elements | other._elements
        logger.debug(
            f"Merged G-Set {self.node_id}: {len(self._elements)} + {len(other._elements)} "
            f"-> {len(merged._elements)} elements"
        )
        return merged

    def state(self) -> dict[str, Any]:
        """Get the full state for transmission."""
        return {
            "type": self.state_type,
            "elements": list(self._elements),
        }

    @classmethod
    def from_state(cls, data: Mapping[str, Any], node_id: str | None = DEFAULT_NODE_ID) -> "GrowOnlySet[T]":
        """Reconstruct a set from transmitted state."""
        parsed = cls._parse_state(data)
        gset: GrowOnlySet[T] = cls(node_id)
        gset._elements = set(parsed.elements)  # type: ignore[union-attr]
        return gset

    def _state_key(self) -> FrozenSet[T]:
        return frozenset(self._elements)

    def __repr__(self) -> str:
        return f"GrowOnlySet(node_id={self.node_id!r}, size={len(self._elements)})"
