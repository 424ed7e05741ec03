"""
CRDT set base classes.

A replicated set lets every node mutate its own copy without coordination.
Copies are reconciled with ``merge``, which must be commutative,
associative and idempotent so that replicas that have seen the same
updates hold the same state, whatever order the updates arrived in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Generic, Set, TypeVar

from ..errors import InvalidArgument, InvariantViolation
from ..protocol import SetState, parse_state

T = TypeVar("T")
M = TypeVar("M", bound="Mergeable")

DEFAULT_NODE_ID: str | None = None


def require_element(element: Any) -> Any:
    """Reject a missing element before any state is touched."""
    if element is None:
        raise InvalidArgument("Element must not be None")
    return element


def require_elements(elements: Iterable[Any] | None, name: str = "elements") -> list[Any]:
    """Materialize an iterable of elements, rejecting None and None members."""
    if elements is None:
        raise InvalidArgument(f"{name} must not be None")
    if isinstance(elements, (str, bytes)):
        raise InvalidArgument(f"{name} must be a collection of elements, got {type(elements).__name__}")
    items = list(elements)
    for item in items:
        if item is None:
            raise InvalidArgument(f"{name} must not contain None")
    return items


class ReplicatedSet(ABC, Generic[T]):
    """
    Operation surface shared by every replicated set variant.

    Local operations mutate the receiver. Reads are pure functions of the
    current state.
    """

    def __init__(self, node_id: str | None = DEFAULT_NODE_ID):
        self.node_id = node_id

    @abstractmethod
    def add(self, element: T) -> None:
        """Add an element, subject to the variant's conflict policy."""
        ...

    @abstractmethod
    def remove(self, element: T) -> bool:
        """
        Remove an element.

        Returns False if the variant refuses removals.
        """
        ...

    @abstractmethod
    def clear(self) -> bool:
        """
        Remove every present element.

        Returns False if the variant refuses removals.
        """
        ...

    @abstractmethod
    def contains(self, element: T) -> bool:
        """Check whether an element is currently present."""
        ...

    @abstractmethod
    def value(self) -> Set[T]:
        """Get the present elements as an independent set."""
        ...

    def size(self) -> int:
        """Get the number of present elements."""
        return len(self.value())

    def snapshot(self) -> Set[T]:
        """Alias of ``value()``."""
        return self.value()

    def __contains__(self, element: object) -> bool:
        return self.contains(element)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[T]:
        return iter(self.value())


class Mergeable(ABC):
    """
    A pairwise combinator over replicas of the same type.

    ``merge`` returns a new instance and leaves both operands untouched.
    """

    @abstractmethod
    def merge(self: M, other: M) -> M:
        """Combine this replica with another of the same type."""
        ...

    def _check_mergeable(self, other: Any) -> None:
        if other is None:
            raise InvalidArgument("Cannot merge with None")
        if type(other) is not type(self):
            raise InvalidArgument(
                f"Cannot merge {type(self).__name__} with {type(other).__name__}"
            )


class StateCRDT(ReplicatedSet[T], Mergeable):
    """
    Base class for state-based CRDT sets.

    State-based CRDTs ship their full state between replicas and combine
    it with a join-semilattice merge.
    """

    #: Type tag used in ``state()`` dictionaries.
    state_type: str = ""

    @abstractmethod
    def state(self) -> dict[str, Any]:
        """Get the full CRDT state for transmission."""
        ...

    @classmethod
    @abstractmethod
    def from_state(cls, data: Mapping[str, Any], node_id: str | None = DEFAULT_NODE_ID) -> "StateCRDT[T]":
        """Reconstruct a set from transmitted state."""
        ...

    @abstractmethod
    def _state_key(self) -> Any:
        """Comparable representation of the full replicated state."""
        ...

    @classmethod
    def _parse_state(cls, data: Mapping[str, Any] | None) -> SetState:
        """Validate raw state for this variant, raising InvariantViolation on bad data."""
        if data is None:
            raise InvalidArgument("State must not be None")
        try:
            parsed = parse_state(data)
        except ValueError as e:
            raise InvariantViolation(f"Invalid {cls.__name__} state: {e}") from e
        if parsed.type != cls.state_type:
            raise InvariantViolation(
                f"{cls.__name__} expects state of type '{cls.state_type}', got '{parsed.type}'"
            )
        return parsed

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._state_key() == other._state_key()  # type: ignore[attr-defined]

    # Mutable, so not hashable.
    __hash__ = None  # type: ignore[assignment]


def merge_all(first: M, *others: M) -> M:
    """Fold ``merge`` over any number of replicas of the same type."""
    if first is None:
        raise InvalidArgument("Cannot merge with None")
    result = first
    for other in others:
        result = result.merge(other)
    return result
