"""
LWW-Element-Set (Last-Write-Wins Element Set) CRDT implementation.

Every element is bound to a ``Mutation`` recording the timestamp of its
latest add and its latest remove. An element is present when its latest
add is strictly later than its latest remove. An exact tie counts as
absent, so a remove wins a tie. Unlike the 2P-Set, an element can be
added again after it was removed, as long as the new add carries a later
timestamp.

Merging two records takes the maximum of each timestamp independently.
Component-wise max over a totally ordered domain is commutative,
associative and idempotent, and so is its pointwise extension over the
union of keys of two sets, with a missing key standing for a record that
was never added nor removed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Dict, TypeVar

from ..errors import InvalidArgument, InvariantViolation
from .base import DEFAULT_NODE_ID, StateCRDT, require_element, require_elements
from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Never:
    """
    Timestamp sentinel meaning "never happened".

    Compares lower than every other value and equal only to itself.
    """

    _instance: "_Never | None" = None

    def __new__(cls) -> "_Never":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"

    def __reduce__(self) -> str:
        return "NEVER"

    def __lt__(self, other: object) -> bool:
        return other is not self

    def __le__(self, other: object) -> bool:
        return True

    def __gt__(self, other: object) -> bool:
        return False

    def __ge__(self, other: object) -> bool:
        return other is self

    def __eq__(self, other: object) -> bool:
        return other is self

    def __hash__(self) -> int:
        return hash("crdtsets.NEVER")


NEVER = _Never()


def _later(left: Any, right: Any) -> Any:
    return right if left < right else left


@dataclass(frozen=True)
class Mutation:
    """
    Latest add and remove timestamps of one element.

    Neither timestamp is ever lowered: local writes and merges only move
    them forward.
    """

    add_time: Any = NEVER
    remove_time: Any = NEVER

    @property
    def present(self) -> bool:
        """True if the latest add is strictly later than the latest remove."""
        return self.add_time > self.remove_time

    @property
    def has_been_added(self) -> bool:
        return self.add_time is not NEVER

    @property
    def has_been_removed(self) -> bool:
        return self.remove_time is not NEVER

    @property
    def is_empty(self) -> bool:
        return self.add_time is NEVER and self.remove_time is NEVER

    @property
    def latest(self) -> Any:
        """The later of the two timestamps."""
        return _later(self.add_time, self.remove_time)

    def added_at(self, timestamp: Any) -> "Mutation":
        return Mutation(_later(self.add_time, timestamp), self.remove_time)

    def removed_at(self, timestamp: Any) -> "Mutation":
        return Mutation(self.add_time, _later(self.remove_time, timestamp))

    def merge(self, other: "Mutation") -> "Mutation":
        """Merge add history and remove history independently."""
        if other is None:
            raise InvalidArgument("Cannot merge with None")
        return Mutation(
            _later(self.add_time, other.add_time),
            _later(self.remove_time, other.remove_time),
        )


EMPTY_MUTATION = Mutation()


class LastWriteWinsElementSet(StateCRDT[T]):
    """
    Last-Write-Wins Element Set (LWW-Element-Set).

    Timestamps come from an injected clock, read once per local
    operation. Defaults to a ``SystemClock``.

    Example:
        clock = ManualClock(1)
        s = LastWriteWinsElementSet[str](clock=clock)
        s.add("x")        # add at 1
        clock.set(2)
        s.remove("x")     # remove at 2
        clock.set(3)
        s.add("x")        # add at 3, present again
        print(s.contains("x"))  # True
    """

    state_type = "lww"

    def __init__(self, clock: Clock | None = None, node_id: str | None = DEFAULT_NODE_ID):
        super().__init__(node_id)
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._mutations: dict[T, Mutation] = {}

    @classmethod
    def of(
        cls,
        elements: Iterable[T],
        clock: Clock | None = None,
        node_id: str | None = DEFAULT_NODE_ID,
    ) -> "LastWriteWinsElementSet[T]":
        """Create a set and add the given elements at a single clock reading."""
        items = require_elements(elements)
        lww: LastWriteWinsElementSet[T] = cls(clock, node_id)
        if items:
            now = lww._now()
            for element in items:
                lww._mutations[element] = lww._mutation(element).added_at(now)
        return lww

    @classmethod
    def create(
        cls,
        mutations: Mapping[T, Mutation],
        clock: Clock | None = None,
        node_id: str | None = DEFAULT_NODE_ID,
    ) -> "LastWriteWinsElementSet[T]":
        """
        Create a set from a raw element -> Mutation mapping.

        Raises:
            InvalidArgument: If the mapping or one of its keys is None.
            InvariantViolation: If a value is not a Mutation.
        """
        if mutations is None:
            raise InvalidArgument("mutations must not be None")
        records: dict[T, Mutation] = {}
        for element, mutation in mutations.items():
            require_element(element)
            if not isinstance(mutation, Mutation):
                raise InvariantViolation(
                    f"Expected Mutation for element {element!r}, got {type(mutation).__name__}"
                )
            if not mutation.is_empty:
                records[element] = mutation

        lww: LastWriteWinsElementSet[T] = cls(clock, node_id)
        lww._mutations = records
        return lww

    @property
    def clock(self) -> Clock:
        return self._clock

    def _now(self) -> Any:
        now = self._clock()
        if now is None or now is NEVER:
            raise InvalidArgument(f"Clock returned an invalid timestamp: {now!r}")
        return now

    def _mutation(self, element: T) -> Mutation:
        return self._mutations.get(element, EMPTY_MUTATION)

    def add(self, element: T) -> None:
        """Record an add of the element at the current clock reading."""
        current = self._mutation(require_element(element))
        self._mutations[element] = current.added_at(self._now())

    def remove(self, element: T) -> bool:
        """
        Record a remove of the element at the current clock reading.

        The remove is recorded even for elements never seen here.
        """
        current = self._mutation(require_element(element))
        self._mutations[element] = current.removed_at(self._now())
        return True

    def clear(self) -> bool:
        """Remove every present element at a single clock reading."""
        present = [element for element, m in self._mutations.items() if m.present]
        if not present:
            return True
        now = self._now()
        for element in present:
            self._mutations[element] = self._mutations[element].removed_at(now)
        return True

    def contains(self, element: T) -> bool:
        return self._mutation(require_element(element)).present

    def size(self) -> int:
        return sum(1 for m in self._mutations.values() if m.present)

    def value(self) -> set[T]:
        return {element for element, m in self._mutations.items() if m.present}

    def mutation(self, element: T) -> Mutation:
        """Get the recorded mutation for an element (empty if never seen)."""
        return self._mutation(require_element(element))

    def mutations(self) -> dict[T, Mutation]:
        """Get a copy of every recorded mutation."""
        return dict(self._mutations)

    def latest_timestamp(self) -> Any:
        """The latest timestamp recorded for any element, or NEVER."""
        latest: Any = NEVER
        for m in self._mutations.values():
            latest = _later(latest, m.latest)
        return latest

    def merge(self, other: "LastWriteWinsElementSet[T]") -> "LastWriteWinsElementSet[T]":
        """
        Return the pointwise merge of both sets.

        The result keeps this replica's clock and node_id.
        """
        self._check_mergeable(other)
        merged: Dict[T, Mutation] = dict(self._mutations)
        for element, theirs in other._mutations.items():
            mine = merged.get(element)
            merged[element] = theirs if mine is None else mine.merge(theirs)

        result: LastWriteWinsElementSet[T] = type(self)(self._clock, self.node_id)
        result._mutations = merged
        logger.debug(
            f"Merged LWW-Set {self.node_id}: {len(self._mutations)} + {len(other._mutations)} "
            f"-> {len(merged)} records"
        )
        return result

    def state(self) -> dict[str, Any]:
        """
        Get the full state for transmission.

        NEVER is encoded as None.
        """
        return {
            "type": self.state_type,
            "entries": [
                {
                    "element": element,
                    "add_time": None if m.add_time is NEVER else m.add_time,
                    "remove_time": None if m.remove_time is NEVER else m.remove_time,
                }
                for element, m in self._mutations.items()
            ],
        }

    @classmethod
    def from_state(
        cls,
        data: Mapping[str, Any],
        node_id: str | None = DEFAULT_NODE_ID,
        clock: Clock | None = None,
    ) -> "LastWriteWinsElementSet[T]":
        """Reconstruct a set from transmitted state."""
        parsed = cls._parse_state(data)
        mutations = {
            entry.element: Mutation(
                NEVER if entry.add_time is None else entry.add_time,
                NEVER if entry.remove_time is None else entry.remove_time,
            )
            for entry in parsed.entries  # type: ignore[union-attr]
        }
        return cls.create(mutations, clock=clock, node_id=node_id)

    def _state_key(self) -> Dict[T, Mutation]:
        return dict(self._mutations)

    def __repr__(self) -> str:
        return (
            f"LastWriteWinsElementSet(node_id={self.node_id!r}, "
            f"records={len(self._mutations)}, size={self.size()})"
        )
