"""Tests for the last-write-wins element set.

Timestamps come from ManualClock instances so every scenario is
deterministic.
"""

import pickle

import pytest

from crdtsets import (
    NEVER,
    InvalidArgument,
    InvariantViolation,
    LastWriteWinsElementSet,
    LogicalClock,
    ManualClock,
    Mutation,
    SystemClock,
)


def _lww(start=0, node_id=None):
    clock = ManualClock(start)
    return LastWriteWinsElementSet(clock=clock, node_id=node_id), clock


def test_later_add_resurrects_after_merge() -> None:
    a, clock_a = _lww(1, "A")
    a.add("x")
    clock_a.set(2)
    a.remove("x")

    b, _ = _lww(3, "B")
    b.add("x")

    for merged in (a.merge(b), b.merge(a)):
        assert merged.mutation("x") == Mutation(add_time=3, remove_time=2)
        assert merged.contains("x")


def test_equal_timestamps_resolve_to_absent_on_one_replica() -> None:
    lww, _ = _lww(5)
    lww.add("x")
    lww.remove("x")
    assert lww.mutation("x") == Mutation(5, 5)
    assert not lww.contains("x")


def test_equal_timestamps_resolve_to_absent_after_merge() -> None:
    adder, _ = _lww(5)
    adder.add("x")
    remover, _ = _lww(5)
    remover.remove("x")

    assert not adder.merge(remover).contains("x")
    assert not remover.merge(adder).contains("x")


def test_never_mutated_element_is_absent() -> None:
    lww, _ = _lww()
    assert not lww.contains("ghost")
    assert lww.mutation("ghost") == Mutation(NEVER, NEVER)
    assert lww.size() == 0


def test_remove_without_add_is_recorded() -> None:
    lww, clock = _lww(4)
    assert lww.remove("x") is True

    peer, _ = _lww(3)
    peer.add("x")

    assert not lww.merge(peer).contains("x")


def test_element_cycles_between_present_and_absent() -> None:
    lww, clock = _lww(1)
    history = []
    for step in range(6):
        if step % 2 == 0:
            lww.add("x")
        else:
            lww.remove("x")
        history.append(lww.contains("x"))
        clock.advance()
    assert history == [True, False, True, False, True, False]


def test_add_and_remove_touch_only_their_own_timestamp() -> None:
    lww, clock = _lww(1)
    lww.add("x")
    clock.set(7)
    lww.remove("x")
    assert lww.mutation("x") == Mutation(1, 7)
    clock.set(9)
    lww.add("x")
    assert lww.mutation("x") == Mutation(9, 7)


def test_stale_clock_does_not_lower_timestamps() -> None:
    lww, clock = _lww(10)
    lww.add("x")
    clock.set(3)
    lww.add("x")
    lww.remove("x")
    assert lww.mutation("x") == Mutation(10, 3)
    assert lww.contains("x")


def test_merge_combines_components_independently() -> None:
    left = LastWriteWinsElementSet.create({"x": Mutation(8, 1)}, clock=ManualClock())
    right = LastWriteWinsElementSet.create({"x": Mutation(2, 9)}, clock=ManualClock())
    assert left.merge(right).mutation("x") == Mutation(8, 9)


def test_merge_takes_union_of_keys() -> None:
    left = LastWriteWinsElementSet.create({"a": Mutation(1, NEVER)})
    right = LastWriteWinsElementSet.create({"b": Mutation(NEVER, 2)})
    merged = left.merge(right)
    assert merged.mutations() == {"a": Mutation(1, NEVER), "b": Mutation(NEVER, 2)}
    assert merged.value() == {"a"}


def test_merge_result_keeps_receiver_clock() -> None:
    lww, clock = _lww(1)
    merged = lww.merge(LastWriteWinsElementSet(clock=ManualClock(100)))
    assert merged.clock is clock


def test_clear_removes_present_elements_at_one_reading() -> None:
    lww, clock = _lww(1)
    lww.add("a")
    lww.add("b")
    clock.set(2)
    lww.remove("b")
    clock.set(3)

    assert lww.clear() is True

    assert lww.size() == 0
    assert lww.mutation("a") == Mutation(1, 3)
    # already absent, untouched
    assert lww.mutation("b") == Mutation(1, 2)


def test_of_adds_all_elements_at_one_reading() -> None:
    clock = LogicalClock()
    lww = LastWriteWinsElementSet.of(["a", "b"], clock=clock)
    assert lww.mutation("a") == lww.mutation("b") == Mutation(1, NEVER)
    assert clock.current == 1


def test_snapshot_is_independent_copy() -> None:
    lww, _ = _lww(1)
    lww.add("a")
    snapshot = lww.snapshot()
    snapshot.discard("a")
    assert lww.contains("a")


def test_mutations_returns_copy() -> None:
    lww, _ = _lww(1)
    lww.add("a")
    lww.mutations()["b"] = Mutation(5, NEVER)
    assert not lww.contains("b")


def test_equality_key_is_a_copy() -> None:
    lww, _ = _lww(1)
    lww.add("a")
    key = lww._state_key()
    key["b"] = Mutation(5, NEVER)
    assert not lww.contains("b")
    assert lww._state_key() == {"a": Mutation(1, NEVER)}


def test_none_element_rejected_without_reading_clock() -> None:
    clock = LogicalClock()
    lww = LastWriteWinsElementSet(clock=clock)
    with pytest.raises(InvalidArgument):
        lww.add(None)
    with pytest.raises(InvalidArgument):
        lww.remove(None)
    assert clock.current == 0
    assert lww.mutations() == {}


def test_clock_returning_none_is_rejected() -> None:
    lww = LastWriteWinsElementSet(clock=lambda: None)
    with pytest.raises(InvalidArgument):
        lww.add("x")
    assert lww.mutations() == {}


def test_plain_function_works_as_clock() -> None:
    lww = LastWriteWinsElementSet(clock=lambda: 42)
    lww.add("x")
    assert lww.mutation("x").add_time == 42


def test_default_clock_is_wall_clock() -> None:
    lww = LastWriteWinsElementSet()
    lww.add("x")
    assert lww.contains("x")
    assert isinstance(lww.mutation("x").add_time, float)


def test_add_after_remove_wins_on_a_stalled_wall_clock() -> None:
    lww = LastWriteWinsElementSet(clock=SystemClock(time_source=lambda: 1000.0))
    lww.remove("x")
    lww.add("x")
    assert lww.contains("x")


def test_add_after_remove_wins_when_wall_clock_steps_back() -> None:
    readings = iter([100.0, 99.0, 99.5])
    lww = LastWriteWinsElementSet(clock=SystemClock(time_source=lambda: next(readings)))
    lww.add("x")
    lww.remove("x")
    assert not lww.contains("x")
    lww.add("x")
    assert lww.contains("x")


def test_create_rejects_non_mutation_values() -> None:
    with pytest.raises(InvariantViolation):
        LastWriteWinsElementSet.create({"x": (1, 2)})


def test_create_rejects_none() -> None:
    with pytest.raises(InvalidArgument):
        LastWriteWinsElementSet.create(None)
    with pytest.raises(InvalidArgument):
        LastWriteWinsElementSet.create({None: Mutation(1, NEVER)})


def test_create_drops_empty_records() -> None:
    lww = LastWriteWinsElementSet.create({"x": Mutation()})
    assert lww == LastWriteWinsElementSet()


def test_latest_timestamp() -> None:
    assert LastWriteWinsElementSet().latest_timestamp() is NEVER
    lww = LastWriteWinsElementSet.create({"a": Mutation(3, 7), "b": Mutation(5, NEVER)})
    assert lww.latest_timestamp() == 7


class TestNever:
    def test_sorts_below_everything(self) -> None:
        assert NEVER < 0
        assert NEVER < -10**9
        assert 0 > NEVER
        assert not (NEVER > 0)
        assert not (NEVER < NEVER)
        assert NEVER <= NEVER

    def test_is_a_singleton(self) -> None:
        assert pickle.loads(pickle.dumps(NEVER)) is NEVER
        assert NEVER == NEVER
        assert NEVER != 0

    def test_mutation_predicates(self) -> None:
        assert not Mutation().present
        assert Mutation().is_empty
        assert Mutation(1, NEVER).present
        assert Mutation(1, NEVER).has_been_added
        assert not Mutation(1, NEVER).has_been_removed
        assert not Mutation(NEVER, 1).present
        assert not Mutation(2, 2).present
