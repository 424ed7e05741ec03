"""Tests for the timestamp sources."""

import logging
import math

import pytest

from crdtsets import NEVER, Clock, InvalidArgument, LogicalClock, ManualClock, SystemClock


def test_system_clock_moves_past_last_reading_when_time_goes_backwards(caplog) -> None:
    readings = iter([100.0, 105.0, 99.0, 106.0])
    clock = SystemClock(time_source=lambda: next(readings))

    with caplog.at_level(logging.WARNING, logger="crdtsets.crdt.clock"):
        values = [clock() for _ in range(4)]

    assert values == [100.0, 105.0, math.nextafter(105.0, math.inf), 106.0]
    assert values == sorted(set(values))
    assert "moved backwards" in caplog.text


def test_system_clock_never_repeats_a_reading(caplog) -> None:
    clock = SystemClock(time_source=lambda: 1000.0)

    with caplog.at_level(logging.WARNING, logger="crdtsets.crdt.clock"):
        values = [clock() for _ in range(3)]

    assert values[0] == 1000.0
    assert values[0] < values[1] < values[2]
    # A stalled timer is not a regression
    assert "moved backwards" not in caplog.text


def test_logical_clock_counts_up() -> None:
    clock = LogicalClock()
    assert [clock(), clock(), clock()] == [1, 2, 3]
    assert clock.current == 3


def test_logical_clock_observe_moves_past_peer() -> None:
    clock = LogicalClock(start=5)
    clock.observe(12)
    assert clock() == 13

    clock.observe(3)
    clock.observe(None)
    clock.observe(NEVER)
    assert clock() == 14


def test_logical_clock_rejects_negative_start() -> None:
    with pytest.raises(InvalidArgument):
        LogicalClock(start=-1)


def test_manual_clock() -> None:
    clock = ManualClock(10)
    assert clock() == 10
    clock.set(20)
    assert clock() == 20
    assert clock.advance(5) == 25
    assert clock() == 25


def test_clocks_satisfy_protocol() -> None:
    for clock in (SystemClock(), LogicalClock(), ManualClock(), lambda: 1):
        assert isinstance(clock, Clock)
