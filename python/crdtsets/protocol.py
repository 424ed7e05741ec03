"""
State snapshot models for crdtsets.

Each set variant can export its full replicated state as a plain
dictionary (``state()``) and rebuild itself from one (``from_state()``).
The models here validate those dictionaries using Pydantic before a set
is constructed from them. Encoding the dictionaries for the wire and
shipping them between replicas is left to the replication layer.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# Timestamps carried in snapshots. None encodes "never".
SnapshotTimestamp = Optional[Union[int, float]]


# =============================================================================
# Element Validation
# =============================================================================


def _freeze(value: Any) -> Any:
    """Turn nested lists (as produced by JSON decoding) back into tuples."""
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _validate_element(value: Any, field_name: str) -> Any:
    """Check that a single element can live in a set."""
    if value is None:
        raise ValueError(f"Null element not allowed in {field_name}")
    value = _freeze(value)
    try:
        hash(value)
    except TypeError:
        raise ValueError(
            f"Unhashable element of type {type(value).__name__} in {field_name}"
        ) from None
    return value


def _validate_elements(values: List[Any], field_name: str) -> List[Any]:
    return [_validate_element(v, f"{field_name}[{i}]") for i, v in enumerate(values)]


def _validate_timestamp(value: SnapshotTimestamp, field_name: str) -> SnapshotTimestamp:
    if isinstance(value, float) and math.isnan(value):
        raise ValueError(f"NaN is not a valid timestamp in {field_name}")
    return value


# =============================================================================
# Set State Models
# =============================================================================


class GSetState(BaseModel):
    """Full state of a grow-only set."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["gset"] = "gset"
    elements: List[Any] = Field(default_factory=list)

    @field_validator("elements")
    @classmethod
    def validate_elements(cls, v: List[Any]) -> List[Any]:
        return _validate_elements(v, "elements")


class TwoPhaseSetState(BaseModel):
    """
    Full state of a two-phase set.

    Tombstones are not required to be a subset of the added elements: a
    remove may be observed before the add it cancels.
    """

    model_config = ConfigDict(extra="forbid")

    type: Literal["2pset"] = "2pset"
    added: List[Any] = Field(default_factory=list)
    tombstones: List[Any] = Field(default_factory=list)

    @field_validator("added", "tombstones")
    @classmethod
    def validate_elements(cls, v: List[Any], info: ValidationInfo) -> List[Any]:
        return _validate_elements(v, info.field_name)


class MutationEntry(BaseModel):
    """Latest add and remove timestamps recorded for one LWW-Set element."""

    model_config = ConfigDict(extra="forbid")

    element: Any
    add_time: SnapshotTimestamp = None
    remove_time: SnapshotTimestamp = None

    @field_validator("element")
    @classmethod
    def validate_element(cls, v: Any) -> Any:
        return _validate_element(v, "element")

    @field_validator("add_time", "remove_time")
    @classmethod
    def validate_timestamp(cls, v: SnapshotTimestamp, info: ValidationInfo) -> SnapshotTimestamp:
        return _validate_timestamp(v, info.field_name)


class LWWSetState(BaseModel):
    """Full state of a last-write-wins element set."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["lww"] = "lww"
    entries: List[MutationEntry] = Field(default_factory=list)

    @field_validator("entries")
    @classmethod
    def validate_unique_elements(cls, v: List[MutationEntry]) -> List[MutationEntry]:
        seen: set[Any] = set()
        for entry in v:
            if entry.element in seen:
                raise ValueError(f"Duplicate entry for element {entry.element!r}")
            seen.add(entry.element)
        return v


SetState = Union[GSetState, TwoPhaseSetState, LWWSetState]


# =============================================================================
# State Parsing
# =============================================================================


STATE_TYPES: Dict[str, type[BaseModel]] = {
    "gset": GSetState,
    "2pset": TwoPhaseSetState,
    "lww": LWWSetState,
}


def parse_state(data: Mapping[str, Any]) -> SetState:
    """
    Parse a raw dictionary into a typed set state.

    Raises:
        ValueError: If the data is not a mapping, the type tag is unknown,
            or the state fails validation.
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Set state must be a mapping, got {type(data).__name__}")

    state_type = data.get("type")
    if not isinstance(state_type, str) or state_type not in STATE_TYPES:
        raise ValueError(f"Unknown set state type: {state_type}")

    return STATE_TYPES[state_type].model_validate(dict(data))  # type: ignore[return-value]


__all__ = [
    "SnapshotTimestamp",
    "GSetState",
    "TwoPhaseSetState",
    "MutationEntry",
    "LWWSetState",
    "SetState",
    "STATE_TYPES",
    "parse_state",
]
