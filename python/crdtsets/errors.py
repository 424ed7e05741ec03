"""
Exceptions raised by crdtsets.

Every failure is local and synchronous; nothing here is retryable.
"""

from __future__ import annotations


class CRDTError(Exception):
    """Base class for all crdtsets errors."""


class InvalidArgument(CRDTError, ValueError):
    """
    A required element or collection argument was missing or of the wrong kind.

    Raised before any state is touched, so the receiver is left unchanged.
    """


class InvariantViolation(CRDTError, ValueError):
    """
    Externally supplied raw state breaks a structural invariant of a set variant.

    Only raised while constructing a set from raw data (``from_state``,
    ``create``). Merging two valid sets never raises this.
    """
