"""Bounded failure history kept in the PublicIPAddress status.

The history holds at most one entry per operation type. These functions are
pure: they never mutate their input and always return a new tuple.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..constants import OperationType
from ..models import FailedOperation


def get_failure(
    history: Iterable[FailedOperation],
    op_type: OperationType,
) -> FailedOperation | None:
    """Return the entry for ``op_type``, if any."""
    for op in history:
        if op.type == op_type:
            return op
    return None


def record_failure(
    history: Iterable[FailedOperation],
    op_type: OperationType,
    error_message: str,
    timestamp: datetime,
) -> tuple[FailedOperation, ...]:
    """Record a failure of ``op_type``.

    An existing entry of the same type has its attempts incremented and its
    message and timestamp replaced in place; otherwise a new entry with a
    single attempt is appended.
    """
    result: list[FailedOperation] = []
    found = False
    for op in history:
        if op.type == op_type:
            op = FailedOperation(
                type=op_type,
                attempts=op.attempts + 1,
                error_message=error_message,
                timestamp=timestamp,
            )
            found = True
        result.append(op)
    if not found:
        result.append(
            FailedOperation(type=op_type, attempts=1, error_message=error_message, timestamp=timestamp)
        )
    return tuple(result)


def clear_failure(
    history: Iterable[FailedOperation],
    op_type: OperationType,
) -> tuple[FailedOperation, ...]:
    """Remove the entry for ``op_type``; no-op if there is none."""
    return tuple(op for op in history if op.type != op_type)
