"""Stored record contracts for the six trace relations.

These mirror the rows of the store one-to-one. The repository layer
builds them from SQLAlchemy rows. If the store hands back a row that
violates an invariant (an error with two owners, say), construction
raises instead of papering over it.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Operation:
    """A distinct logical operation, identified by its signature."""

    id: int
    operation: str
    name: str
    signature: str


@dataclass(frozen=True)
class Field:
    """A (type, field name) identity shared across operations."""

    id: int
    type: str
    name: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.type, self.name)


@dataclass(frozen=True)
class OperationField:
    """Link between an operation and a field reachable in its selection set."""

    field_id: int
    operation_id: int


@dataclass(frozen=True)
class OperationTrace:
    """One ingested execution of an operation."""

    id: int
    operation_id: int
    start_time: datetime | None = None
    duration: int | None = None
    parsing: int | None = None
    validation: int | None = None
    execution: int | None = None


@dataclass(frozen=True)
class FieldTrace:
    """Timing of one field occurrence within an operation trace."""

    id: int
    operation_trace_id: int
    field_id: int
    path: str
    start_time: int | None = None
    end_time: int | None = None


@dataclass(frozen=True)
class ErrorRecord:
    """An error owned by exactly one operation trace or field trace."""

    id: int
    message: str
    json: str | None = None
    operation_trace_id: int | None = None
    field_trace_id: int | None = None

    def __post_init__(self) -> None:
        if (self.operation_trace_id is None) == (self.field_trace_id is None):
            raise ValueError(
                f"Error {self.id} must have exactly one owner, got "
                f"operation_trace_id={self.operation_trace_id!r} field_trace_id={self.field_trace_id!r}"
            )
