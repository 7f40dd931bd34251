"""Repository layer for trace store records.

Handles the seam between SQLAlchemy rows and the record dataclasses.
This is NOT a trust boundary - if the database hands back bad data the
record constructors raise.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.engine import Row as SARow

from gqltrace.contracts.records import (
    ErrorRecord,
    Field,
    FieldTrace,
    Operation,
    OperationField,
    OperationTrace,
)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on DateTime(timezone=True); stored values are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class OperationRepository:
    """Repository for Operation records."""

    def load(self, row: SARow[Any]) -> Operation:
        return Operation(
            id=row.id,
            operation=row.operation,
            name=row.name,
            signature=row.signature,
        )


class FieldRepository:
    """Repository for Field records."""

    def load(self, row: SARow[Any]) -> Field:
        return Field(id=row.id, type=row.type, name=row.name)


class OperationFieldRepository:
    """Repository for OperationField links."""

    def load(self, row: SARow[Any]) -> OperationField:
        return OperationField(field_id=row.field_id, operation_id=row.operation_id)


class OperationTraceRepository:
    """Repository for OperationTrace records.

    Restores UTC tzinfo on start_time for backends that drop it.
    """

    def load(self, row: SARow[Any]) -> OperationTrace:
        return OperationTrace(
            id=row.id,
            operation_id=row.operation_id,
            start_time=_as_utc(row.start_time),
            duration=row.duration,
            parsing=row.parsing,
            validation=row.validation,
            execution=row.execution,
        )


class FieldTraceRepository:
    """Repository for FieldTrace records."""

    def load(self, row: SARow[Any]) -> FieldTrace:
        return FieldTrace(
            id=row.id,
            operation_trace_id=row.operation_trace_id,
            field_id=row.field_id,
            path=row.path,
            start_time=row.start_time,
            end_time=row.end_time,
        )


class ErrorRepository:
    """Repository for Error records.

    ErrorRecord validates the single-owner invariant on construction.
    """

    def load(self, row: SARow[Any]) -> ErrorRecord:
        return ErrorRecord(
            id=row.id,
            message=row.message,
            json=row.json,
            operation_trace_id=row.operation_trace_id,
            field_trace_id=row.field_trace_id,
        )
