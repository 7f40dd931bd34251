# src/gqltrace/core/store/gateway.py
"""StorageGateway: typed insert/select primitives over the six relations.

The gateway knows nothing about traces or resolution policy. It exposes
natural-key lookups, inserts that hand back generated ids, and unfiltered
read-all accessors for inspection and export.

Insert methods let sqlalchemy.exc.IntegrityError escape. The resolvers
catch it on the identity relations to implement insert-or-fetch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from gqltrace.contracts.records import (
    ErrorRecord,
    Field,
    FieldTrace,
    Operation,
    OperationField,
    OperationTrace,
)
from gqltrace.core.store._database_ops import DatabaseOps
from gqltrace.core.store.database import TraceDB
from gqltrace.core.store.repositories import (
    ErrorRepository,
    FieldRepository,
    FieldTraceRepository,
    OperationFieldRepository,
    OperationRepository,
    OperationTraceRepository,
)
from gqltrace.core.store.schema import (
    errors_table,
    field_traces_table,
    fields_table,
    operation_traces_table,
    operations_fields_table,
    operations_table,
)


class StorageGateway:
    """Typed access to the trace store.

    Example:
        db = TraceDB.in_memory()
        gateway = StorageGateway(db)

        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature="...")
        assert gateway.find_operation_id("...") == op_id
    """

    def __init__(self, db: TraceDB) -> None:
        self._db = db
        self._ops = DatabaseOps(db)
        self._operation_repo = OperationRepository()
        self._field_repo = FieldRepository()
        self._operation_field_repo = OperationFieldRepository()
        self._operation_trace_repo = OperationTraceRepository()
        self._field_trace_repo = FieldTraceRepository()
        self._error_repo = ErrorRepository()

    @property
    def db(self) -> TraceDB:
        return self._db

    # === Operations ===

    def find_operation_id(self, signature: str) -> int | None:
        """Look up an operation id by signature."""
        query = select(operations_table.c.id).where(operations_table.c.signature == signature)
        return self._ops.execute_scalar(query)

    def insert_operation(self, *, operation: str, name: str, signature: str) -> int:
        """Insert an operation and return its id.

        Raises:
            IntegrityError: If the signature already exists
        """
        return self._ops.execute_insert_returning_id(
            operations_table.insert().values(operation=operation, name=name, signature=signature)
        )

    # === Fields ===

    def find_field_id(self, type_name: str, field_name: str) -> int | None:
        """Look up a field id by (type, name)."""
        query = select(fields_table.c.id).where(
            fields_table.c.type == type_name,
            fields_table.c.name == field_name,
        )
        return self._ops.execute_scalar(query)

    def insert_field(self, type_name: str, field_name: str) -> int:
        """Insert a field identity and return its id.

        Raises:
            IntegrityError: If (type, name) already exists
        """
        return self._ops.execute_insert_returning_id(fields_table.insert().values(type=type_name, name=field_name))

    def insert_operation_fields(self, operation_id: int, field_ids: Iterable[int]) -> int:
        """Link an operation to fields. Returns the number of links written.

        Duplicate field ids in the input are written once.
        """
        params = [{"field_id": field_id, "operation_id": operation_id} for field_id in dict.fromkeys(field_ids)]
        if not params:
            return 0
        self._ops.execute_insert(operations_fields_table.insert(), params)
        return len(params)

    # === Traces ===

    def insert_operation_trace(
        self,
        *,
        operation_id: int,
        start_time: datetime | None,
        duration: int | None,
        parsing: int | None,
        validation: int | None,
        execution: int | None,
    ) -> int:
        """Insert one operation trace and return its id."""
        return self._ops.execute_insert_returning_id(
            operation_traces_table.insert().values(
                operation_id=operation_id,
                start_time=start_time,
                duration=duration,
                parsing=parsing,
                validation=validation,
                execution=execution,
            )
        )

    def insert_field_traces(self, rows: Sequence[Mapping[str, Any]]) -> list[int]:
        """Insert field traces in one batch and return their ids.

        Ids are returned in the same order as rows. Each row needs
        operation_trace_id, field_id, path, start_time and end_time.
        """
        stmt = field_traces_table.insert().returning(field_traces_table.c.id, sort_by_parameter_order=True)
        return self._ops.execute_insert_many_returning(stmt, rows)

    def insert_errors(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert error rows. Returns the number written.

        Each row needs message, json and exactly one of operation_trace_id
        or field_trace_id. The store rejects rows with zero or two owners.
        """
        if not rows:
            return 0
        params = [
            {
                "message": row["message"],
                "json": row.get("json"),
                "operation_trace_id": row.get("operation_trace_id"),
                "field_trace_id": row.get("field_trace_id"),
            }
            for row in rows
        ]
        self._ops.execute_insert(errors_table.insert(), params)
        return len(params)

    # === Read-all accessors ===

    def read_operations(self) -> list[Operation]:
        rows = self._ops.execute_fetchall(select(operations_table).order_by(operations_table.c.id))
        return [self._operation_repo.load(r) for r in rows]

    def read_fields(self) -> list[Field]:
        rows = self._ops.execute_fetchall(select(fields_table).order_by(fields_table.c.id))
        return [self._field_repo.load(r) for r in rows]

    def read_operation_fields(self) -> list[OperationField]:
        query = select(operations_fields_table).order_by(
            operations_fields_table.c.operation_id,
            operations_fields_table.c.field_id,
        )
        rows = self._ops.execute_fetchall(query)
        return [self._operation_field_repo.load(r) for r in rows]

    def read_operation_traces(self) -> list[OperationTrace]:
        rows = self._ops.execute_fetchall(select(operation_traces_table).order_by(operation_traces_table.c.id))
        return [self._operation_trace_repo.load(r) for r in rows]

    def read_field_traces(self) -> list[FieldTrace]:
        rows = self._ops.execute_fetchall(select(field_traces_table).order_by(field_traces_table.c.id))
        return [self._field_trace_repo.load(r) for r in rows]

    def read_errors(self) -> list[ErrorRecord]:
        rows = self._ops.execute_fetchall(select(errors_table).order_by(errors_table.c.id))
        return [self._error_repo.load(r) for r in rows]

    def count_rows(self) -> dict[str, int]:
        """Row count per relation, keyed by table name."""
        counts: dict[str, int] = {}
        for table in (
            operations_table,
            fields_table,
            operations_fields_table,
            operation_traces_table,
            field_traces_table,
            errors_table,
        ):
            counts[table.name] = int(self._ops.execute_scalar(select(func.count()).select_from(table)) or 0)
        return counts
