# src/gqltrace/core/ingest/trace_store.py
"""TraceStore: High-level API for trace ingestion.

This is the main interface for writing reports. It wires one storage
gateway, one shared identity index, both resolvers and the writers
together over a single TraceDB.

Example:
    db = TraceDB.in_memory()
    with TraceStore(db) as store:
        store.write_report(Report.from_dict(payload))
        operations = store.read_operations()
"""

from __future__ import annotations

from typing import Self

from gqltrace.contracts.records import (
    ErrorRecord,
    Field,
    FieldTrace,
    Operation,
    OperationField,
    OperationTrace,
)
from gqltrace.contracts.report import Report, Trace
from gqltrace.core.config import ConcurrencySettings, GqlTraceSettings
from gqltrace.core.ingest.fields import FieldResolver
from gqltrace.core.ingest.identity import IdentityIndex
from gqltrace.core.ingest.operations import OperationResolver
from gqltrace.core.ingest.report_writer import ReportWriter
from gqltrace.core.ingest.trace_writer import TraceWriter, TraceWriteResult
from gqltrace.core.store.database import TraceDB
from gqltrace.core.store.gateway import StorageGateway


class TraceStore:
    """Ingest reports into a trace store and read them back."""

    def __init__(self, db: TraceDB, concurrency: ConcurrencySettings | None = None) -> None:
        concurrency = concurrency or ConcurrencySettings()
        self._db = db
        self._gateway = StorageGateway(db)
        self._index = IdentityIndex()
        self._operation_resolver = OperationResolver(self._gateway, self._index)
        self._field_resolver = FieldResolver(self._gateway, self._index, max_workers=concurrency.field_lookup_workers)
        self._trace_writer = TraceWriter(self._gateway, self._operation_resolver, self._field_resolver)
        self._report_writer = ReportWriter(self._trace_writer, max_workers=concurrency.max_workers)

    @classmethod
    def from_settings(cls, settings: GqlTraceSettings) -> Self:
        """Open the configured database and build a store over it."""
        db = TraceDB.from_url(settings.store.url, echo=settings.store.echo)
        return cls(db, settings.concurrency)

    @property
    def gateway(self) -> StorageGateway:
        return self._gateway

    @property
    def identity_index(self) -> IdentityIndex:
        return self._index

    def write_report(self, report: Report) -> None:
        """Write every trace of a report; see ReportWriter.write()."""
        self._report_writer.write(report)

    def write_trace(self, trace: Trace) -> TraceWriteResult:
        """Write one trace on the calling thread; see TraceWriter.write()."""
        return self._trace_writer.write(trace)

    # === Read-all accessors ===

    def read_operations(self) -> list[Operation]:
        return self._gateway.read_operations()

    def read_fields(self) -> list[Field]:
        return self._gateway.read_fields()

    def read_operation_fields(self) -> list[OperationField]:
        return self._gateway.read_operation_fields()

    def read_operation_traces(self) -> list[OperationTrace]:
        return self._gateway.read_operation_traces()

    def read_field_traces(self) -> list[FieldTrace]:
        return self._gateway.read_field_traces()

    def read_errors(self) -> list[ErrorRecord]:
        return self._gateway.read_errors()

    def close(self) -> None:
        """Stop the worker pools and close the database."""
        self._report_writer.shutdown()
        self._field_resolver.close()
        self._db.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
