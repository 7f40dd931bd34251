"""Store: the relational home of ingested traces.

Primary API:
    TraceDB - Database connection management
    StorageGateway - Typed insert/select primitives over the six relations
    TraceExporter - Read-all export of stored records
"""

from gqltrace.core.store.database import SchemaCompatibilityError, TraceDB
from gqltrace.core.store.exporter import TraceExporter
from gqltrace.core.store.gateway import StorageGateway
from gqltrace.core.store.schema import (
    errors_table,
    field_traces_table,
    fields_table,
    metadata,
    operation_traces_table,
    operations_fields_table,
    operations_table,
)

__all__ = [
    "SchemaCompatibilityError",
    "StorageGateway",
    "TraceDB",
    "TraceExporter",
    "errors_table",
    "field_traces_table",
    "fields_table",
    "metadata",
    "operation_traces_table",
    "operations_fields_table",
    "operations_table",
]
