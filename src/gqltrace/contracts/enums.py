"""Status codes and stages used across subsystem boundaries."""

from enum import StrEnum


class TraceWriteStage(StrEnum):
    """Stage of a single trace write.

    Stages run strictly in declaration order. A failed write reports the
    stage it was attempting when the failure happened.
    """

    SIGNATURE_COMPUTED = "signature_computed"
    TRACE_NORMALIZED = "trace_normalized"
    OPERATION_RESOLVED = "operation_resolved"
    FIELDS_RESOLVED = "fields_resolved"
    FIELDS_LINKED = "fields_linked"
    OPERATION_TRACE_INSERTED = "operation_trace_inserted"
    FIELD_TRACES_INSERTED = "field_traces_inserted"
    ERRORS_INSERTED = "errors_inserted"
    DONE = "done"


class RecordType(StrEnum):
    """Kind of stored record, as emitted by the exporter."""

    OPERATION = "operation"
    FIELD = "field"
    OPERATION_FIELD = "operation_field"
    OPERATION_TRACE = "operation_trace"
    FIELD_TRACE = "field_trace"
    ERROR = "error"
