"""Shared contracts for cross-boundary data types.

This package is a leaf module: inbound report types, stored record types,
stage enums and exceptions. Settings live in gqltrace.core.config.

Import patterns:
    from gqltrace.contracts import Report, Trace, TraceNode
    from gqltrace.contracts import Operation, FieldTrace, ErrorRecord
"""

from gqltrace.contracts.enums import RecordType, TraceWriteStage
from gqltrace.contracts.errors import (
    IdentityConflictError,
    MalformedTraceError,
    ReportWriteError,
    TraceWriteError,
)
from gqltrace.contracts.records import (
    ErrorRecord,
    Field,
    FieldTrace,
    Operation,
    OperationField,
    OperationTrace,
)
from gqltrace.contracts.report import Report, Trace, TraceError, TraceNode

__all__ = [
    "ErrorRecord",
    "Field",
    "FieldTrace",
    "IdentityConflictError",
    "MalformedTraceError",
    "Operation",
    "OperationField",
    "OperationTrace",
    "RecordType",
    "Report",
    "ReportWriteError",
    "Trace",
    "TraceError",
    "TraceNode",
    "TraceWriteError",
    "TraceWriteStage",
]
