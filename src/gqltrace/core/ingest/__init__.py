"""Ingest: the trace-to-schema mapping pipeline.

Primary API:
    TraceStore - Wires the pipeline over one TraceDB

Components:
    OperationResolver - signature -> operation id (get-or-create)
    FieldResolver - (type, field) -> field id (get-or-create)
    normalize_trace - nested trace tree -> ordered field nodes
    TraceWriter - persists one trace, stage by stage
    ReportWriter - writes a report's traces in parallel
    IdentityIndex - shared natural key -> id cache
"""

from gqltrace.core.ingest.fields import FieldResolver
from gqltrace.core.ingest.identity import IdentityIndex, IdentityStats
from gqltrace.core.ingest.normalizer import FieldNode, NormalizedTrace, normalize_trace
from gqltrace.core.ingest.operations import OperationResolver, ResolvedOperation
from gqltrace.core.ingest.report_writer import ReportWriter
from gqltrace.core.ingest.trace_store import TraceStore
from gqltrace.core.ingest.trace_writer import TraceWriter, TraceWriteResult

__all__ = [
    "FieldNode",
    "FieldResolver",
    "IdentityIndex",
    "IdentityStats",
    "NormalizedTrace",
    "OperationResolver",
    "ReportWriter",
    "ResolvedOperation",
    "TraceStore",
    "TraceWriteResult",
    "TraceWriter",
    "normalize_trace",
]
