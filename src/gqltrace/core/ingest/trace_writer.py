# src/gqltrace/core/ingest/trace_writer.py
"""TraceWriter: persist one trace.

Stages, strictly sequential. Normalization touches no store, so a
malformed tree fails before the first row is written:

1. SIGNATURE_COMPUTED        operation signature from query + name
2. TRACE_NORMALIZED          flatten the trace tree (no store access)
3. OPERATION_RESOLVED        get-or-create the operation (is_new)
4. FIELDS_RESOLVED           get-or-create every referenced field
5. FIELDS_LINKED             link fields to a NEW operation (skipped otherwise)
6. OPERATION_TRACE_INSERTED  one operation trace row
7. FIELD_TRACES_INSERTED     one field trace row per flattened node
8. ERRORS_INSERTED           operation-level, then field-level errors

Each stage commits on its own. A failure leaves earlier stages' rows in
place and surfaces as TraceWriteError naming the stage that failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gqltrace.contracts.enums import TraceWriteStage
from gqltrace.contracts.errors import TraceWriteError
from gqltrace.contracts.report import Trace
from gqltrace.core.ingest.fields import FieldResolver
from gqltrace.core.ingest.normalizer import NormalizedTrace, normalize_trace
from gqltrace.core.ingest.operations import OperationResolver
from gqltrace.core.logging import get_logger
from gqltrace.core.signature import operation_signature
from gqltrace.core.store.gateway import StorageGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceWriteResult:
    """Ids produced by one successful trace write.

    field_trace_ids[i] belongs to the i-th node of the normalized trace.
    """

    operation_id: int
    operation_trace_id: int
    field_trace_ids: tuple[int, ...]
    is_new_operation: bool
    linked_field_count: int
    error_count: int


class TraceWriter:
    """Writes a single trace through the resolvers and the gateway.

    Stateless between calls and safe to share across threads; identity
    caching lives in the resolvers' shared IdentityIndex.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        operation_resolver: OperationResolver,
        field_resolver: FieldResolver,
    ) -> None:
        self._gateway = gateway
        self._operations = operation_resolver
        self._fields = field_resolver

    def write(self, trace: Trace, *, trace_index: int | None = None) -> TraceWriteResult:
        """Persist one trace.

        Args:
            trace: The trace to write
            trace_index: Position of the trace in its report, for error reporting

        Raises:
            TraceWriteError: If any stage fails. The original exception is
                chained as __cause__.
        """
        log = logger.bind(trace_index=trace_index, operation_name=trace.operation_name)
        stage = TraceWriteStage.SIGNATURE_COMPUTED
        try:
            signature = operation_signature(trace.query, trace.operation_name)
            assert trace.query is not None and trace.operation_name is not None
            log = log.bind(signature=signature)

            # Malformed trees must fail before the first write
            stage = TraceWriteStage.TRACE_NORMALIZED
            normalized = normalize_trace(trace.entry)

            stage = TraceWriteStage.OPERATION_RESOLVED
            resolved = self._operations.resolve_signature(
                signature,
                query=trace.query,
                operation_name=trace.operation_name,
            )
            operation_id = resolved.operation_id
            log = log.bind(operation_id=operation_id)

            stage = TraceWriteStage.FIELDS_RESOLVED
            field_ids = self._fields.ensure_field_ids(normalized.field_keys)

            stage = TraceWriteStage.FIELDS_LINKED
            linked = 0
            if resolved.is_new:
                log.debug("Assigning fields to an operation", field_count=len(field_ids))
                linked = self._gateway.insert_operation_fields(operation_id, field_ids.values())
            else:
                # Links are written once, on first sighting; repeat traces never extend them
                log.debug("Operation already known, field links unchanged", field_count=len(field_ids))

            stage = TraceWriteStage.OPERATION_TRACE_INSERTED
            log.debug("Inserting an operation trace")
            operation_trace_id = self._gateway.insert_operation_trace(
                operation_id=operation_id,
                start_time=trace.start_time,
                duration=trace.duration,
                parsing=trace.parsing,
                validation=trace.validation,
                execution=trace.execution,
            )

            stage = TraceWriteStage.FIELD_TRACES_INSERTED
            log.debug("Inserting field traces", node_count=len(normalized.nodes))
            field_trace_ids = self._gateway.insert_field_traces(
                [
                    {
                        "operation_trace_id": operation_trace_id,
                        "field_id": field_ids[node.key],
                        "path": node.dotted_path,
                        "start_time": node.start_time,
                        "end_time": node.end_time,
                    }
                    for node in normalized.nodes
                ]
            )

            stage = TraceWriteStage.ERRORS_INSERTED
            error_count = self._insert_errors(normalized, operation_trace_id, field_trace_ids)
        except Exception as e:
            log.debug("Trace write failed", stage=stage.value, error=str(e))
            raise TraceWriteError(stage, e, trace_index=trace_index) from e

        log.debug("Trace written", operation_trace_id=operation_trace_id, errors=error_count)
        return TraceWriteResult(
            operation_id=operation_id,
            operation_trace_id=operation_trace_id,
            field_trace_ids=tuple(field_trace_ids),
            is_new_operation=resolved.is_new,
            linked_field_count=linked,
            error_count=error_count,
        )

    def _insert_errors(
        self,
        normalized: NormalizedTrace,
        operation_trace_id: int,
        field_trace_ids: list[int],
    ) -> int:
        """Insert operation-level errors, then field-level errors.

        Field-level errors are attributed by zipping the node sequence with
        the field trace ids returned for it; both are in normalization order.
        """
        operation_rows: list[dict[str, Any]] = [
            {"operation_trace_id": operation_trace_id, "message": error.message, "json": error.json}
            for error in normalized.operation_errors
        ]
        count = self._gateway.insert_errors(operation_rows)

        field_rows: list[dict[str, Any]] = [
            {"field_trace_id": field_trace_id, "message": error.message, "json": error.json}
            for node, field_trace_id in zip(normalized.nodes, field_trace_ids, strict=True)
            for error in node.errors
        ]
        count += self._gateway.insert_errors(field_rows)
        return count
