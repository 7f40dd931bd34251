"""Exception types raised by the trace ingestion pipeline.

Failures are local to one trace. The report writer aggregates them and
raises once every trace in the report has finished.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gqltrace.contracts.enums import TraceWriteStage


class MalformedTraceError(ValueError):
    """Raised when a trace cannot be interpreted.

    Covers a missing query or operation name, a query that does not parse,
    an operation name absent from the document, and trace nodes that carry
    only half of a field identity.
    """


class IdentityConflictError(Exception):
    """Raised when insert-or-fetch cannot settle a natural key.

    The insert hit a uniqueness violation but the re-select found no row,
    which means the constraint fired for something other than a concurrent
    writer claiming the same key.
    """

    def __init__(self, relation: str, key: object) -> None:
        self.relation = relation
        self.key = key
        super().__init__(f"Insert into {relation} conflicted but no row exists for key {key!r}")


class TraceWriteError(Exception):
    """Raised when one trace fails to persist.

    Rows committed before the failing stage are not rolled back.

    Attributes:
        stage: Stage that was being attempted when the failure happened
        trace_index: Position of the trace in its report (None for direct writes)
        cause: The underlying exception (also chained as __cause__)
    """

    def __init__(self, stage: TraceWriteStage, cause: BaseException, *, trace_index: int | None = None) -> None:
        self.stage = stage
        self.cause = cause
        self.trace_index = trace_index
        where = f"trace {trace_index}" if trace_index is not None else "trace"
        super().__init__(f"Writing {where} failed at {stage.value}: {cause}")


class ReportWriteError(Exception):
    """Raised after a report finished with one or more failed traces.

    Every trace has been attempted by the time this is raised. Successful
    siblings are persisted.

    Attributes:
        failures: Failed trace writes, ordered by trace index
        succeeded: Number of traces written successfully
    """

    def __init__(self, failures: list[TraceWriteError], succeeded: int) -> None:
        self.failures = sorted(failures, key=lambda f: -1 if f.trace_index is None else f.trace_index)
        self.succeeded = succeeded
        indexes = ", ".join(str(f.trace_index) for f in self.failures)
        super().__init__(f"{len(self.failures)} trace(s) failed to write (indexes: {indexes}); {succeeded} succeeded")
