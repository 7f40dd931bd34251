# src/gqltrace/core/ingest/report_writer.py
"""ReportWriter: fan a report out to the trace writer.

Traces of one report are independent. They are written in parallel on
a thread pool and none waits on, or is cancelled by, another. The call
returns only after every trace has finished, then raises if any failed.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait

from gqltrace.contracts.errors import ReportWriteError, TraceWriteError
from gqltrace.contracts.report import Report
from gqltrace.core.ingest.trace_writer import TraceWriter, TraceWriteResult
from gqltrace.core.logging import get_logger

logger = get_logger(__name__)


class ReportWriter:
    """Writes every trace of a report through a shared TraceWriter.

    Usage:
        writer = ReportWriter(trace_writer, max_workers=4)
        writer.write(report)   # raises ReportWriteError if any trace failed
        writer.shutdown()
    """

    def __init__(self, trace_writer: TraceWriter, *, max_workers: int = 4) -> None:
        self._trace_writer = trace_writer
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gqltrace-traces")

    def write(self, report: Report) -> None:
        """Write all traces of a report.

        Raises:
            ReportWriteError: After all traces finished, if one or more
                failed. Successful traces stay written.
        """
        if not report.traces:
            return

        logger.debug("Writing report", trace_count=len(report.traces))
        futures: list[Future[TraceWriteResult]] = [
            self._pool.submit(self._trace_writer.write, trace, trace_index=index) for index, trace in enumerate(report.traces)
        ]
        wait(futures)

        failures: list[TraceWriteError] = []
        for future in futures:
            error = future.exception()
            if error is None:
                continue
            if not isinstance(error, TraceWriteError):
                # TraceWriter wraps every Exception; anything else is not ours to absorb
                raise error
            logger.warning(
                "Trace write failed",
                trace_index=error.trace_index,
                stage=error.stage.value,
                error=str(error.cause),
            )
            failures.append(error)

        succeeded = len(futures) - len(failures)
        logger.info("Report written", traces=len(futures), succeeded=succeeded, failed=len(failures))
        if failures:
            raise ReportWriteError(failures, succeeded)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the trace pool.

        Args:
            wait: If True, wait for in-flight trace writes to complete
        """
        self._pool.shutdown(wait=wait)
