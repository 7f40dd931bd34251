"""Trace store exporter.

Exports every stored record as a flat sequence of dicts suitable for JSON
lines. Each record has a 'record_type' field indicating its relation.
Not used by the write path.

Record types (in export order):
- operation: Distinct operations by signature
- field: (type, name) field identities
- operation_field: Operation-to-field links
- operation_trace: One per ingested trace
- field_trace: One per flattened trace node
- error: Operation-level and field-level errors
"""

import json
from collections.abc import Iterator
from dataclasses import asdict
from datetime import datetime
from typing import Any

from gqltrace.contracts.enums import RecordType
from gqltrace.core.store.gateway import StorageGateway


def serialize_datetime(obj: Any) -> Any:
    """Convert datetime values in a dict to ISO format strings."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: serialize_datetime(v) for k, v in obj.items()}
    return obj


class TraceExporter:
    """Export trace store contents.

    Example:
        exporter = TraceExporter(StorageGateway(db))
        for line in exporter.export_jsonl():
            out.write(line + "\\n")
    """

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    def export(self) -> Iterator[dict[str, Any]]:
        """Yield every stored record, relation by relation."""
        sources: list[tuple[RecordType, Any]] = [
            (RecordType.OPERATION, self._gateway.read_operations),
            (RecordType.FIELD, self._gateway.read_fields),
            (RecordType.OPERATION_FIELD, self._gateway.read_operation_fields),
            (RecordType.OPERATION_TRACE, self._gateway.read_operation_traces),
            (RecordType.FIELD_TRACE, self._gateway.read_field_traces),
            (RecordType.ERROR, self._gateway.read_errors),
        ]
        for record_type, read_all in sources:
            for record in read_all():
                yield {"record_type": record_type.value, **serialize_datetime(asdict(record))}

    def export_jsonl(self) -> Iterator[str]:
        """Yield one JSON document per stored record."""
        for record in self.export():
            yield json.dumps(record, sort_keys=True)
