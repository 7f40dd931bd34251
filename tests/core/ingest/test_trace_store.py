# tests/core/ingest/test_trace_store.py
"""Tests for the TraceStore facade."""

from pathlib import Path

from gqltrace.core.config import GqlTraceSettings, StoreSettings
from gqltrace.core.ingest.trace_store import TraceStore
from tests.fixtures.store import make_user_trace


class TestTraceStore:
    def test_from_settings_opens_configured_database(self, tmp_path: Path) -> None:
        settings = GqlTraceSettings(store=StoreSettings(url=f"sqlite:///{tmp_path / 'traces.db'}"))

        with TraceStore.from_settings(settings) as store:
            store.write_trace(make_user_trace())
            assert len(store.read_operations()) == 1

        with TraceStore.from_settings(settings) as store:
            assert len(store.read_operation_traces()) == 1

    def test_read_accessors(self, trace_store: TraceStore) -> None:
        result = trace_store.write_trace(make_user_trace())

        assert [o.id for o in trace_store.read_operations()] == [result.operation_id]
        assert len(trace_store.read_fields()) == 2
        assert len(trace_store.read_operation_fields()) == 2
        assert [t.id for t in trace_store.read_operation_traces()] == [result.operation_trace_id]
        assert tuple(t.id for t in trace_store.read_field_traces()) == result.field_trace_ids
        assert trace_store.read_errors() == []

    def test_identity_index_warms_up(self, trace_store: TraceStore) -> None:
        trace_store.write_trace(make_user_trace())
        trace_store.write_trace(make_user_trace())

        assert trace_store.identity_index.operations.stats().hits == 1
        assert trace_store.identity_index.fields.stats().size == 2
