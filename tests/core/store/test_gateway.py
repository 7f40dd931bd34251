# tests/core/store/test_gateway.py
"""Tests for StorageGateway insert/select primitives and store constraints."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import IntegrityError

from gqltrace.contracts.records import ErrorRecord, Field, Operation, OperationField
from gqltrace.core.store.gateway import StorageGateway

SIGNATURE = "a" * 64


def _operation_trace(gateway: StorageGateway, operation_id: int) -> int:
    return gateway.insert_operation_trace(
        operation_id=operation_id,
        start_time=datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        duration=1500,
        parsing=100,
        validation=200,
        execution=1000,
    )


class TestOperations:
    def test_insert_then_find(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        assert gateway.find_operation_id(SIGNATURE) == op_id
        assert gateway.read_operations() == [Operation(id=op_id, operation="query Q { a }", name="Q", signature=SIGNATURE)]

    def test_find_unknown_returns_none(self, gateway: StorageGateway) -> None:
        assert gateway.find_operation_id("missing") is None

    def test_duplicate_signature_rejected(self, gateway: StorageGateway) -> None:
        gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        with pytest.raises(IntegrityError, match="UNIQUE constraint failed"):
            gateway.insert_operation(operation="query Q{a}", name="Q", signature=SIGNATURE)


class TestFields:
    def test_insert_then_find(self, gateway: StorageGateway) -> None:
        field_id = gateway.insert_field("Query", "user")
        assert gateway.find_field_id("Query", "user") == field_id
        assert gateway.find_field_id("User", "user") is None
        assert gateway.read_fields() == [Field(id=field_id, type="Query", name="user")]

    def test_same_name_on_different_types_are_distinct(self, gateway: StorageGateway) -> None:
        a = gateway.insert_field("Query", "id")
        b = gateway.insert_field("User", "id")
        assert a != b

    def test_duplicate_pair_rejected(self, gateway: StorageGateway) -> None:
        gateway.insert_field("Query", "user")
        with pytest.raises(IntegrityError, match="UNIQUE constraint failed"):
            gateway.insert_field("Query", "user")


class TestOperationFields:
    def test_links_written_once_per_field(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        a = gateway.insert_field("Query", "a")
        b = gateway.insert_field("Query", "b")

        assert gateway.insert_operation_fields(op_id, [b, a, b]) == 2
        assert gateway.read_operation_fields() == [
            OperationField(field_id=a, operation_id=op_id),
            OperationField(field_id=b, operation_id=op_id),
        ]

    def test_empty_links_are_a_no_op(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        assert gateway.insert_operation_fields(op_id, []) == 0
        assert gateway.read_operation_fields() == []

    def test_repeated_link_rejected(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        a = gateway.insert_field("Query", "a")
        gateway.insert_operation_fields(op_id, [a])
        with pytest.raises(IntegrityError):
            gateway.insert_operation_fields(op_id, [a])

    def test_link_to_unknown_field_rejected(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        with pytest.raises(IntegrityError, match="FOREIGN KEY"):
            gateway.insert_operation_fields(op_id, [999])


class TestTraces:
    def test_operation_trace_round_trip(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        trace_id = _operation_trace(gateway, op_id)

        (stored,) = gateway.read_operation_traces()
        assert stored.id == trace_id
        assert stored.operation_id == op_id
        assert stored.start_time == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
        assert (stored.duration, stored.parsing, stored.validation, stored.execution) == (1500, 100, 200, 1000)

    def test_operation_trace_requires_existing_operation(self, gateway: StorageGateway) -> None:
        with pytest.raises(IntegrityError, match="FOREIGN KEY"):
            _operation_trace(gateway, 42)

    def test_field_trace_ids_follow_row_order(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        trace_id = _operation_trace(gateway, op_id)
        field_id = gateway.insert_field("Query", "a")
        rows = [
            {"operation_trace_id": trace_id, "field_id": field_id, "path": f"a.{i}", "start_time": i, "end_time": i + 1}
            for i in range(25)
        ]

        ids = gateway.insert_field_traces(rows)

        assert len(ids) == 25
        by_id = {ft.id: ft for ft in gateway.read_field_traces()}
        assert [by_id[i].path for i in ids] == [row["path"] for row in rows]

    def test_empty_field_trace_batch(self, gateway: StorageGateway) -> None:
        assert gateway.insert_field_traces([]) == []


class TestErrors:
    @pytest.fixture
    def owners(self, gateway: StorageGateway) -> tuple[int, int]:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        trace_id = _operation_trace(gateway, op_id)
        field_id = gateway.insert_field("Query", "a")
        (field_trace_id,) = gateway.insert_field_traces(
            [{"operation_trace_id": trace_id, "field_id": field_id, "path": "a", "start_time": 1, "end_time": 2}]
        )
        return trace_id, field_trace_id

    def test_errors_with_single_owner(self, gateway: StorageGateway, owners: tuple[int, int]) -> None:
        trace_id, field_trace_id = owners
        written = gateway.insert_errors(
            [
                {"message": "top", "json": '{"message":"top"}', "operation_trace_id": trace_id},
                {"message": "field", "json": None, "field_trace_id": field_trace_id},
            ]
        )

        assert written == 2
        top, field = gateway.read_errors()
        assert top == ErrorRecord(id=top.id, message="top", json='{"message":"top"}', operation_trace_id=trace_id)
        assert field.field_trace_id == field_trace_id
        assert field.operation_trace_id is None

    def test_error_without_owner_rejected(self, gateway: StorageGateway, owners: tuple[int, int]) -> None:
        with pytest.raises(IntegrityError, match="CHECK constraint failed"):
            gateway.insert_errors([{"message": "orphan", "json": None}])

    def test_error_with_two_owners_rejected(self, gateway: StorageGateway, owners: tuple[int, int]) -> None:
        trace_id, field_trace_id = owners
        with pytest.raises(IntegrityError, match="CHECK constraint failed"):
            gateway.insert_errors(
                [{"message": "both", "json": None, "operation_trace_id": trace_id, "field_trace_id": field_trace_id}]
            )

    def test_empty_error_batch(self, gateway: StorageGateway) -> None:
        assert gateway.insert_errors([]) == 0


class TestCountRows:
    def test_counts_every_relation(self, gateway: StorageGateway) -> None:
        op_id = gateway.insert_operation(operation="query Q { a }", name="Q", signature=SIGNATURE)
        _operation_trace(gateway, op_id)
        _operation_trace(gateway, op_id)

        assert gateway.count_rows() == {
            "operations": 1,
            "fields": 0,
            "operations_fields": 0,
            "operation_traces": 2,
            "field_traces": 0,
            "errors": 0,
        }
