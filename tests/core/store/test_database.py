# tests/core/store/test_database.py
"""Tests for TraceDB connection management."""

from pathlib import Path

import pytest
from sqlalchemy import Column, Integer, MetaData, Table, create_engine, inspect, text

from gqltrace.core.store.database import SchemaCompatibilityError, TraceDB
from gqltrace.core.store.schema import metadata


class TestTraceDBCreation:
    def test_in_memory_creates_all_tables(self) -> None:
        with TraceDB.in_memory() as db:
            tables = set(inspect(db.engine).get_table_names())
        assert tables == set(metadata.tables.keys())

    def test_table_names(self) -> None:
        assert set(metadata.tables.keys()) == {
            "operations",
            "fields",
            "operations_fields",
            "operation_traces",
            "field_traces",
            "errors",
        }

    def test_file_database_created_with_tables(self, tmp_path: Path) -> None:
        path = tmp_path / "traces.db"
        with TraceDB.from_url(f"sqlite:///{path}") as db:
            assert db.dialect_name == "sqlite"
            tables = set(inspect(db.engine).get_table_names())
        assert path.exists()
        assert tables == set(metadata.tables.keys())

    def test_reopening_existing_database(self, tmp_path: Path) -> None:
        url = f"sqlite:///{tmp_path / 'traces.db'}"
        TraceDB.from_url(url).close()
        with TraceDB.from_url(url, create_tables=False) as db:
            assert "operations" in inspect(db.engine).get_table_names()

    def test_sqlite_pragmas_applied(self, tmp_path: Path) -> None:
        with TraceDB.from_url(f"sqlite:///{tmp_path / 'traces.db'}") as db, db.connection() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 5000


class TestSchemaValidation:
    def test_partial_schema_rejected(self, tmp_path: Path) -> None:
        url = f"sqlite:///{tmp_path / 'partial.db'}"
        engine = create_engine(url)
        partial = MetaData()
        Table("operations", partial, Column("id", Integer, primary_key=True))
        partial.create_all(engine)
        engine.dispose()

        with pytest.raises(SchemaCompatibilityError, match="Missing tables"):
            TraceDB.from_url(url)

    def test_unrelated_tables_ignored(self, tmp_path: Path) -> None:
        url = f"sqlite:///{tmp_path / 'shared.db'}"
        engine = create_engine(url)
        other = MetaData()
        Table("something_else", other, Column("id", Integer, primary_key=True))
        other.create_all(engine)
        engine.dispose()

        with TraceDB.from_url(url) as db:
            assert "errors" in inspect(db.engine).get_table_names()


class TestLifecycle:
    def test_close_is_idempotent(self) -> None:
        db = TraceDB.in_memory()
        db.close()
        db.close()

    def test_engine_after_close_raises(self) -> None:
        db = TraceDB.in_memory()
        db.close()
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = db.engine

    def test_connection_rolls_back_on_error(self, trace_db: TraceDB) -> None:
        with pytest.raises(RuntimeError), trace_db.connection() as conn:
            conn.execute(text("INSERT INTO fields (type, name) VALUES ('Query', 'user')"))
            raise RuntimeError("boom")

        with trace_db.connection() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM fields")).scalar() == 0
