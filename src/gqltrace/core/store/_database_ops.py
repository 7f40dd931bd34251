"""Database operation helpers to reduce boilerplate in the gateway.

Consolidates the repeated `with self._db.connection() as conn:` pattern.
Each call runs in its own transaction and commits on return.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import Executable, Insert
from sqlalchemy.engine import Row

if TYPE_CHECKING:
    from gqltrace.core.store.database import TraceDB


class DatabaseOps:
    """Helper for common database operations."""

    def __init__(self, db: "TraceDB") -> None:
        self._db = db

    def execute_fetchone(self, query: Executable) -> Row[Any] | None:
        """Execute query and return single row or None."""
        with self._db.connection() as conn:
            result = conn.execute(query)
            return result.fetchone()

    def execute_fetchall(self, query: Executable) -> list[Row[Any]]:
        """Execute query and return all rows."""
        with self._db.connection() as conn:
            result = conn.execute(query)
            return list(result.fetchall())

    def execute_scalar(self, query: Executable) -> Any:
        """Execute query and return the first column of the first row, or None."""
        with self._db.connection() as conn:
            return conn.execute(query).scalar()

    def execute_insert(self, stmt: Executable, params: Sequence[Mapping[str, Any]] | None = None) -> None:
        """Execute insert statement (optionally executemany).

        Raises:
            ValueError: If zero rows are affected
        """
        with self._db.connection() as conn:
            result = conn.execute(stmt, params) if params is not None else conn.execute(stmt)
            if result.rowcount == 0:
                raise ValueError("execute_insert: zero rows affected - write failed (missing parent row or constraint violation)")

    def execute_insert_returning_id(self, stmt: Insert) -> int:
        """Insert one row and return its generated primary key."""
        with self._db.connection() as conn:
            result = conn.execute(stmt)
            primary_key = result.inserted_primary_key
            if primary_key is None or primary_key[0] is None:
                raise ValueError("execute_insert_returning_id: insert produced no primary key")
            return int(primary_key[0])

    def execute_insert_many_returning(self, stmt: Insert, params: Sequence[Mapping[str, Any]]) -> list[int]:
        """Insert many rows and return their generated ids in parameter order.

        The statement must carry RETURNING of the id column with
        sort_by_parameter_order=True; returned ids then line up with params
        by position.

        Raises:
            ValueError: If the number of returned ids differs from len(params)
        """
        if not params:
            return []
        with self._db.connection() as conn:
            ids = [int(value) for value in conn.execute(stmt, list(params)).scalars().all()]
        if len(ids) != len(params):
            raise ValueError(f"execute_insert_many_returning: inserted {len(params)} rows but got {len(ids)} ids back")
        return ids
