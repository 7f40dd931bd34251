# src/gqltrace/core/store/schema.py
"""SQLAlchemy table definitions for the trace store.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.

Uniqueness of operation signatures and (type, name) field pairs is
enforced here. The resolvers rely on these constraints to settle
concurrent get-or-create races.
"""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
)

# Shared metadata for all tables
metadata = MetaData()

# === Identities ===

operations_table = Table(
    "operations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("operation", Text, nullable=False),
    Column("name", String(256), nullable=False),
    Column("signature", String(64), nullable=False),
    UniqueConstraint("signature", name="uq_operations_signature"),
)

fields_table = Table(
    "fields",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(256), nullable=False),
    Column("name", String(256), nullable=False),
    UniqueConstraint("type", "name", name="uq_fields_type_name"),
)

operations_fields_table = Table(
    "operations_fields",
    metadata,
    Column("field_id", Integer, ForeignKey("fields.id"), nullable=False),
    Column("operation_id", Integer, ForeignKey("operations.id"), nullable=False),
    PrimaryKeyConstraint("field_id", "operation_id"),
)

# === Executions ===

operation_traces_table = Table(
    "operation_traces",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("operation_id", Integer, ForeignKey("operations.id"), nullable=False, index=True),
    Column("start_time", DateTime(timezone=True)),
    # Durations in the units the tracer reports (nanoseconds for Apollo-style tracing)
    Column("duration", BigInteger),
    Column("parsing", BigInteger),
    Column("validation", BigInteger),
    Column("execution", BigInteger),
)

field_traces_table = Table(
    "field_traces",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("operation_trace_id", Integer, ForeignKey("operation_traces.id"), nullable=False, index=True),
    Column("field_id", Integer, ForeignKey("fields.id"), nullable=False),
    # Dotted position in the response tree, e.g. "user.address.city"
    Column("path", Text, nullable=False),
    Column("start_time", BigInteger),
    Column("end_time", BigInteger),
)

Index("ix_field_traces_field_id", field_traces_table.c.field_id)

# === Errors ===

errors_table = Table(
    "errors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("message", Text, nullable=False),
    Column("json", Text),
    Column("operation_trace_id", Integer, ForeignKey("operation_traces.id"), index=True),
    Column("field_trace_id", Integer, ForeignKey("field_traces.id"), index=True),
    # Exactly one owner: the operation trace (top-level error) or one field trace
    CheckConstraint(
        "(operation_trace_id IS NULL) <> (field_trace_id IS NULL)",
        name="ck_errors_single_owner",
    ),
)
