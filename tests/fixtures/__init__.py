# tests/fixtures/__init__.py
"""Shared pytest fixtures for gqltrace tests.

Available fixtures:
- trace_db: fresh in-memory TraceDB
- gateway: StorageGateway over trace_db
- trace_store: TraceStore over trace_db
- file_trace_store: TraceStore over a file-backed SQLite database
"""
