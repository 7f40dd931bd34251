"""
gqltrace: normalized storage for GraphQL execution traces.

Ingests per-request execution traces and persists them into a relational
schema shaped for per-field latency and per-operation error aggregation.
"""

__version__ = "0.1.0"
