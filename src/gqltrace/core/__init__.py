"""Core infrastructure: configuration, canonical JSON, signatures, logging.

Subpackages:
    gqltrace.core.store - Relational storage gateway
    gqltrace.core.ingest - Trace-to-schema mapping pipeline
"""

from gqltrace.core.canonical import CANONICAL_VERSION, canonical_json, stable_hash
from gqltrace.core.config import (
    ConcurrencySettings,
    GqlTraceSettings,
    LoggingSettings,
    StoreSettings,
    load_settings,
)
from gqltrace.core.signature import normalize_document, operation_signature

__all__ = [
    "CANONICAL_VERSION",
    "ConcurrencySettings",
    "GqlTraceSettings",
    "LoggingSettings",
    "StoreSettings",
    "canonical_json",
    "load_settings",
    "normalize_document",
    "operation_signature",
    "stable_hash",
]
