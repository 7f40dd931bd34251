"""Inbound trace report contracts.

A report is a batch of independently ingested traces. Each trace carries
the raw query text, the operation name, request timings, and a recursive
tree of per-field executions rooted at ``entry``.

The ``from_dict`` constructors accept the camelCase keys of the wire format
(``operationName``, ``parentType``, ``startTime``...) as well as snake_case.
They do not validate query or operation name: a trace missing either one
fails later, when its signature is computed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first key present in data, or None."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def coerce_timestamp(value: datetime | str | int | float | None) -> datetime | None:
    """Normalize a request start time to an aware UTC datetime.

    Integers and floats are epoch milliseconds. Naive datetimes are
    assumed to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"start_time must be a datetime, ISO string or epoch ms, got bool: {value!r}")
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    else:
        raise TypeError(f"start_time must be a datetime, ISO string or epoch ms, got {type(value).__name__}")
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


@dataclass(frozen=True)
class TraceError:
    """An error reported against a trace node or the whole operation.

    ``json`` is the serialized error payload. Structured payloads are
    serialized with canonical JSON so identical errors store identically.
    """

    message: str
    json: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraceError:
        payload = data.get("json")
        if payload is not None and not isinstance(payload, str):
            from gqltrace.core.canonical import canonical_json

            payload = canonical_json(payload)
        return cls(message=data["message"], json=payload)


@dataclass(frozen=True)
class TraceNode:
    """One node of a nested execution trace.

    The root entry has neither field nor parent_type. List-item wrapper
    nodes carry an index instead of a field.
    """

    field: str | None = None
    parent_type: str | None = None
    index: int | None = None
    start_time: int | None = None
    end_time: int | None = None
    errors: tuple[TraceError, ...] = ()
    children: tuple[TraceNode, ...] = ()

    @property
    def is_field(self) -> bool:
        return self.field is not None and self.parent_type is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraceNode:
        return cls(
            field=_pick(data, "field", "fieldName"),
            parent_type=_pick(data, "parentType", "parent_type"),
            index=data.get("index"),
            start_time=_pick(data, "startTime", "start_time"),
            end_time=_pick(data, "endTime", "end_time"),
            errors=tuple(TraceError.from_dict(e) for e in data.get("errors") or ()),
            children=tuple(cls.from_dict(c) for c in data.get("children") or ()),
        )


@dataclass(frozen=True)
class Trace:
    """Execution trace of one GraphQL request."""

    query: str | None
    operation_name: str | None
    entry: TraceNode = field(default_factory=TraceNode)
    start_time: datetime | None = None
    duration: int | None = None
    parsing: int | None = None
    validation: int | None = None
    execution: int | None = None

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "start_time", coerce_timestamp(self.start_time))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Trace:
        entry = data.get("entry")
        return cls(
            query=data.get("query"),
            operation_name=_pick(data, "operationName", "operation_name"),
            entry=TraceNode.from_dict(entry) if entry is not None else TraceNode(),
            start_time=_pick(data, "startTime", "start_time"),
            duration=data.get("duration"),
            parsing=data.get("parsing"),
            validation=data.get("validation"),
            execution=data.get("execution"),
        )


@dataclass(frozen=True)
class Report:
    """A batch of independently ingested traces."""

    traces: tuple[Trace, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Report:
        return cls(traces=tuple(Trace.from_dict(t) for t in data.get("traces") or ()))
