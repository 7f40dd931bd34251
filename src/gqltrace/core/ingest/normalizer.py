# src/gqltrace/core/ingest/normalizer.py
"""Trace normalization: flatten a nested execution trace.

Produces, in one pre-order traversal (children in source order):

- ``nodes``: one FieldNode per field execution, carrying its dotted path,
  owning type, field name, timing window and the errors attached to it.
- ``field_keys``: the de-duplicated (parent_type, field) pairs in first-seen
  order, used for field identity resolution.
- ``operation_errors``: errors owned by the operation as a whole.

The order of ``nodes`` is a contract. The trace writer inserts one field
trace per node in this order and zips the returned ids back against
``nodes`` by position to attach errors. Any reordering between here and
that zip attributes errors to the wrong field trace.
"""

from __future__ import annotations

from dataclasses import dataclass

from gqltrace.contracts.errors import MalformedTraceError
from gqltrace.contracts.report import TraceError, TraceNode

FieldKey = tuple[str, str]


@dataclass(frozen=True)
class FieldNode:
    """One field execution, flattened out of the trace tree."""

    parent_type: str
    field: str
    path: tuple[str, ...]
    start_time: int | None
    end_time: int | None
    errors: tuple[TraceError, ...]

    @property
    def key(self) -> FieldKey:
        return (self.parent_type, self.field)

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class NormalizedTrace:
    """Flattened form of one trace tree."""

    nodes: tuple[FieldNode, ...]
    field_keys: tuple[FieldKey, ...]
    operation_errors: tuple[TraceError, ...]

    def nodes_by_key(self) -> dict[FieldKey, list[FieldNode]]:
        """Group occurrences by field identity, keys in first-seen order."""
        grouped: dict[FieldKey, list[FieldNode]] = {key: [] for key in self.field_keys}
        for node in self.nodes:
            grouped[node.key].append(node)
        return grouped


@dataclass
class _Frame:
    """Mutable accumulator for one field node during traversal."""

    parent_type: str
    field: str
    path: tuple[str, ...]
    start_time: int | None
    end_time: int | None
    errors: list[TraceError]

    def freeze(self) -> FieldNode:
        return FieldNode(
            parent_type=self.parent_type,
            field=self.field,
            path=self.path,
            start_time=self.start_time,
            end_time=self.end_time,
            errors=tuple(self.errors),
        )


def normalize_trace(entry: TraceNode) -> NormalizedTrace:
    """Flatten a trace tree rooted at ``entry``.

    The root contributes no field node and no path segment; its errors
    are operation-level. A node without a field (a list item) contributes
    no field node; its index becomes a path segment for its descendants
    and its errors go to the nearest enclosing field node, or to the
    operation when there is none.

    Raises:
        MalformedTraceError: If a node carries a field without a parent
            type, or a parent type without a field
    """
    frames: list[_Frame] = []
    field_keys: dict[FieldKey, None] = {}
    operation_errors: list[TraceError] = list(entry.errors)

    # (node, parent path, enclosing frame); popped LIFO, children pushed reversed
    stack: list[tuple[TraceNode, tuple[str, ...], _Frame | None]] = [
        (child, (), None) for child in reversed(entry.children)
    ]
    while stack:
        node, path, enclosing = stack.pop()

        if (node.field is None) != (node.parent_type is None):
            raise MalformedTraceError(
                f"Trace node at '{'.'.join(path) or '<root>'}' has field={node.field!r} "
                f"but parent_type={node.parent_type!r}; both or neither are required"
            )

        if node.is_field:
            assert node.field is not None and node.parent_type is not None
            frame = _Frame(
                parent_type=node.parent_type,
                field=node.field,
                path=(*path, node.field),
                start_time=node.start_time,
                end_time=node.end_time,
                errors=list(node.errors),
            )
            frames.append(frame)
            field_keys.setdefault((node.parent_type, node.field), None)
            child_path, child_enclosing = frame.path, frame
        else:
            if enclosing is not None:
                enclosing.errors.extend(node.errors)
            else:
                operation_errors.extend(node.errors)
            child_path = (*path, str(node.index)) if node.index is not None else path
            child_enclosing = enclosing

        for child in reversed(node.children):
            stack.append((child, child_path, child_enclosing))

    return NormalizedTrace(
        nodes=tuple(frame.freeze() for frame in frames),
        field_keys=tuple(field_keys),
        operation_errors=tuple(operation_errors),
    )
