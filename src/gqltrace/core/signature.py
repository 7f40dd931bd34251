# src/gqltrace/core/signature.py
"""Operation signatures.

A signature identifies a logical operation independently of incidental
formatting in the query text. Two queries get the same signature when
they select the same fields with the same shape, even if they differ in:

- whitespace, comments and field/argument ordering
- aliases
- inline literal values (numbers, strings, lists, objects)
- unrelated operations or unused fragments in the same document

The normalized document is the printed form of the selected operation and
the fragments it uses, with literals hidden, aliases removed and every
sortable list sorted. The signature is the stable hash of that text
together with the operation name.
"""

from __future__ import annotations

import re
from typing import Any

from graphql import GraphQLError, parse, print_ast
from graphql.language import (
    DocumentNode,
    FieldNode,
    FloatValueNode,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    Node,
    ObjectValueNode,
    StringValueNode,
    VariableDefinitionNode,
    Visitor,
    visit,
)
from graphql.utilities import separate_operations

from gqltrace.contracts.errors import MalformedTraceError
from gqltrace.core.canonical import stable_hash

_SPACE_AFTER_PUNCT = re.compile(r"([^_a-zA-Z0-9]) ")
_SPACE_BEFORE_PUNCT = re.compile(r" ([^_a-zA-Z0-9])")
_WHITESPACE = re.compile(r"\s+")


def _sort_key(node: Any) -> tuple[str, str]:
    """Order nodes by kind, then by the name that identifies them."""
    name = getattr(node, "name", None)
    if name is None:
        if isinstance(node, VariableDefinitionNode):
            name = node.variable.name
        elif isinstance(node, InlineFragmentNode) and node.type_condition is not None:
            name = node.type_condition.name
    return (node.kind, name.value if name is not None else "")


def _sorted(nodes: Any) -> tuple[Any, ...]:
    return tuple(sorted(nodes or (), key=_sort_key))


def _replace(node: Node, **changes: Any) -> Node:
    """Build a changed copy of node. AST nodes may be immutable."""
    kept = {key: getattr(node, key) for key in node.keys if key not in changes}
    return type(node)(**kept, **changes)


class _SignatureNormalizer(Visitor):
    """Hide literals, drop aliases and sort every order-insensitive list."""

    def leave_int_value(self, node: IntValueNode, *_: Any) -> IntValueNode:
        return IntValueNode(value="0")

    def leave_float_value(self, node: FloatValueNode, *_: Any) -> FloatValueNode:
        return FloatValueNode(value="0")

    def leave_string_value(self, node: StringValueNode, *_: Any) -> StringValueNode:
        return StringValueNode(value="", block=False)

    def leave_list_value(self, node: ListValueNode, *_: Any) -> ListValueNode:
        return ListValueNode(values=())

    def leave_object_value(self, node: ObjectValueNode, *_: Any) -> ObjectValueNode:
        return ObjectValueNode(fields=())

    def leave_field(self, node: FieldNode, *_: Any) -> Node:
        return _replace(
            node,
            alias=None,
            arguments=_sorted(node.arguments),
            directives=_sorted(node.directives),
        )

    def leave_directive(self, node: Node, *_: Any) -> Node:
        return _replace(node, arguments=_sorted(node.arguments))  # type: ignore[attr-defined]

    def leave_selection_set(self, node: Node, *_: Any) -> Node:
        return _replace(node, selections=_sorted(node.selections))  # type: ignore[attr-defined]

    def leave_operation_definition(self, node: Node, *_: Any) -> Node:
        return _replace(
            node,
            variable_definitions=_sorted(node.variable_definitions),  # type: ignore[attr-defined]
            directives=_sorted(node.directives),  # type: ignore[attr-defined]
        )

    def leave_document(self, node: DocumentNode, *_: Any) -> DocumentNode:
        return DocumentNode(definitions=_sorted(node.definitions))


def _print_with_reduced_whitespace(document: DocumentNode) -> str:
    printed = _WHITESPACE.sub(" ", print_ast(document)).strip()
    printed = _SPACE_AFTER_PUNCT.sub(r"\1", printed)
    return _SPACE_BEFORE_PUNCT.sub(r"\1", printed)


def normalize_document(query: str | None, operation_name: str | None) -> str:
    """Return the normalized text of one operation in a query document.

    Args:
        query: Raw GraphQL document text
        operation_name: Name of the operation to keep. Empty string selects
            the document's anonymous operation.

    Raises:
        MalformedTraceError: If query or operation name is missing, the
            document does not parse, or the operation is not in it
    """
    if query is None:
        raise MalformedTraceError("Trace has no query text")
    if operation_name is None:
        raise MalformedTraceError("Trace has no operation name")

    try:
        document = parse(query, no_location=True)
    except GraphQLError as e:
        raise MalformedTraceError(f"Query does not parse: {e.message}") from e

    operations = separate_operations(document)
    if operation_name not in operations:
        known = ", ".join(repr(name) for name in sorted(operations)) or "none"
        raise MalformedTraceError(f"Operation {operation_name!r} not found in query (operations: {known})")

    normalized = visit(operations[operation_name], _SignatureNormalizer())
    return _print_with_reduced_whitespace(normalized)


def operation_signature(query: str | None, operation_name: str | None) -> str:
    """Compute the signature of an operation.

    Same signature means same logical operation. The value is a 64-char
    SHA-256 hex digest, suitable for a unique index.

    Raises:
        MalformedTraceError: See normalize_document()
    """
    document = normalize_document(query, operation_name)
    return stable_hash({"operation_name": operation_name, "document": document})
