# tests/property/test_normalizer_properties.py
"""Property-based tests for trace normalization.

The normalizer feeds the positional zip between field nodes and the field
trace ids the store returns. These properties pin down what that zip
relies on: one node per field execution, in pre-order, with identity
keys covering every node exactly once.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from gqltrace.contracts.report import TraceError, TraceNode
from gqltrace.core.ingest.normalizer import normalize_trace

_names = st.sampled_from(["id", "name", "user", "posts", "author", "title"])
_types = st.sampled_from(["Query", "User", "Post"])
_errors = st.lists(st.builds(TraceError, message=st.text(min_size=1, max_size=8)), max_size=2).map(tuple)


def _field_nodes(children: st.SearchStrategy[tuple[TraceNode, ...]]) -> st.SearchStrategy[TraceNode]:
    return st.builds(
        TraceNode,
        field=_names,
        parent_type=_types,
        start_time=st.integers(min_value=0, max_value=10_000),
        end_time=st.integers(min_value=0, max_value=10_000),
        errors=_errors,
        children=children,
    )


def _item_nodes(children: st.SearchStrategy[tuple[TraceNode, ...]]) -> st.SearchStrategy[TraceNode]:
    return st.builds(TraceNode, index=st.integers(min_value=0, max_value=5), errors=_errors, children=children)


_nodes = st.recursive(
    _field_nodes(st.just(())),
    lambda inner: st.one_of(
        _field_nodes(st.lists(inner, max_size=3).map(tuple)),
        _item_nodes(st.lists(inner, max_size=3).map(tuple)),
    ),
    max_leaves=25,
)
_entries = st.builds(TraceNode, errors=_errors, children=st.lists(_nodes, max_size=4).map(tuple))


def _preorder_fields(node: TraceNode) -> list[TraceNode]:
    found: list[TraceNode] = []
    for child in node.children:
        if child.is_field:
            found.append(child)
        found.extend(_preorder_fields(child))
    return found


def _all_errors(node: TraceNode) -> int:
    return len(node.errors) + sum(_all_errors(child) for child in node.children)


class TestNormalizerProperties:
    @given(entry=_entries)
    def test_one_node_per_field_execution_in_pre_order(self, entry: TraceNode) -> None:
        expected = _preorder_fields(entry)
        nodes = normalize_trace(entry).nodes

        assert len(nodes) == len(expected)
        assert [(n.parent_type, n.field, n.start_time, n.end_time) for n in nodes] == [
            (e.parent_type, e.field, e.start_time, e.end_time) for e in expected
        ]

    @given(entry=_entries)
    def test_keys_unique_and_cover_every_node(self, entry: TraceNode) -> None:
        normalized = normalize_trace(entry)

        assert len(set(normalized.field_keys)) == len(normalized.field_keys)
        assert {n.key for n in normalized.nodes} == set(normalized.field_keys)

    @given(entry=_entries)
    def test_no_error_lost_or_duplicated(self, entry: TraceNode) -> None:
        normalized = normalize_trace(entry)

        kept = len(normalized.operation_errors) + sum(len(n.errors) for n in normalized.nodes)
        assert kept == _all_errors(entry)

    @given(entry=_entries)
    def test_path_ends_with_field_name(self, entry: TraceNode) -> None:
        for node in normalize_trace(entry).nodes:
            assert node.path[-1] == node.field
            assert node.dotted_path == ".".join(node.path)
