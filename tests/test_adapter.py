"""Tests for the runtime graph adapter and its position buffer."""

from __future__ import annotations

import math

from reasonsketch.adapter import PositionBuffer, build_runtime_graph
from reasonsketch.models import LinkStrength, Node, NodeType, ReasoningMap

from .conftest import make_map


def test_runtime_graph_copies_nodes_in_order(chain_map: ReasoningMap) -> None:
    graph = build_runtime_graph(chain_map)

    assert [node.id for node in graph.nodes] == ["a", "b", "c"]
    assert [node.index for node in graph.nodes] == [0, 1, 2]
    assert all(sim is not src for sim, src in zip(graph.nodes, chain_map.nodes))
    assert len(graph.positions) == 3
    assert all(math.isnan(v) for v in graph.positions.x)


def test_each_call_returns_fresh_buffers(chain_map: ReasoningMap) -> None:
    first = build_runtime_graph(chain_map)
    second = build_runtime_graph(chain_map)

    first.positions.x[0] = 42.0
    assert math.isnan(second.positions.x[0])


def test_links_resolve_to_indices_and_dangling_links_are_skipped() -> None:
    reasoning_map = make_map(
        ["a", "b"],
        [
            ("a", "b", LinkStrength.SUPPORTED),
            ("a", "ghost", LinkStrength.WEAK),
            ("nobody", "b", LinkStrength.CIRCULAR),
        ],
    )

    graph = build_runtime_graph(reasoning_map)

    assert len(graph.links) == 1
    link = graph.links[0]
    assert (link.source, link.target) == (0, 1)
    assert link.strength is LinkStrength.SUPPORTED
    assert [l.target_id for l in graph.skipped_links] == ["ghost", "b"]


def test_duplicate_links_are_kept_and_counted_in_degrees() -> None:
    reasoning_map = make_map(
        ["a", "b", "c"],
        [
            ("a", "b", LinkStrength.SUPPORTED),
            ("a", "b", LinkStrength.SUPPORTED),
            ("c", "c", LinkStrength.CIRCULAR),
        ],
    )

    graph = build_runtime_graph(reasoning_map)

    assert len(graph.links) == 3
    assert list(graph.degrees()) == [2.0, 2.0, 2.0]


def test_duplicate_node_ids_resolve_to_last_node() -> None:
    reasoning_map = ReasoningMap(
        nodes=(
            Node("x", "first", NodeType.CAUSAL),
            Node("x", "second", NodeType.NORMATIVE),
        ),
    )

    graph = build_runtime_graph(reasoning_map)

    assert len(graph.nodes) == 2
    assert graph.node("x").text == "second"


def test_pin_round_trip() -> None:
    buffer = PositionBuffer.allocate(2)

    assert not buffer.is_pinned(0)
    buffer.pin(0, 3.0, 4.0)
    assert buffer.is_pinned(0)
    assert buffer.pinned(0) == (3.0, 4.0)
    buffer.pin(1, None, 7.0)
    assert buffer.pinned(1) == (None, 7.0)
    buffer.unpin(0)
    assert buffer.pinned(0) == (None, None)
    assert not buffer.is_pinned(0)
