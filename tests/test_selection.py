"""Tests for tooltip state and the selection stream."""

from __future__ import annotations

from reasonsketch.adapter import SimNode
from reasonsketch.models import NodeType
from reasonsketch.selection import SelectionCoordinator, TooltipCoordinator


def _node(text: str = "a" * 30) -> SimNode:
    return SimNode(index=0, id="n1", text=text, type=NodeType.CAUSAL)


def test_tooltip_tracks_pointer_with_offset() -> None:
    tooltip = TooltipCoordinator(offset=15.0)

    state = tooltip.enter(_node(), 100.0, 50.0)
    assert state.visible
    assert state.content == "a" * 30
    assert state.type == "causal"
    assert state.anchor == (115.0, 65.0)

    moved = tooltip.move(120.0, 80.0)
    assert moved.anchor == (135.0, 95.0)
    assert moved.content == state.content


def test_tooltip_is_dismissed_on_leave() -> None:
    tooltip = TooltipCoordinator()
    tooltip.enter(_node(), 0, 0)

    tooltip.leave()

    assert tooltip.state is None
    assert tooltip.move(1, 1) is None


def test_selection_emits_to_each_subscriber() -> None:
    selection = SelectionCoordinator()
    first, second = [], []
    selection.subscribe(first.append)
    unsubscribe = selection.subscribe(second.append)

    selection.select("n1")
    unsubscribe()
    selection.select("n2")

    assert first == ["n1", "n2"]
    assert second == ["n1"]
    assert selection.selected_id == "n2"
