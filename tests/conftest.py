"""Shared fixtures for reasoning map tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Tuple

import pytest

from reasonsketch.models import (
    AnalysisResponse,
    Link,
    LinkStrength,
    Node,
    NodeType,
    ReasoningMap,
    parse_analysis,
)

SAMPLE_PATH = Path(__file__).resolve().parents[1] / "reasonsketch" / "data" / "sample_analysis.json"


def make_map(
    node_ids: Iterable[str],
    links: Iterable[Tuple[str, str, LinkStrength]] = (),
    node_type: NodeType = NodeType.EMPIRICAL,
) -> ReasoningMap:
    return ReasoningMap(
        nodes=tuple(Node(id=node_id, text=f"claim {node_id}", type=node_type) for node_id in node_ids),
        links=tuple(Link(source_id=s, target_id=t, strength=strength) for s, t, strength in links),
    )


@pytest.fixture
def sample_payload() -> Dict:
    return json.loads(SAMPLE_PATH.read_text(encoding="utf-8"))


@pytest.fixture
def sample_analysis(sample_payload: Dict) -> AnalysisResponse:
    return parse_analysis(sample_payload)


@pytest.fixture
def chain_map() -> ReasoningMap:
    return make_map(
        ["a", "b", "c"],
        [("a", "b", LinkStrength.SUPPORTED), ("b", "c", LinkStrength.WEAK)],
    )
