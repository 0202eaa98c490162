"""Conversion of external reasoning maps into the simulation's runtime form."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import networkx as nx
import numpy as np

from .models import Link, LinkStrength, Node, NodeType, ReasoningMap

LOGGER = logging.getLogger(__name__)


@dataclass
class PositionBuffer:
    """
    Positions and velocities for every runtime node, indexed by node index.

    Writer contract:
        - ``x``, ``y``, ``vx``, ``vy`` are written only by the Simulation.
        - ``fx``, ``fy`` are written only through ``pin``/``unpin`` (drag).
        - Renderers only read.

    An absent pin is stored as NaN.
    """

    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    fx: np.ndarray
    fy: np.ndarray

    @classmethod
    def allocate(cls, size: int) -> "PositionBuffer":
        return cls(
            x=np.full(size, np.nan),
            y=np.full(size, np.nan),
            vx=np.zeros(size),
            vy=np.zeros(size),
            fx=np.full(size, np.nan),
            fy=np.full(size, np.nan),
        )

    def __len__(self) -> int:
        return len(self.x)

    def position(self, index: int) -> Tuple[float, float]:
        return float(self.x[index]), float(self.y[index])

    def pin(self, index: int, x: Optional[float], y: Optional[float]) -> None:
        self.fx[index] = np.nan if x is None else x
        self.fy[index] = np.nan if y is None else y

    def unpin(self, index: int) -> None:
        self.fx[index] = np.nan
        self.fy[index] = np.nan

    def pinned(self, index: int) -> Tuple[Optional[float], Optional[float]]:
        fx, fy = self.fx[index], self.fy[index]
        return (
            None if np.isnan(fx) else float(fx),
            None if np.isnan(fy) else float(fy),
        )

    def is_pinned(self, index: int) -> bool:
        return not (np.isnan(self.fx[index]) and np.isnan(self.fy[index]))


@dataclass(frozen=True)
class SimNode:
    """Runtime copy of a Node; its live position lives in the PositionBuffer."""

    index: int
    id: str
    text: str
    type: NodeType


@dataclass(frozen=True)
class SimLink:
    """Runtime copy of a Link with endpoints resolved to node indices."""

    index: int
    source_id: str
    target_id: str
    strength: LinkStrength
    source: int
    target: int


@dataclass
class RuntimeGraph:
    nodes: List[SimNode]
    links: List[SimLink]
    positions: PositionBuffer
    skipped_links: List[Link] = field(default_factory=list)
    index_by_id: Dict[str, int] = field(default_factory=dict)
    graph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> Optional[SimNode]:
        index = self.index_by_id.get(node_id)
        return None if index is None else self.nodes[index]

    def node_position(self, node_id: str) -> Optional[Tuple[float, float]]:
        index = self.index_by_id.get(node_id)
        return None if index is None else self.positions.position(index)

    def pinned_position(self, node_id: str) -> Optional[Tuple[float, float]]:
        """Return ``(fx, fy)`` when the node is pinned, otherwise None."""
        index = self.index_by_id.get(node_id)
        if index is None or not self.positions.is_pinned(index):
            return None
        return self.positions.pinned(index)

    def degrees(self) -> np.ndarray:
        """Endpoint counts per node; a self-loop counts twice."""
        counts = np.zeros(len(self.nodes))
        for index, degree in self.graph.degree():
            counts[index] = degree
        return counts


def build_runtime_graph(reasoning_map: ReasoningMap) -> RuntimeGraph:
    """
    Copy a ReasoningMap into a fresh RuntimeGraph.

    Every input node becomes a SimNode, even when IDs repeat; lookups by ID
    resolve to the last node carrying it. Links whose endpoints do not resolve
    are skipped and recorded on ``skipped_links``.

    Args:
        reasoning_map: External, immutable map.

    Returns:
        RuntimeGraph whose buffer is the only place positions are written.
    """
    nodes = [
        SimNode(index=i, id=node.id, text=node.text, type=node.type)
        for i, node in enumerate(reasoning_map.nodes)
    ]
    index_by_id = {node.id: node.index for node in nodes}
    if len(index_by_id) != len(nodes):
        LOGGER.warning(
            "Reasoning map has %d duplicate node id(s)", len(nodes) - len(index_by_id)
        )

    G = nx.MultiDiGraph()
    G.add_nodes_from(range(len(nodes)))

    links: List[SimLink] = []
    skipped: List[Link] = []
    for link in reasoning_map.links:
        source = index_by_id.get(link.source_id)
        target = index_by_id.get(link.target_id)
        if source is None or target is None:
            LOGGER.debug(
                "Skipping link %s -> %s: unresolved endpoint",
                link.source_id,
                link.target_id,
            )
            skipped.append(link)
            continue
        sim_link = SimLink(
            index=len(links),
            source_id=link.source_id,
            target_id=link.target_id,
            strength=link.strength,
            source=source,
            target=target,
        )
        links.append(sim_link)
        G.add_edge(source, target, key=sim_link.index, strength=link.strength)

    return RuntimeGraph(
        nodes=nodes,
        links=links,
        positions=PositionBuffer.allocate(len(nodes)),
        skipped_links=skipped,
        index_by_id=index_by_id,
        graph=G,
    )
