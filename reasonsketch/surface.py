"""
Render/interaction surface for a reasoning map.

The surface owns the drawn primitives (link lines, arrow markers, node disks,
labels) and keeps them in step with the simulation. A full redraw happens only
when the map reference or the viewport size changes; each tick afterwards
moves the existing primitives without recreating them.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .adapter import PositionBuffer, RuntimeGraph, SimNode, build_runtime_graph
from .config import ForceConfig, RenderConfig
from .constants import NODE_STROKE_COLOR, link_color, link_dash, node_color
from .models import LinkStrength, ReasoningMap
from .selection import SelectionCoordinator, TooltipCoordinator, TooltipState
from .simulation import FrameLoop
from .viewport import Viewport

LOGGER = logging.getLogger(__name__)


def truncate_label(text: str, max_chars: int = 20, keep_chars: int = 17) -> str:
    """Shorten long labels: more than ``max_chars`` keeps ``keep_chars`` plus '...'."""
    if len(text) > max_chars:
        return text[:keep_chars] + "..."
    return text


@dataclass(frozen=True)
class ArrowMarker:
    id: str
    strength: LinkStrength
    color: str
    tip_offset: float
    length: float
    half_width: float


@dataclass
class LinkLine:
    link_index: int
    source: int
    target: int
    strength: LinkStrength
    color: str
    dash: Optional[str]
    marker_id: str
    width: float
    opacity: float
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    @property
    def dashed(self) -> bool:
        return self.dash is not None


@dataclass
class NodeDisk:
    node_index: int
    node_id: str
    fill: str
    radius: float
    stroke: str
    stroke_width: float
    cx: float = 0.0
    cy: float = 0.0

    def contains(self, x: float, y: float) -> bool:
        return math.hypot(x - self.cx, y - self.cy) <= self.radius


@dataclass
class NodeLabel:
    node_index: int
    text: str
    dx: float
    dy: float
    x: float = 0.0
    y: float = 0.0


@dataclass
class Scene:
    """Everything currently drawn. ``revision`` counts full redraws."""

    revision: int = 0
    width: float = 0.0
    height: float = 0.0
    lines: List[LinkLine] = field(default_factory=list)
    disks: List[NodeDisk] = field(default_factory=list)
    labels: List[NodeLabel] = field(default_factory=list)
    markers: Dict[LinkStrength, ArrowMarker] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.disks


class InteractionSurface:
    """
    Draws a ReasoningMap and routes pointer input to drag, zoom, hover and
    selection.

    Two input vocabularies are offered:
        - screen coordinates (``pointer_down``/``pointer_move``/``pointer_up``,
          ``click``, ``wheel``), hit-tested through the viewport;
        - node IDs in simulation coordinates (``drag_start``/``drag_to``/
          ``drag_end``, ``click_node``, ``hover_node``) for hosts that already
          know which node is under the pointer.
    """

    def __init__(
        self,
        render_config: Optional[RenderConfig] = None,
        force_config: Optional[ForceConfig] = None,
    ):
        self.config = render_config or RenderConfig()
        self.force_config = force_config or ForceConfig()
        self.loop = FrameLoop(self.force_config)
        self.viewport = Viewport(
            min_scale=self.config.min_scale, max_scale=self.config.max_scale
        )
        self.tooltip = TooltipCoordinator(offset=self.config.tooltip_offset)
        self.selection = SelectionCoordinator()
        self.scene = Scene()
        self.graph: Optional[RuntimeGraph] = None
        self._source: Optional[ReasoningMap] = None
        self._size: Optional[Tuple[float, float]] = None
        self._drag_index: Optional[int] = None
        self._grab_offset: Tuple[float, float] = (0.0, 0.0)
        self._closed = False
        self.loop.on_tick(self._on_tick)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, reasoning_map: ReasoningMap, width: float, height: float) -> bool:
        """
        Draw ``reasoning_map`` at the given size.

        Returns:
            True when a full redraw happened, False when the map reference and
            size are unchanged and the existing primitives were kept.
        """
        if self._closed:
            raise RuntimeError("surface has been torn down")
        if reasoning_map is self._source and (width, height) == self._size:
            return False

        self.loop.stop()
        self._drag_index = None
        self.tooltip.leave()
        self.viewport.resize(width, height)
        self._source = reasoning_map
        self._size = (width, height)
        self.scene = Scene(revision=self.scene.revision + 1, width=width, height=height)
        self.graph = build_runtime_graph(reasoning_map)

        if not self.graph.nodes:
            LOGGER.debug("Empty reasoning map; nothing to draw")
            return True

        self.loop.start(self.graph, center=(width / 2, height / 2))
        self._build_primitives(self.graph)
        self._sync_primitives(self.graph.positions)
        LOGGER.debug(
            "Redraw %d: %d disks, %d lines, %d skipped links",
            self.scene.revision,
            len(self.scene.disks),
            len(self.scene.lines),
            len(self.graph.skipped_links),
        )
        return True

    def _build_primitives(self, graph: RuntimeGraph) -> None:
        cfg = self.config
        for strength in LinkStrength:
            self.scene.markers[strength] = ArrowMarker(
                id=f"arrow-{strength.value}",
                strength=strength,
                color=link_color(strength),
                tip_offset=cfg.arrow_tip_offset,
                length=cfg.arrow_length,
                half_width=cfg.arrow_half_width,
            )

        for link in graph.links:
            self.scene.lines.append(
                LinkLine(
                    link_index=link.index,
                    source=link.source,
                    target=link.target,
                    strength=link.strength,
                    color=link_color(link.strength),
                    dash=link_dash(link.strength),
                    marker_id=f"arrow-{link.strength.value}",
                    width=cfg.link_width,
                    opacity=cfg.link_opacity,
                )
            )

        for node in graph.nodes:
            self.scene.disks.append(
                NodeDisk(
                    node_index=node.index,
                    node_id=node.id,
                    fill=node_color(node.type),
                    radius=cfg.node_radius,
                    stroke=NODE_STROKE_COLOR,
                    stroke_width=cfg.node_stroke_width,
                )
            )
            self.scene.labels.append(
                NodeLabel(
                    node_index=node.index,
                    text=truncate_label(node.text, cfg.label_max_chars, cfg.label_keep_chars),
                    dx=cfg.label_dx,
                    dy=cfg.label_dy,
                )
            )

    def _sync_primitives(self, positions: PositionBuffer) -> None:
        for line in self.scene.lines:
            line.x1, line.y1 = positions.position(line.source)
            line.x2, line.y2 = positions.position(line.target)
        for disk in self.scene.disks:
            disk.cx, disk.cy = positions.position(disk.node_index)
        for label in self.scene.labels:
            x, y = positions.position(label.node_index)
            label.x, label.y = x + label.dx, y + label.dy

    def _on_tick(self, positions: PositionBuffer) -> None:
        self._sync_primitives(positions)

    def frame(self) -> bool:
        """Advance the layout by one host frame."""
        return self.loop.frame()

    def settle(self, max_frames: int = 1000) -> int:
        return self.loop.run(max_frames)

    @property
    def running(self) -> bool:
        return self.loop.running

    def teardown(self) -> None:
        """Stop the simulation and drop all listeners."""
        self.loop.dispose()
        self.selection.close()
        self.tooltip.leave()
        self._drag_index = None
        self._closed = True

    # ------------------------------------------------------------------
    # Node-ID interaction (simulation coordinates)
    # ------------------------------------------------------------------

    def _index_of(self, node_id: str) -> Optional[int]:
        if self.graph is None:
            return None
        return self.graph.index_by_id.get(node_id)

    def drag_start(
        self, node_id: str, x: Optional[float] = None, y: Optional[float] = None
    ) -> bool:
        """Pin ``node_id`` where it stands and warm the simulation up."""
        index = self._index_of(node_id)
        if index is None:
            return False
        positions = self.graph.positions
        nx_, ny_ = positions.position(index)
        self._grab_offset = (0.0, 0.0) if x is None or y is None else (nx_ - x, ny_ - y)
        self._drag_index = index
        self.loop.restart(self.force_config.drag_alpha_target)
        positions.pin(index, nx_, ny_)
        return True

    def drag_to(self, x: float, y: float) -> None:
        if self._drag_index is None:
            return
        ox, oy = self._grab_offset
        self.graph.positions.pin(self._drag_index, x + ox, y + oy)

    def drag_end(self) -> Optional[str]:
        """Release the dragged node back into the simulation."""
        if self._drag_index is None:
            return None
        index = self._drag_index
        self._drag_index = None
        self.loop.restart(0.0)
        self.graph.positions.unpin(index)
        return self.graph.nodes[index].id

    @property
    def dragging(self) -> Optional[str]:
        if self._drag_index is None:
            return None
        return self.graph.nodes[self._drag_index].id

    def drop_node(self, node_id: str, x: float, y: float) -> bool:
        """
        Move a node in one gesture, for hosts that only report the release.

        Runs a single frame while pinned so the node lands at ``(x, y)``.
        """
        if not self.drag_start(node_id):
            return False
        self.drag_to(x, y)
        self.loop.frame()
        self.drag_end()
        return True

    def click_node(self, node_id: str) -> bool:
        if self._index_of(node_id) is None:
            return False
        self.selection.select(node_id)
        return True

    def hover_node(self, node_id: str, sx: float, sy: float) -> Optional[TooltipState]:
        index = self._index_of(node_id)
        if index is None:
            self.tooltip.leave()
            return None
        if self.tooltip.node_index == index:
            return self.tooltip.move(sx, sy)
        return self.tooltip.enter(self.graph.nodes[index], sx, sy)

    def unhover(self) -> None:
        self.tooltip.leave()

    # ------------------------------------------------------------------
    # Pointer interaction (screen coordinates)
    # ------------------------------------------------------------------

    def node_at(self, sx: float, sy: float) -> Optional[SimNode]:
        """Topmost node whose disk contains the screen point."""
        if self.graph is None:
            return None
        x, y = self.viewport.to_world(sx, sy)
        for disk in reversed(self.scene.disks):
            if disk.contains(x, y):
                return self.graph.nodes[disk.node_index]
        return None

    def pointer_down(self, sx: float, sy: float) -> Optional[str]:
        """Start a drag on a node, otherwise start panning the viewport."""
        node = self.node_at(sx, sy)
        if node is not None:
            self.drag_start(node.id, *self.viewport.to_world(sx, sy))
            return node.id
        self.viewport.begin_pan(sx, sy)
        return None

    def pointer_move(self, sx: float, sy: float) -> None:
        if self._drag_index is not None:
            self.drag_to(*self.viewport.to_world(sx, sy))
            if self.tooltip.state is not None:
                self.tooltip.move(sx, sy)
            return
        if self.viewport.panning:
            self.viewport.pan_to(sx, sy)
            return
        node = self.node_at(sx, sy)
        if node is None:
            self.tooltip.leave()
        else:
            self.hover_node(node.id, sx, sy)

    def pointer_up(self, sx: float, sy: float) -> None:
        if self._drag_index is not None:
            self.drag_end()
        else:
            self.viewport.end_pan()

    def click(self, sx: float, sy: float) -> Optional[str]:
        """Emit a selection when the click lands on a disk; the event stops there."""
        node = self.node_at(sx, sy)
        if node is None:
            return None
        self.click_node(node.id)
        return node.id

    def wheel(self, factor: float, sx: float, sy: float) -> float:
        return self.viewport.scale_by(factor, (sx, sy)).k
