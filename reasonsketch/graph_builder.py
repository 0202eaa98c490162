import plotly.graph_objects as go
from typing import Dict, List, Optional, Tuple

from .config import RenderConfig
from .constants import BACKGROUND_COLOR, LABEL_COLOR
from .surface import ArrowMarker, LinkLine, Scene
from .viewport import Viewport

DASH_STYLES = {"5,5": "dash"}  # SVG dash arrays -> Plotly dash names


class GraphBuilder:
    """
    Projects an InteractionSurface scene into a Plotly figure.

    Node disks are circle shapes in data coordinates so they scale with zoom,
    and they come first in ``layout.shapes`` so shape index == node index
    (the Dash host relies on this to map shape drags back to nodes).
    Links are line traces; arrowheads are triangle path shapes. A transparent
    marker trace carries node IDs in ``customdata`` for click/hover events.
    """

    INTERACTIVE_TRACE_NAME = "nodes"

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()

    def _create_edge_traces(self, scene: Scene) -> List[go.Scatter]:
        """Create one line trace per drawn link."""
        edge_traces = []
        for line in scene.lines:
            edge_traces.append(
                go.Scatter(
                    x=[line.x1, line.x2],
                    y=[line.y1, line.y2],
                    mode="lines",
                    line=dict(
                        width=line.width,
                        color=line.color,
                        dash=DASH_STYLES.get(line.dash, "dash") if line.dashed else "solid",
                    ),
                    opacity=line.opacity,
                    hoverinfo="skip",
                    showlegend=False,
                )
            )
        return edge_traces

    def _arrow_points(
        self, line: LinkLine, marker: ArrowMarker
    ) -> Optional[Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]]:
        """Tip and wings of an arrowhead that stops short of the target disk."""
        dx = line.x2 - line.x1
        dy = line.y2 - line.y1
        length = (dx**2 + dy**2) ** 0.5
        if length <= marker.tip_offset:
            return None

        dx /= length
        dy /= length
        px, py = -dy, dx

        tip_x = line.x2 - dx * marker.tip_offset
        tip_y = line.y2 - dy * marker.tip_offset
        base_x = tip_x - dx * marker.length
        base_y = tip_y - dy * marker.length

        wing1 = (base_x + px * marker.half_width, base_y + py * marker.half_width)
        wing2 = (base_x - px * marker.half_width, base_y - py * marker.half_width)
        return (tip_x, tip_y), wing1, wing2

    def _create_arrow_shapes(self, scene: Scene) -> List[Dict]:
        arrow_shapes = []
        for line in scene.lines:
            marker = scene.markers[line.strength]
            points = self._arrow_points(line, marker)
            if points is None:
                continue
            (tip_x, tip_y), (w1x, w1y), (w2x, w2y) = points
            arrow_shapes.append(
                dict(
                    type="path",
                    xref="x",
                    yref="y",
                    path=f"M {w1x},{w1y} L {tip_x},{tip_y} L {w2x},{w2y} Z",
                    fillcolor=marker.color,
                    line=dict(color=marker.color, width=1),
                    layer="above",
                    opacity=line.opacity,
                    editable=False,
                )
            )
        return arrow_shapes

    def _create_node_shapes(self, scene: Scene) -> List[Dict]:
        """Circle shapes for node disks, draggable via shape edits."""
        shapes = []
        for disk in scene.disks:
            shapes.append(
                dict(
                    type="circle",
                    xref="x",
                    yref="y",
                    x0=disk.cx - disk.radius,
                    x1=disk.cx + disk.radius,
                    y0=disk.cy - disk.radius,
                    y1=disk.cy + disk.radius,
                    fillcolor=disk.fill,
                    line=dict(color=disk.stroke, width=disk.stroke_width),
                    layer="above",
                    editable=True,
                )
            )
        return shapes

    def _create_label_annotations(self, scene: Scene) -> List[Dict]:
        return [
            dict(
                x=label.x,
                y=label.y,
                text=label.text,
                showarrow=False,
                xanchor="left",
                yanchor="bottom",
                font=dict(size=self.config.label_font_size, color=LABEL_COLOR),
                captureevents=False,
            )
            for label in scene.labels
        ]

    def _create_interactive_node_trace(self, scene: Scene, scale: float = 1.0) -> go.Scatter:
        """
        Create transparent scatter trace for node interactivity.

        Marker sizes are in pixels, so they follow the zoom to cover each disk.
        """
        return go.Scatter(
            name=self.INTERACTIVE_TRACE_NAME,
            x=[disk.cx for disk in scene.disks],
            y=[disk.cy for disk in scene.disks],
            mode="markers",
            customdata=[disk.node_id for disk in scene.disks],
            hoverinfo="none",
            marker=dict(
                size=self.config.node_radius * 2 * scale,
                color="rgba(0,0,0,0)",
            ),
            showlegend=False,
        )

    def _calculate_axis_ranges(
        self, viewport: Viewport
    ) -> Tuple[List[float], List[float]]:
        """Visible ranges for the axes; y is reversed so it grows downward."""
        x0, x1, y0, y1 = viewport.visible_bounds()
        return [x0, x1], [y1, y0]

    def build_figure(self, scene: Scene, viewport: Viewport) -> go.Figure:
        """
        Build the complete Plotly figure for the current scene.

        Args:
            scene: Primitives with their current positions.
            viewport: Pan/zoom state; sets the visible axis ranges.

        Returns:
            Plotly Figure object
        """
        # Step 1: Links and their arrowheads
        edge_traces = self._create_edge_traces(scene)
        arrow_shapes = self._create_arrow_shapes(scene)

        # Step 2: Node disks and labels
        node_shapes = self._create_node_shapes(scene)
        label_annotations = self._create_label_annotations(scene)

        # Step 3: Interactive node trace (click/hover events)
        interactive_trace = self._create_interactive_node_trace(scene, viewport.scale)

        # Step 4: Viewport
        x_range, y_range = self._calculate_axis_ranges(viewport)

        fig = go.Figure(data=edge_traces + [interactive_trace])
        fig.update_layout(
            clickmode="event",
            dragmode="pan",
            width=viewport.width,
            height=viewport.height,
            margin=dict(l=0, r=0, t=0, b=0),
            plot_bgcolor=BACKGROUND_COLOR,
            paper_bgcolor=BACKGROUND_COLOR,
            hovermode="closest",
            showlegend=False,
            xaxis=dict(
                showgrid=False,
                zeroline=False,
                showticklabels=False,
                range=x_range,
            ),
            yaxis=dict(
                showgrid=False,
                zeroline=False,
                showticklabels=False,
                range=y_range,
            ),
            # node shapes first: shape index == node index
            shapes=node_shapes + arrow_shapes,
            annotations=label_annotations,
        )
        return fig

    @staticmethod
    def disk_center_from_shape(x0: float, x1: float, y0: float, y1: float) -> Tuple[float, float]:
        return (x0 + x1) / 2, (y0 + y1) / 2
