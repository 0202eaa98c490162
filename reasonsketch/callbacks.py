import logging
import re
from dash import Input, Output, no_update
from dash.exceptions import PreventUpdate
from typing import Dict, Optional, Tuple

from .layout import LayoutBuilder
from .session import GraphSession

LOGGER = logging.getLogger(__name__)

SHAPE_KEY = re.compile(r"^shapes\[(\d+)\]\.(x0|x1|y0|y1)$")
AXIS_KEY = re.compile(r"^(xaxis|yaxis)\.range(?:\[(0|1)\])?$")

POINTER_THROTTLE_MS = 50

# Reports the graph container size on load and on window resize, and streams
# pointer positions over the graph (relative to its top-left corner).
BIND_GRAPH_LISTENERS = """
function (_id) {
    const dc = window.dash_clientside;
    const container = document.getElementById("graph-container");
    if (!container) {
        return dc.no_update;
    }
    const measure = function () {
        const rect = container.getBoundingClientRect();
        return {width: Math.round(rect.width), height: Math.round(rect.height)};
    };
    if (!container.dataset.listening) {
        container.dataset.listening = "1";
        let last = 0;
        window.addEventListener("resize", function () {
            dc.set_props("graph-size", {data: measure()});
        });
        container.addEventListener("mousemove", function (event) {
            const now = Date.now();
            if (now - last < %d) {
                return;
            }
            last = now;
            const rect = container.getBoundingClientRect();
            dc.set_props("pointer-position", {
                data: {x: event.clientX - rect.left, y: event.clientY - rect.top}
            });
        });
        container.addEventListener("mouseleave", function () {
            dc.set_props("pointer-position", {data: null});
        });
    }
    return measure();
}
""" % POINTER_THROTTLE_MS


class CallbackRegistrar:
    """
    Wires Dash events to the graph session.

    Each handler is a plain method so it can be exercised without a running
    Dash server; ``register_callbacks`` only attaches them.
    """

    def __init__(self, app, layout_builder: LayoutBuilder):
        self.app = app
        self.layout_builder = layout_builder
        self.session: GraphSession = layout_builder.session

    def _extract_node_id(self, event_data: Optional[Dict]) -> Optional[str]:
        point = ((event_data or {}).get("points") or [{}])[0]
        node_id = point.get("customdata")
        return node_id if isinstance(node_id, str) else None

    def _extract_pointer(self, hover_data: Optional[Dict]) -> Optional[Tuple[float, float]]:
        point = ((hover_data or {}).get("points") or [{}])[0]
        bbox = point.get("bbox")
        if not bbox:
            return None
        return (bbox["x0"] + bbox["x1"]) / 2, (bbox["y0"] + bbox["y1"]) / 2

    def _parse_shape_moves(self, relayout_data: Dict) -> Dict[int, Dict[str, float]]:
        moves: Dict[int, Dict[str, float]] = {}
        for key, value in relayout_data.items():
            match = SHAPE_KEY.match(key)
            if match:
                moves.setdefault(int(match.group(1)), {})[match.group(2)] = float(value)
        return moves

    def _parse_axis_ranges(self, relayout_data: Dict) -> Optional[Tuple[float, float, float, float]]:
        ranges: Dict[str, list] = {"xaxis": [None, None], "yaxis": [None, None]}
        for key, value in relayout_data.items():
            match = AXIS_KEY.match(key)
            if not match:
                continue
            axis, bound = match.groups()
            if bound is None:
                ranges[axis] = [float(value[0]), float(value[1])]
            else:
                ranges[axis][int(bound)] = float(value)
        x0, x1 = ranges["xaxis"]
        y0, y1 = ranges["yaxis"]
        if x0 is None or x1 is None:
            return None
        if y0 is None or y1 is None:
            _, _, y0, y1 = self.session.surface.viewport.visible_bounds()
        return x0, x1, y0, y1

    def handle_frame(self, _n_intervals):
        """Advance the layout one host frame and redraw."""
        if not self.session.advance():
            return no_update, True
        return self.session.figure(), not self.session.running

    def handle_relayout(self, relayout_data: Optional[Dict]):
        """Apply shape drags (node moves) and axis changes (zoom/pan)."""
        if not relayout_data:
            raise PreventUpdate
        surface = self.session.surface
        changed = False

        for shape_index, coords in self._parse_shape_moves(relayout_data).items():
            if shape_index >= len(surface.scene.disks) or len(coords) < 4:
                continue
            disk = surface.scene.disks[shape_index]
            x, y = self.session.graph_builder.disk_center_from_shape(
                coords["x0"], coords["x1"], coords["y0"], coords["y1"]
            )
            if surface.drop_node(disk.node_id, x, y):
                LOGGER.debug("Node %s dropped at (%.1f, %.1f)", disk.node_id, x, y)
                changed = True

        bounds = self._parse_axis_ranges(relayout_data)
        if bounds is not None:
            requested = surface.viewport.width / max(abs(bounds[1] - bounds[0]), 1e-9)
            transform = surface.viewport.set_visible_bounds(*bounds)
            # only redraw when clamping moved the view away from what plotly shows
            changed |= abs(transform.k - requested) > 1e-9
        elif relayout_data.get("xaxis.autorange") or relayout_data.get("autosize"):
            surface.viewport.reset()
            changed = True

        if not changed:
            raise PreventUpdate
        return self.session.figure(), not self.session.running

    def handle_click(self, click_data: Optional[Dict]):
        node_id = self._extract_node_id(click_data)
        if node_id is None or not self.session.surface.click_node(node_id):
            raise PreventUpdate
        return self.session.surface.selection.selected_id

    def handle_hover(self, hover_data: Optional[Dict]):
        """Show the tooltip for the hovered node, hide it on unhover."""
        surface = self.session.surface
        node_id = self._extract_node_id(hover_data)
        pointer = self._extract_pointer(hover_data)
        if node_id is None or pointer is None:
            surface.unhover()
            return False, no_update, no_update
        state = surface.hover_node(node_id, *pointer)
        if state is None:
            return False, no_update, no_update
        return (
            True,
            self.layout_builder.tooltip_bbox(*state.anchor),
            self.layout_builder.tooltip_children(state.content, state.type),
        )

    def handle_pointer(self, pointer: Optional[Dict]):
        """Keep the tooltip on the pointer as it moves inside the graph."""
        surface = self.session.surface
        was_visible = surface.tooltip.state is not None
        if pointer:
            surface.pointer_move(float(pointer["x"]), float(pointer["y"]))
        else:
            surface.unhover()
        state = surface.tooltip.state
        if state is None:
            if not was_visible:
                raise PreventUpdate
            return False, no_update, no_update
        return (
            True,
            self.layout_builder.tooltip_bbox(*state.anchor),
            self.layout_builder.tooltip_children(state.content, state.type),
        )

    def handle_resize(self, size: Optional[Dict]):
        """Redraw at the graph container's reported size."""
        if not size:
            raise PreventUpdate
        width, height = int(size.get("width") or 0), int(size.get("height") or 0)
        if width <= 0 or height <= 0 or not self.session.resize(width, height):
            raise PreventUpdate
        LOGGER.debug("Graph resized to %dx%d", width, height)
        return self.session.figure(), not self.session.running

    def handle_upload(self, contents: Optional[str]):
        if not contents:
            raise PreventUpdate
        self.session.load_upload(contents)
        return (
            self.session.version,
            self.session.figure(),
            not self.session.running,
            None,
        )

    def handle_panel(self, selected_node: Optional[str], _version):
        return self.layout_builder.build_analysis_panel(
            self.session.analysis, selected_node, self.session.error
        )

    def register_callbacks(self):
        # Frame clock: one simulation frame per interval
        @self.app.callback(
            Output("reasoning-graph", "figure"),
            Output("frame-clock", "disabled"),
            Input("frame-clock", "n_intervals"),
            prevent_initial_call=True,
        )
        def advance_frame(n_intervals):
            return self.handle_frame(n_intervals)

        # Node drags and zoom/pan
        @self.app.callback(
            Output("reasoning-graph", "figure", allow_duplicate=True),
            Output("frame-clock", "disabled", allow_duplicate=True),
            Input("reasoning-graph", "relayoutData"),
            prevent_initial_call=True,
        )
        def sync_relayout(relayout_data):
            return self.handle_relayout(relayout_data)

        # Selection
        @self.app.callback(
            Output("selected-node-store", "data"),
            Input("reasoning-graph", "clickData"),
            prevent_initial_call=True,
        )
        def select_node(click_data):
            return self.handle_click(click_data)

        # Tooltip
        @self.app.callback(
            Output("node-tooltip", "show"),
            Output("node-tooltip", "bbox"),
            Output("node-tooltip", "children"),
            Input("reasoning-graph", "hoverData"),
            prevent_initial_call=True,
        )
        def show_tooltip(hover_data):
            return self.handle_hover(hover_data)

        # Pointer tracking and container size, reported from the browser
        self.app.clientside_callback(
            BIND_GRAPH_LISTENERS,
            Output("graph-size", "data"),
            Input("graph-container", "id"),
            prevent_initial_call=False,
        )

        @self.app.callback(
            Output("node-tooltip", "show", allow_duplicate=True),
            Output("node-tooltip", "bbox", allow_duplicate=True),
            Output("node-tooltip", "children", allow_duplicate=True),
            Input("pointer-position", "data"),
            prevent_initial_call=True,
        )
        def follow_pointer(pointer):
            return self.handle_pointer(pointer)

        @self.app.callback(
            Output("reasoning-graph", "figure", allow_duplicate=True),
            Output("frame-clock", "disabled", allow_duplicate=True),
            Input("graph-size", "data"),
            prevent_initial_call=True,
        )
        def fit_to_container(size):
            return self.handle_resize(size)

        # New analysis
        @self.app.callback(
            Output("analysis-version", "data"),
            Output("reasoning-graph", "figure", allow_duplicate=True),
            Output("frame-clock", "disabled", allow_duplicate=True),
            Output("selected-node-store", "data", allow_duplicate=True),
            Input("analysis-upload", "contents"),
            prevent_initial_call=True,
        )
        def upload_analysis(contents):
            return self.handle_upload(contents)

        # Insight panel
        @self.app.callback(
            Output("analysis-panel", "children"),
            Input("selected-node-store", "data"),
            Input("analysis-version", "data"),
        )
        def render_panel(selected_node, version):
            return self.handle_panel(selected_node, version)
