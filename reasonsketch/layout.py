from dash import html, dcc
from typing import Dict, List, Optional

from .constants import (
    BACKGROUND_COLOR,
    LINK_LEGEND_ENTRIES,
    NODE_COLORS,
    TOOLTIP_BACKGROUND,
    TYPE_LEGEND_TITLE,
    link_color,
    link_dash,
)
from .models import AnalysisResponse
from .session import GraphSession

FRAGILE_SNIPPET_CHARS = 30


class LayoutBuilder:
    """
    Constructs the Dash layout: analysis panel on the left, the live reasoning
    graph with legend and tooltip on the right, plus the frame clock and
    state stores.
    """

    def __init__(self, session: GraphSession):
        self.session = session
        self.config = {
            "sidebar_width": "360px",
            "panel_background": "#111827",
            "text_color": "#e2e8f0",
            "muted_color": "#94a3b8",
        }

    def create_layout(self) -> html.Div:
        return html.Div(
            children=[
                self._build_header(),
                self._build_main_area(),
                self._build_state_stores(),
            ],
            style={
                "height": "100vh",
                "display": "flex",
                "flexDirection": "column",
                "backgroundColor": "#020617",
                "color": self.config["text_color"],
                "fontFamily": "Inter, sans-serif",
            },
        )

    def _build_header(self) -> html.Div:
        return html.Div(
            [
                html.H2("ReasonSketch", style={"margin": "0", "fontWeight": "700"}),
                html.Span(
                    "Cognitive Instrument",
                    style={"fontSize": "12px", "color": self.config["muted_color"]},
                ),
            ],
            style={
                "display": "flex",
                "alignItems": "baseline",
                "gap": "12px",
                "padding": "12px 16px",
                "borderBottom": "1px solid #1e293b",
            },
        )

    def _build_main_area(self) -> html.Div:
        return html.Div(
            children=[self._build_sidebar(), self._build_graph_area()],
            style={"display": "flex", "flexDirection": "row", "flex": 1, "minHeight": 0},
        )

    def _build_sidebar(self) -> html.Div:
        return html.Div(
            id="sidebar-container",
            children=[
                dcc.Upload(
                    id="analysis-upload",
                    children=html.Div("Drop or select an analysis JSON file"),
                    accept="application/json,.json",
                    style={
                        "border": "1px dashed #334155",
                        "borderRadius": "8px",
                        "padding": "12px",
                        "textAlign": "center",
                        "cursor": "pointer",
                        "marginBottom": "16px",
                        "color": self.config["muted_color"],
                    },
                ),
                html.Div(
                    id="analysis-panel",
                    children=self.build_analysis_panel(
                        self.session.analysis, None, self.session.error
                    ),
                ),
            ],
            style={
                "width": self.config["sidebar_width"],
                "padding": "16px",
                "overflowY": "auto",
                "backgroundColor": self.config["panel_background"],
                "borderRight": "1px solid #1e293b",
                "flexShrink": 0,
            },
        )

    def _build_graph_area(self) -> html.Div:
        return html.Div(
            children=[
                html.Div(
                    id="graph-container",
                    children=[
                        dcc.Graph(
                            id="reasoning-graph",
                            figure=self.session.figure(),
                            clear_on_unhover=True,
                            config={
                                "displayModeBar": False,
                                "scrollZoom": True,
                                "doubleClick": False,
                                "edits": {"shapePosition": True},
                            },
                            style={"width": "100%", "height": "100%"},
                        ),
                        # tooltip bbox is in the same pixel space as the graph
                        dcc.Tooltip(
                            id="node-tooltip",
                            direction="right",
                            background_color=TOOLTIP_BACKGROUND,
                            border_color="#64748b",
                        ),
                    ],
                    style={"position": "relative", "width": "100%", "height": "100%"},
                ),
                self._build_legend(),
            ],
            style={
                "position": "relative",
                "flex": 1,
                "padding": "16px",
                "boxSizing": "border-box",
                "backgroundColor": BACKGROUND_COLOR,
                "overflow": "hidden",
            },
        )

    def _build_legend(self) -> html.Div:
        """Legend overlay: node type colours and connection styles."""
        rows: List[html.Div] = [html.Div(TYPE_LEGEND_TITLE, style={"fontWeight": "700"})]
        for node_type, color in NODE_COLORS.items():
            rows.append(
                html.Div(
                    [
                        html.Span(
                            style={
                                "display": "inline-block",
                                "width": "12px",
                                "height": "12px",
                                "borderRadius": "50%",
                                "backgroundColor": color,
                                "marginRight": "8px",
                            }
                        ),
                        html.Span(node_type.value.capitalize()),
                    ]
                )
            )
        rows.append(html.Div("Connections", style={"fontWeight": "700", "marginTop": "8px"}))
        for strength, label in LINK_LEGEND_ENTRIES:
            rows.append(
                html.Div(
                    [
                        html.Span(
                            style={
                                "display": "inline-block",
                                "width": "16px",
                                "marginRight": "8px",
                                "verticalAlign": "middle",
                                "borderTop": "2px {} {}".format(
                                    "dashed" if link_dash(strength) else "solid",
                                    link_color(strength),
                                ),
                            }
                        ),
                        html.Span(label),
                    ]
                )
            )
        return html.Div(
            id="graph-legend",
            children=rows,
            style={
                "position": "absolute",
                "bottom": "24px",
                "left": "24px",
                "padding": "10px",
                "fontSize": "12px",
                "borderRadius": "6px",
                "backgroundColor": "rgba(30, 41, 59, 0.8)",
                "border": "1px solid #334155",
                "pointerEvents": "none",
            },
        )

    def _build_state_stores(self) -> html.Div:
        return html.Div(
            children=[
                dcc.Store(id="selected-node-store", data=None),
                dcc.Store(id="analysis-version", data=self.session.version),
                dcc.Store(id="graph-size", data=None),
                dcc.Store(id="pointer-position", data=None),
                dcc.Interval(
                    id="frame-clock",
                    interval=self.session.app_config.frame_interval_ms,
                    disabled=not self.session.running,
                ),
            ],
            style={"display": "none"},
        )

    # ------------------------------------------------------------------
    # Analysis panel
    # ------------------------------------------------------------------

    def _section(self, title: str, accent: str, body) -> html.Div:
        return html.Div(
            [
                html.H4(title, style={"margin": "0 0 8px 0", "color": accent}),
                body,
            ],
            style={
                "border": f"1px solid {accent}",
                "borderRadius": "8px",
                "padding": "12px",
                "marginBottom": "16px",
            },
        )

    def _bullet_list(self, items) -> html.Ul:
        return html.Ul([html.Li(item) for item in items], style={"paddingLeft": "18px", "margin": 0})

    def build_analysis_panel(
        self,
        analysis: Optional[AnalysisResponse],
        selected_id: Optional[str],
        error: Optional[str] = None,
    ) -> List:
        """
        Build the insight panel for an analysis.

        Args:
            analysis: Loaded analysis, or None.
            selected_id: ID of the node last clicked in the graph.
            error: User-facing failure message; replaces the panel when set.

        Returns:
            List of Dash components.
        """
        if error:
            return [html.Div(error, id="analysis-error", style={"color": "#fca5a5"})]
        if analysis is None:
            return [
                html.Div(
                    [
                        html.P("No Analysis Data", style={"fontWeight": "600"}),
                        html.P("Input reasoning to see structural decomposition."),
                    ],
                    id="analysis-empty",
                    style={"color": self.config["muted_color"], "textAlign": "center"},
                )
            ]

        children = []

        selected = analysis.find_node(selected_id)
        if selected is not None:
            children.append(
                html.Div(
                    [
                        html.Div(
                            f"{selected.type.value} Node".upper(),
                            style={"fontSize": "11px", "color": "#60a5fa"},
                        ),
                        html.Div(selected.text, style={"fontSize": "16px"}),
                    ],
                    id="selected-node-card",
                    style={
                        "borderLeft": "4px solid #3b82f6",
                        "padding": "12px",
                        "marginBottom": "16px",
                        "backgroundColor": "#1e293b",
                    },
                )
            )

        if analysis.fragile_points:
            items = []
            for fp in analysis.fragile_points:
                node = analysis.find_node(fp.node_id)
                subject = (
                    node.text[:FRAGILE_SNIPPET_CHARS] + "..." if node is not None else fp.node_id
                )
                items.append(
                    html.Div(
                        [
                            html.Div(f'If "{subject}" is wrong:', style={"fontWeight": "600"}),
                            html.Div(fp.why_fragile, style={"color": self.config["muted_color"]}),
                        ],
                        style={"marginBottom": "8px"},
                    )
                )
            children.append(self._section("Fragile Points", "#f87171", html.Div(items)))

        if analysis.missing_variables:
            children.append(
                self._section(
                    "Missing Variables", "#fbbf24", self._bullet_list(analysis.missing_variables)
                )
            )

        if analysis.rewritten_reasoning:
            body = [html.Blockquote(f'"{analysis.rewritten_reasoning}"', style={"fontStyle": "italic"})]
            if analysis.changes_made:
                body.append(html.H5("Structural Changes", style={"margin": "8px 0 4px 0"}))
                body.append(self._bullet_list(analysis.changes_made))
            children.append(self._section("Rewritten Reasoning", "#34d399", html.Div(body)))

        if analysis.teaching_points:
            children.append(
                self._section(
                    "Cognitive Patterns", "#60a5fa", self._bullet_list(analysis.teaching_points)
                )
            )

        return children

    def tooltip_children(self, content: str, node_type: str) -> List[html.Div]:
        return [
            html.Div(
                node_type.upper(),
                style={"fontSize": "10px", "fontWeight": "700", "color": self.config["muted_color"]},
            ),
            html.Div(content, style={"maxWidth": "280px", "color": self.config["text_color"]}),
        ]

    @staticmethod
    def tooltip_bbox(x: float, y: float) -> Dict[str, float]:
        return {"x0": x, "x1": x, "y0": y, "y1": y}
