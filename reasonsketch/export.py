"""Headless settling of a reasoning map and export of the resulting layout."""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from .config import ForceConfig, RenderConfig
from .graph_builder import GraphBuilder
from .models import ReasoningMap
from .surface import InteractionSurface

LOGGER = logging.getLogger(__name__)


def settle_layout(
    reasoning_map: ReasoningMap,
    width: float = 800,
    height: float = 600,
    max_frames: int = 1000,
    force_config: ForceConfig = None,
    render_config: RenderConfig = None,
) -> InteractionSurface:
    """Draw ``reasoning_map`` and run the simulation until it settles."""
    surface = InteractionSurface(render_config, force_config)
    surface.render(reasoning_map, width, height)
    frames = surface.settle(max_frames)
    LOGGER.info("Layout settled after %d frames", frames)
    return surface


def layout_frame(surface: InteractionSurface) -> pd.DataFrame:
    """One row per drawn node: id, type, label and position."""
    graph = surface.graph
    columns = ["id", "type", "label", "text", "x", "y"]
    if graph is None or not graph.nodes:
        return pd.DataFrame(columns=columns)
    labels = {label.node_index: label.text for label in surface.scene.labels}
    rows = []
    for node in graph.nodes:
        x, y = graph.positions.position(node.index)
        rows.append(
            {
                "id": node.id,
                "type": node.type.value,
                "label": labels[node.index],
                "text": node.text,
                "x": x,
                "y": y,
            }
        )
    return pd.DataFrame(rows, columns=columns)


def write_layout(surface: InteractionSurface, csv_path: Union[str, Path]) -> pd.DataFrame:
    df = layout_frame(surface)
    df.to_csv(csv_path, index=False)
    return df


def write_static_html(surface: InteractionSurface, html_path: Union[str, Path]) -> None:
    fig = GraphBuilder(surface.config).build_figure(surface.scene, surface.viewport)
    fig.write_html(str(html_path), include_plotlyjs="cdn")
