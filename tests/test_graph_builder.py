"""Tests for projecting a scene into a Plotly figure."""

from __future__ import annotations

import pytest

from reasonsketch.graph_builder import GraphBuilder
from reasonsketch.models import LinkStrength
from reasonsketch.surface import InteractionSurface, Scene
from reasonsketch.viewport import Viewport

from .conftest import make_map


@pytest.fixture
def builder() -> GraphBuilder:
    return GraphBuilder()


@pytest.fixture
def drawn(chain_map):
    surface = InteractionSurface()
    surface.render(chain_map, 800, 600)
    surface.settle()
    yield surface
    surface.teardown()


def test_node_shapes_come_first_and_match_disks(builder, drawn) -> None:
    fig = builder.build_figure(drawn.scene, drawn.viewport)

    shapes = fig.layout.shapes
    circles = shapes[: len(drawn.scene.disks)]
    assert [shape.type for shape in circles] == ["circle"] * 3
    assert all(shape.editable for shape in circles)
    for shape, disk in zip(circles, drawn.scene.disks):
        cx, cy = builder.disk_center_from_shape(shape.x0, shape.x1, shape.y0, shape.y1)
        assert cx == pytest.approx(disk.cx)
        assert cy == pytest.approx(disk.cy)
        assert shape.fillcolor == disk.fill
    assert all(shape.type == "path" for shape in shapes[len(drawn.scene.disks):])


def test_traces_carry_links_and_node_ids(builder, drawn) -> None:
    fig = builder.build_figure(drawn.scene, drawn.viewport)

    line_traces = [trace for trace in fig.data if trace.mode == "lines"]
    assert len(line_traces) == 2
    assert [trace.line.dash for trace in line_traces] == ["solid", "dash"]

    nodes = next(trace for trace in fig.data if trace.name == GraphBuilder.INTERACTIVE_TRACE_NAME)
    assert list(nodes.customdata) == ["a", "b", "c"]
    assert [a.text for a in fig.layout.annotations] == ["claim a", "claim b", "claim c"]


def test_arrowhead_stops_short_of_target(builder) -> None:
    surface = InteractionSurface()
    surface.render(make_map(["a", "b"], [("a", "b", LinkStrength.CIRCULAR)]), 800, 600)
    line = surface.scene.lines[0]
    line.x1, line.y1, line.x2, line.y2 = 0.0, 0.0, 100.0, 0.0

    tip, wing1, wing2 = builder._arrow_points(line, surface.scene.markers[line.strength])

    assert tip == pytest.approx((82.0, 0.0))
    assert wing1 == pytest.approx((72.0, 5.0))
    assert wing2 == pytest.approx((72.0, -5.0))

    line.x2 = 10.0
    assert builder._arrow_points(line, surface.scene.markers[line.strength]) is None
    surface.teardown()


def test_axis_ranges_follow_viewport_with_y_reversed(builder) -> None:
    viewport = Viewport(800, 600)

    fig = builder.build_figure(Scene(), viewport)

    assert list(fig.layout.xaxis.range) == [0.0, 800.0]
    assert list(fig.layout.yaxis.range) == [600.0, 0.0]
    assert fig.layout.width == 800
    assert fig.layout.dragmode == "pan"


def test_empty_scene_builds_empty_figure(builder) -> None:
    fig = builder.build_figure(Scene(), Viewport(800, 600))

    assert len(fig.layout.shapes) == 0
    assert len(fig.layout.annotations) == 0
    assert len(fig.data) == 1
    assert fig.data[0].name == "nodes"


@pytest.mark.parametrize("scale", [0.1, 1.0, 4.0])
def test_hit_markers_cover_disks_at_every_zoom(builder, drawn, scale) -> None:
    drawn.viewport.scale_to(scale)

    fig = builder.build_figure(drawn.scene, drawn.viewport)

    nodes = next(trace for trace in fig.data if trace.name == GraphBuilder.INTERACTIVE_TRACE_NAME)
    disk_shape = fig.layout.shapes[0]
    disk_px = (disk_shape.x1 - disk_shape.x0) * drawn.viewport.scale
    assert nodes.marker.size == pytest.approx(disk_px)
    assert nodes.marker.size == pytest.approx(30.0 * scale)
