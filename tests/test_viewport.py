"""Tests for the pan/zoom viewport."""

from __future__ import annotations

import math

from reasonsketch.viewport import Transform, Viewport


def test_scale_is_clamped_to_bounds() -> None:
    viewport = Viewport(800, 600)

    assert viewport.scale_to(10).k == 4.0
    assert viewport.scale_to(0.01).k == 0.1
    assert viewport.scale_by(1000).k == 4.0


def test_zoom_keeps_anchor_point_fixed() -> None:
    viewport = Viewport(800, 600)
    anchor = (200.0, 150.0)
    world_before = viewport.to_world(*anchor)

    viewport.scale_by(2.5, anchor)

    world_after = viewport.to_world(*anchor)
    assert math.isclose(world_before[0], world_after[0])
    assert math.isclose(world_before[1], world_after[1])


def test_pan_gesture_translates_transform() -> None:
    viewport = Viewport(800, 600)

    viewport.begin_pan(10, 10)
    viewport.pan_to(40, 25)
    viewport.pan_to(60, 30)
    viewport.end_pan()
    viewport.pan_to(500, 500)

    assert viewport.transform == Transform(1.0, 50.0, 20.0)
    assert not viewport.panning


def test_visible_bounds_follow_transform() -> None:
    viewport = Viewport(800, 600)
    assert viewport.visible_bounds() == (0.0, 800.0, 0.0, 600.0)

    viewport.scale_to(2.0, anchor=(0, 0))
    assert viewport.visible_bounds() == (0.0, 400.0, 0.0, 300.0)


def test_set_visible_bounds_clamps_requested_scale() -> None:
    viewport = Viewport(800, 600)

    transform = viewport.set_visible_bounds(390, 410, 290, 310)
    assert transform.k == 4.0
    x0, x1, y0, y1 = viewport.visible_bounds()
    assert math.isclose((x0 + x1) / 2, 400.0)
    assert math.isclose((y0 + y1) / 2, 300.0)

    transform = viewport.set_visible_bounds(-40000, 40000, -30000, 30000)
    assert transform.k == 0.1


def test_reset_restores_identity() -> None:
    viewport = Viewport(800, 600)
    viewport.scale_to(3.0)
    viewport.pan_by(5, 5)

    viewport.reset()

    assert viewport.transform == Transform()
