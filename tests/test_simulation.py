"""Tests for force math and the host-driven frame loop."""

from __future__ import annotations

import math
from itertools import combinations

import numpy as np

from reasonsketch.adapter import build_runtime_graph
from reasonsketch.config import ForceConfig
from reasonsketch.forces import CenterForce, CollideForce, LinkForce, ManyBodyForce
from reasonsketch.models import LinkStrength, ReasoningMap
from reasonsketch.simulation import FrameLoop, Simulation

from .conftest import make_map


def _distance(graph, i: int, j: int) -> float:
    xi, yi = graph.positions.position(i)
    xj, yj = graph.positions.position(j)
    return math.hypot(xi - xj, yi - yj)


def test_initial_positions_follow_phyllotaxis() -> None:
    graph = build_runtime_graph(make_map(["a", "b"]))
    Simulation(graph, forces=[])

    x0, y0 = graph.positions.position(0)
    assert math.isclose(x0, 10 * math.sqrt(0.5))
    assert math.isclose(y0, 0.0, abs_tol=1e-12)
    x1, y1 = graph.positions.position(1)
    assert math.isclose(math.hypot(x1, y1), 10 * math.sqrt(1.5))


def test_link_force_pulls_toward_target_distance() -> None:
    graph = build_runtime_graph(make_map(["a", "b"], [("a", "b", LinkStrength.SUPPORTED)]))
    sim = Simulation(graph, forces=[LinkForce(distance=100.0)])

    for _ in range(300):
        sim.step()

    assert abs(_distance(graph, 0, 1) - 100.0) < 1.0


def test_many_body_force_pushes_nodes_apart() -> None:
    graph = build_runtime_graph(make_map(["a", "b"]))
    sim = Simulation(graph, forces=[ManyBodyForce(strength=-400.0)])
    before = _distance(graph, 0, 1)

    for _ in range(20):
        sim.step()

    assert _distance(graph, 0, 1) > before


def test_collide_force_separates_overlapping_disks() -> None:
    graph = build_runtime_graph(make_map(["a", "b"]))
    graph.positions.x[:] = [0.0, 5.0]
    graph.positions.y[:] = [0.0, 0.0]
    sim = Simulation(graph, forces=[CollideForce(radius=40.0)])

    for _ in range(100):
        sim.step()

    assert _distance(graph, 0, 1) >= 79.0


def test_coincident_nodes_are_separated_deterministically() -> None:
    def run() -> np.ndarray:
        graph = build_runtime_graph(make_map(["a", "b"]))
        graph.positions.x[:] = 0.0
        graph.positions.y[:] = 0.0
        sim = Simulation(graph, forces=[CollideForce(radius=40.0)])
        for _ in range(50):
            sim.step()
        return graph.positions.x.copy()

    first, second = run(), run()
    assert first[0] != first[1]
    assert np.array_equal(first, second)


def test_center_force_moves_mean_to_center() -> None:
    graph = build_runtime_graph(make_map(["a", "b", "c"]))
    sim = Simulation(graph, forces=[CenterForce(400.0, 300.0)])

    sim.step()

    assert math.isclose(graph.positions.x.mean(), 400.0)
    assert math.isclose(graph.positions.y.mean(), 300.0)


def test_pinned_axes_are_held_and_velocity_zeroed() -> None:
    graph = build_runtime_graph(make_map(["a", "b"], [("a", "b", LinkStrength.SUPPORTED)]))
    sim = Simulation(graph, center=(400.0, 300.0))
    graph.positions.pin(0, 5.0, None)

    for _ in range(10):
        sim.step()

    x, y = graph.positions.position(0)
    assert x == 5.0
    assert graph.positions.vx[0] == 0.0
    assert y != 0.0


def test_alpha_decays_each_step() -> None:
    graph = build_runtime_graph(make_map(["a"]))
    sim = Simulation(graph)
    config = ForceConfig()

    sim.step()

    assert math.isclose(sim.alpha, 1 - config.alpha_decay)


def test_full_layout_settles_without_overlap(sample_analysis) -> None:
    graph = build_runtime_graph(sample_analysis.reasoning_map)
    loop = FrameLoop()
    loop.start(graph, center=(400.0, 300.0))

    frames = loop.run(max_frames=1000)

    assert frames < 1000
    assert not loop.running
    assert np.all(np.isfinite(graph.positions.x))
    assert np.all(np.isfinite(graph.positions.y))
    for i, j in combinations(range(len(graph)), 2):
        assert _distance(graph, i, j) > 30.0


def test_frame_loop_notifies_listeners_once_per_step(chain_map: ReasoningMap) -> None:
    loop = FrameLoop()
    seen = []
    remove = loop.on_tick(lambda positions: seen.append(positions.x.copy()))
    loop.start(build_runtime_graph(chain_map))

    assert loop.frame()
    assert loop.frame()
    assert len(seen) == 2

    remove()
    loop.frame()
    assert len(seen) == 2


def test_stopped_loop_does_not_tick(chain_map: ReasoningMap) -> None:
    loop = FrameLoop()
    calls = []
    loop.on_tick(lambda positions: calls.append(1))
    loop.start(build_runtime_graph(chain_map))

    loop.stop()

    assert not loop.frame()
    assert calls == []


def test_restart_with_target_keeps_loop_warm(chain_map: ReasoningMap) -> None:
    loop = FrameLoop()
    loop.start(build_runtime_graph(chain_map))
    loop.run()
    assert not loop.running

    loop.restart(0.3)
    assert loop.run(max_frames=500) == 500
    assert loop.running
    assert abs(loop.simulation.alpha - 0.3) < 0.01

    loop.restart(0.0)
    loop.run()
    assert not loop.running


def test_empty_graph_never_runs() -> None:
    loop = FrameLoop()
    loop.start(build_runtime_graph(ReasoningMap()))

    assert not loop.running
    assert not loop.frame()
    loop.restart(0.3)
    assert not loop.frame()
