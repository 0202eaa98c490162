"""
Force simulation and the host-driven loop that advances it.

``Simulation.step()`` performs exactly one integration step and knows nothing
about timers. ``FrameLoop`` wraps a Simulation with the start/restart/stop
lifecycle and tick listeners; the host calls ``FrameLoop.frame()`` from its own
clock (a Dash interval, a test loop, a headless export).
"""

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .adapter import PositionBuffer, RuntimeGraph
from .config import ForceConfig
from .forces import CenterForce, Force, default_forces

LOGGER = logging.getLogger(__name__)

TickListener = Callable[[PositionBuffer], None]

INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class Simulation:
    def __init__(
        self,
        graph: RuntimeGraph,
        config: Optional[ForceConfig] = None,
        center: Tuple[float, float] = (0.0, 0.0),
        forces: Optional[Sequence[Force]] = None,
    ):
        self.graph = graph
        self.config = config or ForceConfig()
        self.alpha = self.config.alpha
        self.alpha_target = 0.0
        self.steps = 0
        self._rng = np.random.default_rng(self.config.seed)
        self.forces: List[Force] = list(
            forces if forces is not None else default_forces(self.config, center)
        )
        self._initialize_nodes()
        for force in self.forces:
            force.initialize(graph, self._jiggle)

    @property
    def positions(self) -> PositionBuffer:
        return self.graph.positions

    @property
    def settled(self) -> bool:
        return self.alpha < self.config.alpha_min

    def _jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def _initialize_nodes(self) -> None:
        """Seed unplaced nodes on a phyllotaxis spiral, in input order."""
        buf = self.graph.positions
        for i in range(len(buf)):
            fx, fy = buf.pinned(i)
            if fx is not None:
                buf.x[i] = fx
            if fy is not None:
                buf.y[i] = fy
            if np.isnan(buf.x[i]) or np.isnan(buf.y[i]):
                radius = self.config.initial_radius * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                buf.x[i] = radius * math.cos(angle)
                buf.y[i] = radius * math.sin(angle)
            if np.isnan(buf.vx[i]) or np.isnan(buf.vy[i]):
                buf.vx[i] = 0.0
                buf.vy[i] = 0.0

    def set_center(self, x: float, y: float) -> None:
        for force in self.forces:
            if isinstance(force, CenterForce):
                force.x, force.y = x, y

    def step(self) -> None:
        """Advance one step: decay alpha, apply all forces, integrate."""
        self.alpha += (self.alpha_target - self.alpha) * self.config.alpha_decay
        for force in self.forces:
            force.apply(self.alpha)

        buf = self.graph.positions
        keep = 1 - self.config.velocity_decay
        for pos, vel, pin in ((buf.x, buf.vx, buf.fx), (buf.y, buf.vy, buf.fy)):
            pinned = ~np.isnan(pin)
            free = ~pinned
            vel[free] *= keep
            pos[free] += vel[free]
            pos[pinned] = pin[pinned]
            vel[pinned] = 0.0
        self.steps += 1


class FrameLoop:
    """
    Lifecycle around a Simulation, advanced once per host frame.

    The loop idles once alpha falls below ``alpha_min`` (unless a target keeps
    it warm) and resumes on ``restart``. After ``stop`` no listener fires
    again until ``start`` is called with a new graph.
    """

    def __init__(self, config: Optional[ForceConfig] = None):
        self.config = config or ForceConfig()
        self.simulation: Optional[Simulation] = None
        self.running = False
        self._listeners: List[TickListener] = []

    def start(
        self, graph: RuntimeGraph, center: Tuple[float, float] = (0.0, 0.0)
    ) -> Simulation:
        self.stop()
        self.simulation = Simulation(graph, self.config, center=center)
        self.running = len(graph) > 0
        LOGGER.debug("Simulation started with %d nodes, %d links", len(graph), len(graph.links))
        return self.simulation

    def restart(self, alpha_target: Optional[float] = None) -> None:
        if self.simulation is None:
            return
        if alpha_target is not None:
            self.simulation.alpha_target = alpha_target
        self.running = len(self.simulation.graph) > 0

    def stop(self) -> None:
        self.running = False

    def dispose(self) -> None:
        self.stop()
        self.simulation = None
        self._listeners.clear()

    def on_tick(self, listener: TickListener) -> Callable[[], None]:
        """Register a per-step listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def frame(self) -> bool:
        """
        Run one step if the loop is live.

        Returns:
            True if a step ran and listeners were notified.
        """
        sim = self.simulation
        if not self.running or sim is None:
            return False
        sim.step()
        for listener in list(self._listeners):
            listener(sim.positions)
        if sim.alpha < self.config.alpha_min and sim.alpha_target < self.config.alpha_min:
            self.running = False
            LOGGER.debug("Simulation settled after %d steps", sim.steps)
        return True

    def run(self, max_frames: int = 1000) -> int:
        """Drive frames until the loop idles or ``max_frames`` is reached."""
        frames = 0
        while frames < max_frames and self.frame():
            frames += 1
        return frames
