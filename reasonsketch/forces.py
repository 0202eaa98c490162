"""
Forces applied by the Simulation on every step.

Each force is initialised once per RuntimeGraph and then applied with the
current alpha. Forces write velocities (link, many-body, collide) or
positions (center) into the shared PositionBuffer.
"""

import math
from typing import Callable, Optional

import numpy as np

from .adapter import RuntimeGraph

Jiggle = Callable[[], float]


class Force:
    name = "force"

    def initialize(self, graph: RuntimeGraph, jiggle: Jiggle) -> None:
        self.graph = graph
        self.jiggle = jiggle

    def apply(self, alpha: float) -> None:
        raise NotImplementedError


class LinkForce(Force):
    """Spring pulling linked nodes toward ``distance`` apart."""

    name = "link"

    def __init__(self, distance: float = 150.0, iterations: int = 1):
        self.distance = distance
        self.iterations = iterations

    def initialize(self, graph: RuntimeGraph, jiggle: Jiggle) -> None:
        super().initialize(graph, jiggle)
        count = graph.degrees()
        self.strengths = []
        self.biases = []
        for link in graph.links:
            cs, ct = count[link.source], count[link.target]
            self.strengths.append(1.0 / min(cs, ct))
            self.biases.append(cs / (cs + ct))

    def apply(self, alpha: float) -> None:
        buf = self.graph.positions
        x, y, vx, vy = buf.x, buf.y, buf.vx, buf.vy
        for _ in range(self.iterations):
            for link, strength, bias in zip(self.graph.links, self.strengths, self.biases):
                s, t = link.source, link.target
                dx = x[t] + vx[t] - x[s] - vx[s]
                dy = y[t] + vy[t] - y[s] - vy[s]
                if dx == 0:
                    dx = self.jiggle()
                if dy == 0:
                    dy = self.jiggle()
                length = math.sqrt(dx * dx + dy * dy)
                k = (length - self.distance) / length * alpha * strength
                dx *= k
                dy *= k
                vx[t] -= dx * bias
                vy[t] -= dy * bias
                vx[s] += dx * (1 - bias)
                vy[s] += dy * (1 - bias)


class ManyBodyForce(Force):
    """
    Pairwise charge between every pair of nodes.

    Computed exactly with NumPy broadcasting; reasoning maps are small enough
    that an approximation tree is not needed.
    """

    name = "charge"

    def __init__(self, strength: float = -400.0, distance_min2: float = 1.0):
        self.strength = strength
        self.distance_min2 = distance_min2

    def apply(self, alpha: float) -> None:
        buf = self.graph.positions
        n = len(buf)
        if n < 2:
            return
        # dx[i, j] points from node i to node j
        dx = buf.x[None, :] - buf.x[:, None]
        dy = buf.y[None, :] - buf.y[:, None]
        off_diagonal = ~np.eye(n, dtype=bool)
        for i, j in zip(*np.nonzero((dx == 0) & off_diagonal)):
            dx[i, j] = self.jiggle()
        for i, j in zip(*np.nonzero((dy == 0) & off_diagonal)):
            dy[i, j] = self.jiggle()
        l2 = dx * dx + dy * dy
        l2 = np.where(l2 < self.distance_min2, np.sqrt(self.distance_min2 * l2), l2)
        with np.errstate(divide="ignore", invalid="ignore"):
            w = np.where(off_diagonal, self.strength * alpha / l2, 0.0)
        buf.vx += (dx * w).sum(axis=1)
        buf.vy += (dy * w).sum(axis=1)


class CenterForce(Force):
    """Translate the whole layout so its mean sits at ``(x, y)``."""

    name = "center"

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0):
        self.x = x
        self.y = y
        self.strength = strength

    def apply(self, alpha: float) -> None:
        buf = self.graph.positions
        if len(buf) == 0:
            return
        sx = (buf.x.mean() - self.x) * self.strength
        sy = (buf.y.mean() - self.y) * self.strength
        buf.x -= sx
        buf.y -= sy


class CollideForce(Force):
    """Push apart disks of ``radius`` whose predicted positions overlap."""

    name = "collide"

    def __init__(self, radius: float = 40.0, strength: float = 1.0, iterations: int = 1):
        self.radius = radius
        self.strength = strength
        self.iterations = iterations

    def apply(self, alpha: float) -> None:
        buf = self.graph.positions
        x, y, vx, vy = buf.x, buf.y, buf.vx, buf.vy
        n = len(buf)
        ri = rj = self.radius
        r = ri + rj
        # equal radii split the correction evenly
        share = (rj * rj) / (ri * ri + rj * rj)
        for _ in range(self.iterations):
            for i in range(n):
                xi = x[i] + vx[i]
                yi = y[i] + vy[i]
                for j in range(i + 1, n):
                    dx = xi - x[j] - vx[j]
                    dy = yi - y[j] - vy[j]
                    l2 = dx * dx + dy * dy
                    if l2 >= r * r:
                        continue
                    if dx == 0:
                        dx = self.jiggle()
                        l2 += dx * dx
                    if dy == 0:
                        dy = self.jiggle()
                        l2 += dy * dy
                    length = math.sqrt(l2)
                    k = (r - length) / length * self.strength
                    dx *= k
                    dy *= k
                    vx[i] += dx * share
                    vy[i] += dy * share
                    vx[j] -= dx * (1 - share)
                    vy[j] -= dy * (1 - share)


def default_forces(config, center: Optional[tuple] = None):
    """Build the link, charge, center and collide forces in application order."""
    cx, cy = center if center is not None else (0.0, 0.0)
    return [
        LinkForce(distance=config.link_distance),
        ManyBodyForce(strength=config.charge_strength, distance_min2=config.distance_min2),
        CenterForce(cx, cy, strength=config.center_strength),
        CollideForce(radius=config.collide_radius, strength=config.collide_strength),
    ]
