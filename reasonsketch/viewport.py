from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Transform:
    """Uniform scale ``k`` then translate ``(x, y)``: screen = k * p + t."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, px: float, py: float) -> Tuple[float, float]:
        return px * self.k + self.x, py * self.k + self.y

    def invert(self, sx: float, sy: float) -> Tuple[float, float]:
        return (sx - self.x) / self.k, (sy - self.y) / self.k


class Viewport:
    """
    Pan/zoom state for the drawing surface.

    Only the transform changes here; node positions are never touched.
    """

    def __init__(
        self,
        width: float = 800,
        height: float = 600,
        min_scale: float = 0.1,
        max_scale: float = 4.0,
    ):
        self.width = width
        self.height = height
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.transform = Transform()
        self._pan_origin: Optional[Tuple[float, float]] = None

    @property
    def scale(self) -> float:
        return self.transform.k

    @property
    def panning(self) -> bool:
        return self._pan_origin is not None

    def clamp(self, k: float) -> float:
        return max(self.min_scale, min(self.max_scale, k))

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def reset(self) -> None:
        self.transform = Transform()
        self._pan_origin = None

    def scale_to(self, k: float, anchor: Optional[Tuple[float, float]] = None) -> Transform:
        """Zoom to ``k`` keeping the screen point ``anchor`` fixed."""
        ax, ay = anchor if anchor is not None else (self.width / 2, self.height / 2)
        px, py = self.transform.invert(ax, ay)
        k = self.clamp(k)
        self.transform = Transform(k, ax - px * k, ay - py * k)
        return self.transform

    def scale_by(self, factor: float, anchor: Optional[Tuple[float, float]] = None) -> Transform:
        return self.scale_to(self.transform.k * factor, anchor)

    def pan_by(self, dx: float, dy: float) -> Transform:
        t = self.transform
        self.transform = Transform(t.k, t.x + dx, t.y + dy)
        return self.transform

    def begin_pan(self, sx: float, sy: float) -> None:
        self._pan_origin = (sx, sy)

    def pan_to(self, sx: float, sy: float) -> None:
        if self._pan_origin is None:
            return
        ox, oy = self._pan_origin
        self.pan_by(sx - ox, sy - oy)
        self._pan_origin = (sx, sy)

    def end_pan(self) -> None:
        self._pan_origin = None

    def to_screen(self, px: float, py: float) -> Tuple[float, float]:
        return self.transform.apply(px, py)

    def to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return self.transform.invert(sx, sy)

    def visible_bounds(self) -> Tuple[float, float, float, float]:
        """Return ``(x0, x1, y0, y1)`` of the visible area in simulation units."""
        x0, y0 = self.to_world(0, 0)
        x1, y1 = self.to_world(self.width, self.height)
        return x0, x1, y0, y1

    def set_visible_bounds(self, x0: float, x1: float, y0: float, y1: float) -> Transform:
        """
        Fit the transform to a requested visible area, as reported by a host.

        The requested horizontal span decides the scale (clamped); the centre of
        the requested area stays at the centre of the screen.
        """
        span = abs(x1 - x0)
        if span <= 0:
            return self.transform
        k = self.clamp(self.width / span)
        cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
        self.transform = Transform(k, self.width / 2 - cx * k, self.height / 2 - cy * k)
        return self.transform
