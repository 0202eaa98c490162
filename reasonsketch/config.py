import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForceConfig:
    """Parameters for the force simulation."""

    link_distance: float = 150.0
    charge_strength: float = -400.0  # negative repels
    collide_radius: float = 40.0
    collide_strength: float = 1.0
    center_strength: float = 1.0
    distance_min2: float = 1.0
    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    velocity_decay: float = 0.4
    drag_alpha_target: float = 0.3
    initial_radius: float = 10.0
    seed: int = 0


@dataclass(frozen=True)
class RenderConfig:
    """Sizes and offsets for drawn primitives."""

    node_radius: float = 15.0
    node_stroke_width: float = 1.5
    link_width: float = 2.0
    link_opacity: float = 0.6
    arrow_tip_offset: float = 18.0  # distance from target centre to arrow tip
    arrow_length: float = 10.0
    arrow_half_width: float = 5.0
    label_max_chars: int = 20
    label_keep_chars: int = 17
    label_dx: float = 20.0
    label_dy: float = 5.0
    label_font_size: int = 12
    tooltip_offset: float = 15.0
    min_scale: float = 0.1
    max_scale: float = 4.0


@dataclass(frozen=True)
class AppConfig:
    """Settings for the Dash host."""

    analysis_path: Optional[str] = None
    width: int = 800
    height: int = 600
    frame_interval_ms: int = 50
    ticks_per_frame: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build a config from ``REASONSKETCH_*`` environment variables."""
        env = os.environ if environ is None else environ
        defaults = cls()

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            if raw is None or raw == "":
                return default
            try:
                value = int(raw)
            except ValueError:
                LOGGER.warning("Ignoring non-integer %s=%r", name, raw)
                return default
            if value <= 0:
                LOGGER.warning("Ignoring non-positive %s=%r", name, raw)
                return default
            return value

        return cls(
            analysis_path=env.get("REASONSKETCH_ANALYSIS_PATH") or None,
            width=_int("REASONSKETCH_WIDTH", defaults.width),
            height=_int("REASONSKETCH_HEIGHT", defaults.height),
            frame_interval_ms=_int(
                "REASONSKETCH_FRAME_INTERVAL_MS", defaults.frame_interval_ms
            ),
            ticks_per_frame=_int(
                "REASONSKETCH_TICKS_PER_FRAME", defaults.ticks_per_frame
            ),
            log_level=env.get("REASONSKETCH_LOG_LEVEL", defaults.log_level).upper(),
        )
