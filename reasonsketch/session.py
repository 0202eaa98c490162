import base64
import logging
from typing import Optional

import plotly.graph_objects as go

from .config import AppConfig, ForceConfig, RenderConfig
from .graph_builder import GraphBuilder
from .models import (
    AnalysisFormatError,
    AnalysisResponse,
    ReasoningMap,
    load_analysis,
    loads_analysis,
)
from .surface import InteractionSurface

LOGGER = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to load the analysis. Check the file and try again."


class GraphSession:
    """
    Transient state for one running app: the loaded analysis, the
    interaction surface drawing it, and the figure builder.
    """

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        render_config: Optional[RenderConfig] = None,
        force_config: Optional[ForceConfig] = None,
    ):
        self.app_config = app_config or AppConfig()
        self.render_config = render_config or RenderConfig()
        self.surface = InteractionSurface(self.render_config, force_config)
        self.graph_builder = GraphBuilder(self.render_config)
        self.analysis: Optional[AnalysisResponse] = None
        self.error: Optional[str] = None
        self.version = 0
        self.size = (self.app_config.width, self.app_config.height)
        self.surface.render(ReasoningMap(), *self.size)

    @property
    def running(self) -> bool:
        return self.surface.running

    def load(self, analysis: AnalysisResponse) -> None:
        self.analysis = analysis
        self.error = None
        self.version += 1
        self.surface.selection.clear()
        self.surface.viewport.reset()
        self.surface.render(analysis.reasoning_map, *self.size)

    def fail(self, message: str) -> None:
        """Drop the current analysis and remember a user-facing failure."""
        self.analysis = None
        self.error = message
        self.version += 1
        self.surface.selection.clear()
        self.surface.render(ReasoningMap(), *self.size)

    def load_path(self, path: str) -> bool:
        try:
            analysis = load_analysis(path)
        except (OSError, AnalysisFormatError) as exc:
            LOGGER.error("Could not load analysis from %s: %s", path, exc)
            self.fail(FAILURE_MESSAGE)
            return False
        self.load(analysis)
        return True

    def load_upload(self, contents: str) -> bool:
        """Load a ``dcc.Upload`` data URL holding analysis JSON."""
        try:
            _, encoded = contents.split(",", 1)
            analysis = loads_analysis(base64.b64decode(encoded))
        except (ValueError, AnalysisFormatError) as exc:
            LOGGER.error("Rejected uploaded analysis: %s", exc)
            self.fail(FAILURE_MESSAGE)
            return False
        self.load(analysis)
        return True

    def resize(self, width: int, height: int) -> bool:
        """Fit the drawing to a new container size; True if it was redrawn."""
        if (width, height) == self.size:
            return False
        self.size = (width, height)
        if self.analysis is None:
            return self.surface.render(ReasoningMap(), width, height)
        return self.surface.render(self.analysis.reasoning_map, width, height)

    def advance(self, ticks: Optional[int] = None) -> bool:
        """Run up to ``ticks`` simulation frames; True if any ran."""
        ticks = ticks or self.app_config.ticks_per_frame
        ran = False
        for _ in range(ticks):
            if not self.surface.frame():
                break
            ran = True
        return ran

    def figure(self) -> go.Figure:
        return self.graph_builder.build_figure(self.surface.scene, self.surface.viewport)

    def close(self) -> None:
        self.surface.teardown()
