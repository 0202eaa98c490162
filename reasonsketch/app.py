# reasonsketch/app.py

import logging
import os
from dash import Dash

from .callbacks import CallbackRegistrar
from .config import AppConfig
from .layout import LayoutBuilder
from .session import GraphSession

LOGGER = logging.getLogger(__name__)

DEFAULT_ANALYSIS_PATH = os.path.join(
    os.path.dirname(__file__), "data", "sample_analysis.json"
)


def create_app(app_config: AppConfig = None) -> Dash:
    """Build the Dash app around a fresh graph session."""
    app_config = app_config or AppConfig.from_env()

    session = GraphSession(app_config)
    analysis_path = app_config.analysis_path or DEFAULT_ANALYSIS_PATH
    if os.path.exists(analysis_path):
        session.load_path(analysis_path)
    else:
        LOGGER.info("No analysis at %s; starting empty", analysis_path)

    app = Dash(__name__, suppress_callback_exceptions=True)
    app.config.prevent_initial_callbacks = "initial_duplicate"
    app.title = "ReasonSketch"

    layout_builder = LayoutBuilder(session)
    app.layout = layout_builder.create_layout()

    callback_registrar = CallbackRegistrar(app, layout_builder)
    callback_registrar.register_callbacks()
    return app


def main() -> None:
    app_config = AppConfig.from_env()
    logging.basicConfig(
        level=app_config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(app_config)
    # one request at a time: the simulation and its readers share state
    app.run(debug=False, threaded=False)


if __name__ == "__main__":
    main()
