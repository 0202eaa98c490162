"""Force-directed reasoning maps rendered with Dash and Plotly."""

__version__ = "0.1.0"
