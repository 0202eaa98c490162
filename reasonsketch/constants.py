from types import MappingProxyType
from typing import Mapping, Optional

from .models import LinkStrength, NodeType

NODE_COLORS: Mapping[NodeType, str] = MappingProxyType(
    {
        NodeType.EMPIRICAL: "#3b82f6",  # Blue
        NodeType.CAUSAL: "#8b5cf6",  # Purple
        NodeType.NORMATIVE: "#10b981",  # Emerald
        NodeType.EMOTIONAL: "#f43f5e",  # Rose
        NodeType.ANECDOTAL: "#f59e0b",  # Amber
        NodeType.UNDEFINED: "#64748b",  # Slate
    }
)

DEFAULT_NODE_COLOR = "#94a3b8"

LINK_COLORS: Mapping[LinkStrength, str] = MappingProxyType(
    {
        LinkStrength.SUPPORTED: "#475569",
        LinkStrength.WEAK: "#dc2626",
        LinkStrength.UNDEFINED: "#94a3b8",
        LinkStrength.CIRCULAR: "#eab308",
    }
)

# SVG-style dash arrays; None means a solid stroke.
LINK_DASHES: Mapping[LinkStrength, Optional[str]] = MappingProxyType(
    {
        LinkStrength.SUPPORTED: None,
        LinkStrength.WEAK: "5,5",
        LinkStrength.UNDEFINED: None,
        LinkStrength.CIRCULAR: None,
    }
)

NODE_STROKE_COLOR = "#ffffff"
LABEL_COLOR = "#e2e8f0"
BACKGROUND_COLOR = "#0f172a"
TOOLTIP_BACKGROUND = "#1e293b"

TYPE_LEGEND_TITLE = "Node Types"
LINK_LEGEND_ENTRIES = (
    (LinkStrength.SUPPORTED, "Supported"),
    (LinkStrength.WEAK, "Weak / Assumed"),
)


def node_color(node_type) -> str:
    return NODE_COLORS.get(node_type, DEFAULT_NODE_COLOR)


def link_color(strength) -> str:
    return LINK_COLORS.get(strength, LINK_COLORS[LinkStrength.UNDEFINED])


def link_dash(strength) -> Optional[str]:
    return LINK_DASHES.get(strength)
