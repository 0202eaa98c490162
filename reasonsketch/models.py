import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

LOGGER = logging.getLogger(__name__)


class AnalysisFormatError(ValueError):
    """Raised when an analysis payload does not match the expected schema."""


class ReasoningMode(str, Enum):
    MAP = "map_reasoning"
    REWRITE = "rewrite_reasoning"
    TEACH = "teach_thinking"


class NodeType(str, Enum):
    EMPIRICAL = "empirical"
    CAUSAL = "causal"
    NORMATIVE = "normative"
    EMOTIONAL = "emotional"
    ANECDOTAL = "anecdotal"
    UNDEFINED = "undefined"


class LinkStrength(str, Enum):
    SUPPORTED = "supported"
    WEAK = "weak"
    UNDEFINED = "undefined"
    CIRCULAR = "circular"


@dataclass(frozen=True)
class Node:
    """A single claim in a reasoning map."""

    id: str
    text: str
    type: NodeType = NodeType.UNDEFINED


@dataclass(frozen=True)
class Link:
    """Directed relation between two nodes.

    The wire format uses ``from``/``to``; ``from`` is reserved in Python so the
    attributes are named ``source_id``/``target_id``.
    """

    source_id: str
    target_id: str
    strength: LinkStrength = LinkStrength.UNDEFINED


@dataclass(frozen=True)
class ReasoningMap:
    nodes: Tuple[Node, ...] = ()
    links: Tuple[Link, ...] = ()


@dataclass(frozen=True)
class FragilePoint:
    node_id: str
    why_fragile: str


@dataclass(frozen=True)
class AnalysisResponse:
    """Structured decomposition returned by the inference collaborator."""

    reasoning_map: ReasoningMap
    fragile_points: Tuple[FragilePoint, ...] = ()
    missing_variables: Tuple[str, ...] = ()
    rewritten_reasoning: Optional[str] = None
    changes_made: Optional[Tuple[str, ...]] = None
    teaching_points: Optional[Tuple[str, ...]] = None

    @property
    def mode(self) -> ReasoningMode:
        """Infer which analysis mode produced this response."""
        if self.rewritten_reasoning is not None:
            return ReasoningMode.REWRITE
        if self.teaching_points is not None:
            return ReasoningMode.TEACH
        return ReasoningMode.MAP

    def find_node(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        for node in self.reasoning_map.nodes:
            if node.id == node_id:
                return node
        return None


def _require(payload: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in payload:
        raise AnalysisFormatError(f"{where}: missing required field '{key}'")
    return payload[key]


def _require_str(payload: Mapping[str, Any], key: str, where: str) -> str:
    value = _require(payload, key, where)
    if not isinstance(value, str):
        raise AnalysisFormatError(f"{where}: field '{key}' must be a string")
    return value


def _require_list(payload: Mapping[str, Any], key: str, where: str) -> List[Any]:
    value = _require(payload, key, where)
    if not isinstance(value, list):
        raise AnalysisFormatError(f"{where}: field '{key}' must be a list")
    return value


def _parse_enum(enum_cls, value: Any, where: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise AnalysisFormatError(
            f"{where}: '{value}' is not one of {allowed}"
        ) from None


def _optional_str_list(payload: Mapping[str, Any], key: str) -> Optional[Tuple[str, ...]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise AnalysisFormatError(f"analysis: field '{key}' must be a list of strings")
    return tuple(value)


def parse_reasoning_map(payload: Mapping[str, Any]) -> ReasoningMap:
    """Validate and convert a ``reasoning_map`` object."""
    if not isinstance(payload, Mapping):
        raise AnalysisFormatError("reasoning_map must be an object")

    nodes = []
    for i, raw in enumerate(_require_list(payload, "nodes", "reasoning_map")):
        where = f"reasoning_map.nodes[{i}]"
        if not isinstance(raw, Mapping):
            raise AnalysisFormatError(f"{where} must be an object")
        nodes.append(
            Node(
                id=_require_str(raw, "id", where),
                text=_require_str(raw, "text", where),
                type=_parse_enum(NodeType, _require(raw, "type", where), where),
            )
        )

    links = []
    for i, raw in enumerate(_require_list(payload, "links", "reasoning_map")):
        where = f"reasoning_map.links[{i}]"
        if not isinstance(raw, Mapping):
            raise AnalysisFormatError(f"{where} must be an object")
        links.append(
            Link(
                source_id=_require_str(raw, "from", where),
                target_id=_require_str(raw, "to", where),
                strength=_parse_enum(
                    LinkStrength, _require(raw, "strength", where), where
                ),
            )
        )

    return ReasoningMap(nodes=tuple(nodes), links=tuple(links))


def parse_analysis(payload: Mapping[str, Any]) -> AnalysisResponse:
    """
    Validate a decoded analysis payload and build an AnalysisResponse.

    Args:
        payload: Decoded JSON object as returned by the inference call.

    Returns:
        AnalysisResponse with immutable nested values.

    Raises:
        AnalysisFormatError: if a required field is missing or mistyped.
    """
    if not isinstance(payload, Mapping):
        raise AnalysisFormatError("analysis must be a JSON object")

    reasoning_map = parse_reasoning_map(_require(payload, "reasoning_map", "analysis"))

    fragile_points = []
    for i, raw in enumerate(_require_list(payload, "fragile_points", "analysis")):
        where = f"fragile_points[{i}]"
        if not isinstance(raw, Mapping):
            raise AnalysisFormatError(f"{where} must be an object")
        fragile_points.append(
            FragilePoint(
                node_id=_require_str(raw, "node_id", where),
                why_fragile=_require_str(raw, "why_fragile", where),
            )
        )

    missing = _require_list(payload, "missing_variables", "analysis")
    if not all(isinstance(v, str) for v in missing):
        raise AnalysisFormatError("analysis: missing_variables must be strings")

    rewritten = payload.get("rewritten_reasoning")
    if rewritten is not None and not isinstance(rewritten, str):
        raise AnalysisFormatError("analysis: rewritten_reasoning must be a string")

    return AnalysisResponse(
        reasoning_map=reasoning_map,
        fragile_points=tuple(fragile_points),
        missing_variables=tuple(missing),
        rewritten_reasoning=rewritten,
        changes_made=_optional_str_list(payload, "changes_made"),
        teaching_points=_optional_str_list(payload, "teaching_points"),
    )


def loads_analysis(text: Union[str, bytes]) -> AnalysisResponse:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisFormatError(f"analysis is not valid JSON: {exc.msg}") from exc
    return parse_analysis(payload)


def load_analysis(path: Union[str, Path]) -> AnalysisResponse:
    """Read an analysis JSON file from disk."""
    path = Path(path)
    LOGGER.info("Loading analysis from %s", path)
    return loads_analysis(path.read_text(encoding="utf-8"))


def reasoning_map_to_dict(reasoning_map: ReasoningMap) -> Dict[str, List[Dict[str, str]]]:
    """Serialise a reasoning map back to its wire shape."""
    return {
        "nodes": [
            {"id": n.id, "text": n.text, "type": n.type.value}
            for n in reasoning_map.nodes
        ],
        "links": [
            {"from": l.source_id, "to": l.target_id, "strength": l.strength.value}
            for l in reasoning_map.links
        ],
    }
