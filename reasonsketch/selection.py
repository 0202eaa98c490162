"""Hover tooltip state and the outward stream of selected node IDs."""

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .adapter import SimNode

LOGGER = logging.getLogger(__name__)

SelectionListener = Callable[[str], None]


@dataclass(frozen=True)
class TooltipState:
    visible: bool
    x: float
    y: float
    content: str
    type: str
    offset: float = 15.0

    @property
    def anchor(self) -> Tuple[float, float]:
        """Where the tooltip box is drawn: down and right of the pointer."""
        return self.x + self.offset, self.y + self.offset


class TooltipCoordinator:
    def __init__(self, offset: float = 15.0):
        self.offset = offset
        self.state: Optional[TooltipState] = None
        self.node_index: Optional[int] = None

    def enter(self, node: SimNode, x: float, y: float) -> TooltipState:
        self.node_index = node.index
        self.state = TooltipState(
            visible=True,
            x=x,
            y=y,
            content=node.text,
            type=node.type.value,
            offset=self.offset,
        )
        return self.state

    def move(self, x: float, y: float) -> Optional[TooltipState]:
        if self.state is not None:
            self.state = replace(self.state, x=x, y=y)
        return self.state

    def leave(self) -> None:
        self.state = None
        self.node_index = None


class SelectionCoordinator:
    def __init__(self):
        self.selected_id: Optional[str] = None
        self._listeners: List[SelectionListener] = []

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def select(self, node_id: str) -> None:
        self.selected_id = node_id
        LOGGER.debug("Node selected: %s", node_id)
        for listener in list(self._listeners):
            listener(node_id)

    def clear(self) -> None:
        self.selected_id = None

    def close(self) -> None:
        self._listeners.clear()
