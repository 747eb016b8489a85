"""
Layout Engine
Deterministic positions and connector routing for a node sequence.

Each node sits one row below its predecessor and is indented by its branch
level. Connectors join consecutive nodes center to center: a single straight
segment when both share a column, otherwise a vertical drop at the previous
node's column followed by a horizontal run to the current node.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from convomap.models import ConversationNode
from convomap.text_to_graph_pipeline.layout.layout_config import LayoutConfig


@dataclass(frozen=True)
class PositionedNode:
    node: ConversationNode
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def to_dict(self) -> dict:
        return {
            "id": self.node.id,
            "label": self.node.label,
            "branchLevel": self.node.branch_level,
            "sequenceIndex": self.node.sequence_index,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class ConnectorSegment:
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def is_vertical(self) -> bool:
        return self.x1 == self.x2

    @property
    def is_horizontal(self) -> bool:
        return self.y1 == self.y2

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}


@dataclass
class Connector:
    """Route between node `from_index` and node `from_index + 1`"""
    from_index: int
    to_index: int
    segments: List[ConnectorSegment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "from": self.from_index,
            "to": self.to_index,
            "segments": [segment.to_dict() for segment in self.segments],
        }


@dataclass
class LayoutResult:
    positions: List[PositionedNode]
    connectors: List[Connector]
    width: float
    height: float

    @property
    def view_box(self) -> str:
        return f"0 0 {self.width:g} {self.height:g}"

    def to_dict(self) -> dict:
        return {
            "nodes": [position.to_dict() for position in self.positions],
            "connectors": [connector.to_dict() for connector in self.connectors],
            "width": self.width,
            "height": self.height,
            "viewBox": self.view_box,
        }


def _route(prev: PositionedNode, curr: PositionedNode) -> List[ConnectorSegment]:
    px, py = prev.center
    cx, cy = curr.center
    if px == cx:
        return [ConnectorSegment(px, py, cx, cy)]
    return [
        ConnectorSegment(px, py, px, cy),
        ConnectorSegment(px, cy, cx, cy),
    ]


def compute_layout(nodes: Sequence[ConversationNode], config: Optional[LayoutConfig] = None) -> LayoutResult:
    """
    Lay out nodes in sequence order.

    Pure function of the nodes (and config): calling it twice on the same
    sequence, live or replayed, yields equal results.
    """
    config = config or LayoutConfig()

    positions = [
        PositionedNode(
            node=node,
            x=config.base_x + node.branch_level * config.horizontal_offset,
            y=config.base_y + row * config.vertical_gap,
            width=config.node_width,
            height=config.node_height,
        )
        for row, node in enumerate(nodes)
    ]

    connectors = [
        Connector(from_index=i - 1, to_index=i, segments=_route(positions[i - 1], positions[i]))
        for i in range(1, len(positions))
    ]

    height = max(
        config.min_view_height,
        config.base_y + len(positions) * config.vertical_gap + config.bottom_padding,
    )
    return LayoutResult(positions=positions, connectors=connectors, width=config.view_width, height=height)
