"""
Layout Engine Module
Positions nodes and routes connectors for rendering
"""

from convomap.text_to_graph_pipeline.layout.layout_config import LayoutConfig
from convomap.text_to_graph_pipeline.layout.layout_engine import (
    Connector,
    ConnectorSegment,
    LayoutResult,
    PositionedNode,
    compute_layout,
)

__all__ = ['LayoutConfig', 'Connector', 'ConnectorSegment', 'LayoutResult', 'PositionedNode', 'compute_layout']
