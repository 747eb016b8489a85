"""
Layout configuration settings
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry of the node column layout (pixels)"""

    node_width: int = 240
    node_height: int = 48
    vertical_gap: int = 90
    horizontal_offset: int = 180
    base_x: int = 80
    base_y: int = 60
    view_width: int = 800
    min_view_height: int = 500
    bottom_padding: int = 120

    def __post_init__(self):
        """Validate configuration"""
        if self.node_width <= 0 or self.node_height <= 0:
            raise ValueError("node dimensions must be positive")
        if self.vertical_gap <= 0:
            raise ValueError("vertical_gap must be positive")
        if self.horizontal_offset <= 0:
            raise ValueError("horizontal_offset must be positive")
