"""
Viewport Controller
Pan (pointer drag) and zoom (wheel) state machine for the rendered graph.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

MIN_SCALE = 0.5
MAX_SCALE = 3.0
ZOOM_STEP = 0.1


class ViewState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class ViewTransform:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def to_svg(self) -> str:
        return f"translate({self.translate_x:g}, {self.translate_y:g}) scale({self.scale:g})"

    def to_dict(self) -> dict:
        return {
            "scale": self.scale,
            "translate": {"x": self.translate_x, "y": self.translate_y},
            "transform": self.to_svg(),
        }


def clamp_scale(scale: float) -> float:
    return min(MAX_SCALE, max(MIN_SCALE, scale))


class ViewportController:
    """
    idle --pointer_down--> dragging --pointer_up/pointer_leave--> idle

    pointer_move only pans while dragging. wheel zooms in either state, keeping
    the world point under the pointer fixed on screen. Every input is valid;
    there are no failure states.
    """

    def __init__(self, transform: Optional[ViewTransform] = None):
        self.transform = transform or ViewTransform()
        self.state = ViewState.IDLE
        self._anchor: Optional[Tuple[float, float]] = None

    @property
    def is_dragging(self) -> bool:
        return self.state is ViewState.DRAGGING

    def pointer_down(self, x: float, y: float) -> None:
        self.state = ViewState.DRAGGING
        self._anchor = (x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if not self.is_dragging or self._anchor is None:
            return
        ax, ay = self._anchor
        self.transform.translate_x += x - ax
        self.transform.translate_y += y - ay
        self._anchor = (x, y)

    def pointer_up(self) -> None:
        self.state = ViewState.IDLE
        self._anchor = None

    def pointer_leave(self) -> None:
        self.pointer_up()

    def wheel(self, delta_y: float, px: float, py: float) -> None:
        """
        Zoom one step around the pointer at (px, py) in viewport coordinates.
        Scrolling up (negative delta_y) zooms in.
        """
        current = self.transform.scale
        new_scale = clamp_scale(current - math.copysign(ZOOM_STEP, delta_y) if delta_y else current)
        if new_scale == current:
            return

        world_x, world_y = self.screen_to_world(px, py)
        self.transform.scale = new_scale
        self.transform.translate_x = px - world_x * new_scale
        self.transform.translate_y = py - world_y * new_scale

    def screen_to_world(self, x: float, y: float) -> Tuple[float, float]:
        t = self.transform
        return (x - t.translate_x) / t.scale, (y - t.translate_y) / t.scale

    def world_to_screen(self, x: float, y: float) -> Tuple[float, float]:
        t = self.transform
        return x * t.scale + t.translate_x, y * t.scale + t.translate_y

    def reset(self) -> None:
        self.transform = ViewTransform()
        self.pointer_up()

    def to_dict(self) -> dict:
        return {"state": self.state.value, **self.transform.to_dict()}
