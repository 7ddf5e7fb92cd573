"""
Battle view geometry.

Maps battle space onto a square screen viewport centred on the home ship
and answers "is this point visible" for culling.
"""

from __future__ import annotations

from typing import Optional

from .vecmath import Vector2D


BOTTOM_BAR_HEIGHT_PX = 50  # Height of the statistics bar under the view
VIEWPORT_FILL = 0.9  # Fraction of the free window area used by the view


class BattleView:
    """
    Square window onto battle space.

    Attributes:
        size: Side of the view, in bsu.
        center: Centre of the view (the home ship position).
    """

    def __init__(self, size: float = 2.0, center: Optional[Vector2D] = None) -> None:
        self.size = size
        self.center = center.copy() if center is not None else Vector2D.zero()

    @property
    def max_dim(self) -> float:
        return self.size

    def in_view(self, point: Vector2D) -> bool:
        """True if the point lies strictly inside the view square."""
        half = self.size / 2
        return (self.center.x - half < point.x < self.center.x + half
                and self.center.y - half < point.y < self.center.y + half)

    def to_screen(self, point: Vector2D, screen_px: int) -> tuple[int, int]:
        """Convert a battle-space point to pixel coordinates (Y down)."""
        half = self.size / 2
        sx = (point.x - self.center.x + half) / self.size * screen_px
        sy = (1.0 - (point.y - self.center.y + half) / self.size) * screen_px
        return int(sx), int(sy)

    def scale(self, dim: float, screen_px: int) -> int:
        """Convert a battle-space length to pixels."""
        return int(dim / self.size * screen_px)

    @staticmethod
    def viewport_size(window_w: int, window_h: int,
                      bottom_bar: int = BOTTOM_BAR_HEIGHT_PX) -> int:
        """Side in pixels of the square viewport for a window of the given size."""
        return max(0, int(min(window_w, window_h - bottom_bar) * VIEWPORT_FILL))
