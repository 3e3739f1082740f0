"""
Lane Grid
=========
The road is `lanes` parallel vertical corridors of equal width, starting
`margin` pixels in from the left edge of the playfield.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class LaneGrid:
    lanes: int = 5
    lane_width: int = 80
    margin: int = 40

    def lane_from_x(self, x: float) -> int:
        """Lane index under x. Off-road positions fall outside [0, lanes)."""
        return int(math.floor((x - self.margin) / self.lane_width))

    def lane_x(self, lane: int) -> float:
        """Center x of a lane."""
        return self.margin + lane * self.lane_width + self.lane_width / 2

    def contains(self, lane: int) -> bool:
        return 0 <= lane < self.lanes

    def clamp(self, lane: int) -> int:
        return max(0, min(self.lanes - 1, lane))

    @property
    def left(self) -> float:
        return float(self.margin)

    @property
    def right(self) -> float:
        return float(self.margin + self.lanes * self.lane_width)
