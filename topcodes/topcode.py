"""Decoded marker record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .registry import Circle


@dataclass(frozen=True)
class TopCode:
    """One decoded marker.

    ``center`` is in pixel coordinates (x right, y down), ``orientation`` in
    radians within (-pi, pi], and ``unit_size`` is the width of one ring in
    pixels.
    """

    code: int
    center: Tuple[float, float]
    orientation: float
    unit_size: float
    ring_count: int = 4

    @property
    def x(self) -> float:
        return self.center[0]

    @property
    def y(self) -> float:
        return self.center[1]

    @property
    def radius(self) -> float:
        return self.unit_size * self.ring_count

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius

    @property
    def bounds(self) -> Circle:
        return Circle(self.x, self.y, self.radius)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": int(self.code),
            "x": float(self.x),
            "y": float(self.y),
            "orientation": float(self.orientation),
            "unit_size": float(self.unit_size),
            "diameter": float(self.diameter),
        }
