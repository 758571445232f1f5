"""
Spatial registry of accepted marker footprints.

Both registries answer the same question: does a circle overlap any circle
already inserted during this scan? ``LinearRegistry`` scans a list, which is
fine for the handful of markers a frame usually holds; ``KDTreeRegistry``
answers from a ``cKDTree`` once counts grow.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

import numpy as np
from scipy.spatial import cKDTree


@dataclass(frozen=True)
class Circle:
    x: float
    y: float
    r: float

    def overlaps(self, other: "Circle") -> bool:
        """True when the centers are closer than the sum of the radii."""
        return math.hypot(self.x - other.x, self.y - other.y) < self.r + other.r


class SpatialRegistry(ABC):
    """Append-only set of circles with an overlap query."""

    @abstractmethod
    def insert(self, bounds: Circle) -> None:
        ...

    @abstractmethod
    def query_overlap(self, bounds: Circle) -> bool:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class LinearRegistry(SpatialRegistry):
    def __init__(self) -> None:
        self._circles: List[Circle] = []

    def insert(self, bounds: Circle) -> None:
        self._circles.append(bounds)

    def query_overlap(self, bounds: Circle) -> bool:
        return any(c.overlaps(bounds) for c in self._circles)

    def __len__(self) -> int:
        return len(self._circles)


class KDTreeRegistry(SpatialRegistry):
    """Registry backed by a k-d tree over circle centers.

    The tree is rebuilt lazily on the first query after an insert. A query
    gathers every center within ``r + max_r`` and then applies the exact
    circle test, so results match :class:`LinearRegistry`.
    """

    def __init__(self) -> None:
        self._circles: List[Circle] = []
        self._max_r = 0.0
        self._tree: Optional[cKDTree] = None

    def insert(self, bounds: Circle) -> None:
        self._circles.append(bounds)
        self._max_r = max(self._max_r, float(bounds.r))
        self._tree = None

    def query_overlap(self, bounds: Circle) -> bool:
        if not self._circles:
            return False
        if self._tree is None:
            xy = np.asarray([(c.x, c.y) for c in self._circles], dtype=np.float64)
            self._tree = cKDTree(xy)
        near = self._tree.query_ball_point((bounds.x, bounds.y), r=float(bounds.r) + self._max_r)
        return any(self._circles[int(i)].overlaps(bounds) for i in near)

    def __len__(self) -> int:
        return len(self._circles)


REGISTRIES: Dict[str, Type[SpatialRegistry]] = {
    "linear": LinearRegistry,
    "kdtree": KDTreeRegistry,
}


def make_registry(kind: str = "linear") -> SpatialRegistry:
    try:
        return REGISTRIES[kind]()
    except KeyError as exc:
        raise ValueError(
            f"Unknown registry {kind!r}; choose one of: {', '.join(sorted(REGISTRIES))}"
        ) from exc
