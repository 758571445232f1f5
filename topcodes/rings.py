"""
Ring analysis along radial spokes.

From a candidate center the binary map is walked outward along evenly spaced
spokes, recording every foreground/background edge. Rings alternate ink and
paper starting with the ink core, so on a genuine marker the first
``ring_count - 2`` edges fall at whole multiples of the unit, and the next edge
closes the ink ring at ``ring_count - 1`` units (paper data sector) or runs on
through the data ring to ``ring_count`` units (ink data sector).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .locator import Candidate
from .registry import Circle
from .threshold import BinaryMap

# spoke walks go this far past the coarse outer radius
WALK_MARGIN = 1.5


@dataclass(frozen=True)
class RingProfile:
    center: Tuple[float, float]
    unit: float
    ring_count: int
    transitions: Tuple[Tuple[float, ...], ...]
    units: Tuple[Optional[float], ...]
    agreeing: int

    @property
    def outer_radius(self) -> float:
        return self.unit * self.ring_count

    @property
    def bounds(self) -> Circle:
        return Circle(self.center[0], self.center[1], self.outer_radius)


@dataclass(frozen=True)
class _Spoke:
    starts_in_foreground: bool
    edges: Tuple[float, ...]


def spoke_angles(count: int) -> np.ndarray:
    return np.arange(count, dtype=np.float64) * (2.0 * math.pi / count)


def walk_spokes(bmap: BinaryMap, cx: float, cy: float, angles: Sequence[float], limit: int) -> List[_Spoke]:
    """Edge distances along each spoke, in pixels.

    A spoke stops where its 3x3 sample would leave the image. Edges are
    reported half a step before the first sample on the far side.
    """

    steps = np.arange(limit + 1, dtype=np.float64)
    angles = np.asarray(angles, dtype=np.float64)
    xs = cx + np.outer(np.cos(angles), steps)
    ys = cy + np.outer(np.sin(angles), steps)
    xi = np.rint(xs)
    yi = np.rint(ys)
    inside = (xi >= 1) & (xi <= bmap.width - 2) & (yi >= 1) & (yi <= bmap.height - 2)
    values = bmap.majority(xs, ys)

    spokes: List[_Spoke] = []
    for k in range(len(angles)):
        outside = np.flatnonzero(~inside[k])
        stop = int(outside[0]) if outside.size else limit + 1
        v = values[k, :stop]
        if v.size == 0:
            spokes.append(_Spoke(False, ()))
            continue
        change = np.flatnonzero(v[1:] != v[:-1]) + 1
        spokes.append(_Spoke(bool(v[0]), tuple(float(t) - 0.5 for t in change)))
    return spokes


def spoke_unit(spoke: _Spoke, *, ring_count: int, tolerance: float) -> Optional[float]:
    """Unit size implied by one spoke, or None if its edges break the ring pattern."""
    fixed = ring_count - 2
    if not spoke.starts_in_foreground or len(spoke.edges) < fixed + 1:
        return None
    unit = spoke.edges[fixed - 1] / fixed
    if unit <= 0:
        return None
    for k in range(1, fixed):
        if abs(spoke.edges[k - 1] - k * unit) > tolerance * unit:
            return None
    outer = spoke.edges[fixed] / unit
    if not (ring_count - 1.5) <= outer <= (ring_count + 0.5):
        return None
    return unit


def _center_shift(spokes: Sequence[_Spoke], angles: np.ndarray, ring_count: int) -> Optional[np.ndarray]:
    """Least-squares center offset from opposite spoke pairs.

    For a circle of radius R seen from a point offset by s, the edge distances
    along opposite directions differ by exactly 2 s·û.
    """

    fixed = ring_count - 2
    half = len(spokes) // 2
    rows = []
    rhs = []
    for k in range(half):
        a, b = spokes[k], spokes[k + half]
        if not (a.starts_in_foreground and b.starts_in_foreground):
            continue
        if len(a.edges) < fixed or len(b.edges) < fixed:
            continue
        rows.append((math.cos(angles[k]), math.sin(angles[k])))
        rhs.append((a.edges[fixed - 1] - b.edges[fixed - 1]) / 2.0)
    if not rows:
        return None
    shift, *_ = np.linalg.lstsq(np.asarray(rows), np.asarray(rhs), rcond=None)
    return shift


def analyze_rings(
    bmap: BinaryMap,
    candidate: Candidate,
    *,
    ring_count: int = 4,
    spoke_count: int = 8,
    min_spokes: int = 6,
    spoke_tolerance: float = 0.25,
) -> Optional[RingProfile]:
    """Confirm the concentric ring structure around ``candidate``.

    Returns None when too few spokes agree on a unit size.
    """

    angles = spoke_angles(spoke_count)
    limit = int(math.ceil(WALK_MARGIN * (ring_count + 1) * candidate.unit)) + 2

    first = walk_spokes(bmap, candidate.x, candidate.y, angles, limit)
    shift = _center_shift(first, angles, ring_count)
    if shift is None or math.hypot(shift[0], shift[1]) > candidate.unit:
        return None
    cx = candidate.x + float(shift[0])
    cy = candidate.y + float(shift[1])

    spokes = walk_spokes(bmap, cx, cy, angles, limit)
    units = [spoke_unit(s, ring_count=ring_count, tolerance=spoke_tolerance) for s in spokes]
    valid = [u for u in units if u is not None]
    if len(valid) < min_spokes:
        return None

    median = float(np.median(valid))
    agreeing = [u for u in valid if abs(u - median) <= spoke_tolerance * median]
    if len(agreeing) < min_spokes:
        return None

    return RingProfile(
        center=(cx, cy),
        unit=float(np.mean(agreeing)),
        ring_count=ring_count,
        transitions=tuple(s.edges for s in spokes),
        units=tuple(units),
        agreeing=len(agreeing),
    )
