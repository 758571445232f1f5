"""
Candidate center discovery.

Each row of the binary map is split into runs. A foreground run flanked by
two background runs, each closed off by foreground again, is what a row
through the middle of a bullseye looks like (ink ring, paper, ink core,
paper, ink ring). Every row crossing the core produces such a seed, so a
seed is only promoted on the last row where its core run stops growing:
at least as long as the run above it and strictly longer than the one below.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List

import numpy as np

from .registry import Circle
from .threshold import BinaryMap


@dataclass(frozen=True)
class Candidate:
    x: int
    y: int
    length: int
    unit: float
    radius: float

    @property
    def bounds(self) -> Circle:
        return Circle(float(self.x), float(self.y), float(self.radius))


@dataclass(frozen=True)
class _Seed:
    x: int
    length: int
    unit: float


class _RowRuns:
    """Run-length table of one row."""

    def __init__(self, row: np.ndarray):
        row = np.asarray(row, dtype=bool)
        change = np.flatnonzero(row[1:] != row[:-1]) + 1
        self.starts = np.concatenate(([0], change))
        self.ends = np.concatenate((change, [row.size]))
        self.lengths = self.ends - self.starts
        self.values = row[self.starts]

    def length_at(self, x: int) -> int:
        """Length of the foreground run covering column ``x`` (0 on background)."""
        i = int(np.searchsorted(self.starts, x, side="right")) - 1
        if i < 0 or not self.values[i]:
            return 0
        return int(self.lengths[i])

    def seeds(self, min_unit: float, max_unit: float) -> List[_Seed]:
        out: List[_Seed] = []
        n = len(self.starts)
        first = 2 if self.values[0] else 3
        for i in range(first, n - 2, 2):
            core = int(self.lengths[i])
            gl = int(self.lengths[i - 1])
            gr = int(self.lengths[i + 1])
            gaps = gl + gr
            if abs(gl - gr) > min(gl, gr):
                continue
            if abs(gaps - core) > min(gaps, core):
                continue
            unit = (gaps + core) / 4.0
            if not min_unit <= unit <= max_unit:
                continue
            mid = int(self.starts[i]) + (core - 1) // 2
            out.append(_Seed(x=mid, length=core, unit=unit))
        return out


def locate_candidates(
    bmap: BinaryMap,
    *,
    min_diameter: float,
    max_diameter: float,
    ring_count: int = 4,
) -> List[Candidate]:
    """Return candidate centers in raster order (top to bottom, left to right).

    Only three rows of run tables are held at any time: a seed found on one
    row is judged once the row below it has been read.
    """

    units_across = 2.0 * ring_count
    min_unit = float(min_diameter) / units_across
    max_unit = float(max_diameter) / units_across

    candidates: List[Candidate] = []
    window: Deque[_RowRuns] = deque(maxlen=3)
    pending: Deque[List[_Seed]] = deque(maxlen=3)

    for y in range(bmap.height):
        runs = _RowRuns(bmap.mask[y])
        window.append(runs)
        pending.append(runs.seeds(min_unit, max_unit))
        if len(window) < 3:
            continue

        above, _, below = window
        for seed in pending[1]:
            # ties go downward: only the last row of the widest step survives
            if seed.length >= above.length_at(seed.x) and seed.length > below.length_at(seed.x):
                candidates.append(
                    Candidate(
                        x=seed.x,
                        y=y - 1,
                        length=seed.length,
                        unit=seed.unit,
                        radius=seed.unit * ring_count,
                    )
                )

    return candidates
