"""
Bit sampling and orientation.

Each sector of the marker is sampled along its center line at the middle of
every ring. The inner rings must read ink, paper, ink; the outermost ring
carries one bit per sector. Small errors in the unit estimate and the unknown
rotation are absorbed by trying a grid of unit scalings and arc offsets and
keeping the reading with the most decisive data samples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .rings import RingProfile
from .threshold import MAJORITY, BinaryMap
from .validator import DEFAULT_SECTORS, rotate_lowest

UNIT_VARIANTS = (0, -1, 1, -2, 2)
UNIT_STEP = 0.05
DEFAULT_ARC_STEPS = 10
NEIGHBOURHOOD = 9


@dataclass(frozen=True)
class Reading:
    bits: int
    code: int
    orientation: float
    unit: float
    confidence: int


def wrap_angle(theta: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    wrapped = math.fmod(theta + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def sample_sectors(
    bmap: BinaryMap,
    center: Sequence[float],
    units: Sequence[float],
    arcs: Sequence[float],
    *,
    sectors: int,
    ring_count: int,
) -> np.ndarray:
    """3x3 counts at every (unit, arc offset, sector, ring) sample point."""

    arc = 2.0 * math.pi / sectors
    theta = np.asarray(arcs, dtype=np.float64)[:, None] + np.arange(sectors)[None, :] * arc
    radii = np.asarray(units, dtype=np.float64)[:, None] * (np.arange(ring_count) + 0.5)[None, :]
    xs = center[0] + radii[:, None, None, :] * np.cos(theta)[None, :, :, None]
    ys = center[1] + radii[:, None, None, :] * np.sin(theta)[None, :, :, None]
    return bmap.count(xs, ys)


def confidence(counts: np.ndarray) -> np.ndarray:
    """Data-ring decisiveness per reading; 0 where the bullseye rings don't match."""
    rings = counts.shape[-1]
    expect = np.arange(rings - 1) % 2 == 0
    structure = np.all((counts[..., : rings - 1] >= MAJORITY) == expect, axis=(-2, -1))
    data = counts[..., rings - 1]
    score = np.abs(2 * data - NEIGHBOURHOOD).sum(axis=-1)
    return np.where(structure, score, 0)


def plateau_center(flags: np.ndarray) -> float:
    """Middle index of the longest circular run of True values."""
    n = len(flags)
    if flags.all():
        return 0.0
    offset = int(np.flatnonzero(~flags)[0])
    best_start, best_len = 0, 0
    run_start, run_len = 0, 0
    for step in range(1, n + 1):
        if flags[(offset + step) % n]:
            if run_len == 0:
                run_start = offset + step
            run_len += 1
            if run_len > best_len:
                best_start, best_len = run_start, run_len
        else:
            run_len = 0
    return best_start + (best_len - 1) / 2.0


def decode(
    bmap: BinaryMap,
    profile: RingProfile,
    *,
    sectors: int = DEFAULT_SECTORS,
    arc_steps: int = DEFAULT_ARC_STEPS,
) -> Optional[Reading]:
    """Read the data ring of a confirmed bullseye.

    The returned code is the smallest cyclic rotation of the sampled bits;
    the orientation is the rotation of the marker that brings sector 0 of
    that canonical code to angle 0.
    """

    arc = 2.0 * math.pi / sectors
    ring_count = profile.ring_count
    units = [profile.unit * (1.0 + UNIT_STEP * k) for k in UNIT_VARIANTS]
    arcs = np.arange(arc_steps) * (arc / arc_steps)

    counts = sample_sectors(bmap, profile.center, units, arcs, sectors=sectors, ring_count=ring_count)
    scores = confidence(counts)
    peaks = scores.max(axis=1)
    best = int(np.argmax(peaks))
    if peaks[best] <= 0:
        return None

    unit = units[best]
    flags = scores[best] == peaks[best]
    for arca in (plateau_center(flags) * arc / arc_steps, float(arcs[int(np.argmax(flags))])):
        final = sample_sectors(bmap, profile.center, [unit], [arca], sectors=sectors, ring_count=ring_count)
        score = int(confidence(final)[0, 0])
        if score > 0:
            break
    else:
        return None

    data = final[0, 0, :, ring_count - 1] >= MAJORITY
    bits = sum(1 << s for s in range(sectors) if data[s])
    code, shift = rotate_lowest(bits, sectors)
    return Reading(
        bits=bits,
        code=code,
        orientation=wrap_angle(arca - shift * arc),
        unit=unit,
        confidence=score,
    )
