"""
TopCode scanning pipeline.

pixels -> binary map -> candidate centers -> overlap filter -> ring analysis
-> bit decoding -> checksum -> record

The binary map is finished before any candidate is located, and candidates
are confirmed strictly in raster order so that the spatial registry rejects
later overlapping candidates the same way on every run.
"""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from .buffer import PixelBuffer
from .decoder import DEFAULT_ARC_STEPS, decode
from .locator import locate_candidates
from .registry import REGISTRIES, make_registry
from .rings import analyze_rings
from .threshold import DEFAULT_SENSITIVITY, DEFAULT_WINDOW, BinaryMap, ThresholdMap
from .topcode import TopCode
from .validator import DEFAULT_CHECKSUM_BITS, DEFAULT_SECTORS, validate

# Default maximum unit of 80 pixels
DEFAULT_MAX_DIAMETER = 640.0
DEFAULT_MIN_DIAMETER = 16.0

REJECT_OVERLAP = "overlap"
REJECT_RINGS = "rings"
REJECT_DECODE = "decode"
REJECT_CHECKSUM = "checksum"


@dataclass
class ScanParams:
    """Tunable constants of the scan.

    The numeric defaults suit printed markers under ordinary room lighting;
    treat them as starting points to validate against your own images.
    """

    sensitivity: float = DEFAULT_SENSITIVITY
    window: int = DEFAULT_WINDOW
    min_diameter: float = DEFAULT_MIN_DIAMETER
    max_diameter: float = DEFAULT_MAX_DIAMETER
    ring_count: int = 4
    sectors: int = DEFAULT_SECTORS
    spoke_count: int = 8
    min_spokes: int = 6
    spoke_tolerance: float = 0.25
    arc_steps: int = DEFAULT_ARC_STEPS
    checksum_bits: int = DEFAULT_CHECKSUM_BITS
    registry: str = "linear"

    def __post_init__(self) -> None:
        if not 0.0 < self.sensitivity <= 1.0:
            raise ValueError(f"sensitivity must be in (0, 1]; got {self.sensitivity}")
        if self.window < 2:
            raise ValueError(f"window must be at least 2; got {self.window}")
        if not 0 < self.min_diameter <= self.max_diameter:
            raise ValueError(
                f"Need 0 < min_diameter <= max_diameter; got {self.min_diameter}, {self.max_diameter}"
            )
        if self.ring_count < 3:
            raise ValueError(f"ring_count must be at least 3; got {self.ring_count}")
        if self.sectors < 2:
            raise ValueError(f"sectors must be at least 2; got {self.sectors}")
        if self.spoke_count < 4 or self.spoke_count % 2:
            raise ValueError(f"spoke_count must be an even number >= 4; got {self.spoke_count}")
        if not 1 <= self.min_spokes <= self.spoke_count:
            raise ValueError(f"min_spokes must be in [1, {self.spoke_count}]; got {self.min_spokes}")
        if not 0.0 < self.spoke_tolerance < 1.0:
            raise ValueError(f"spoke_tolerance must be in (0, 1); got {self.spoke_tolerance}")
        if self.arc_steps < 1:
            raise ValueError(f"arc_steps must be positive; got {self.arc_steps}")
        if not 0 < self.checksum_bits <= self.sectors:
            raise ValueError(f"checksum_bits must be in [1, {self.sectors}]; got {self.checksum_bits}")
        if self.registry not in REGISTRIES:
            raise ValueError(
                f"Unknown registry {self.registry!r}; choose one of: {', '.join(sorted(REGISTRIES))}"
            )


class Scanner:
    """Finds TopCodes in pixel buffers.

    ``binary_map``, ``timings`` and ``rejections`` describe the most recent
    scan and are replaced on the next one.
    """

    def __init__(self, params: Optional[ScanParams] = None):
        self.params = params or ScanParams()
        self.binary_map: Optional[BinaryMap] = None
        self.timings: Dict[str, Any] = {}
        self.rejections: Dict[str, int] = {}

    def set_max_code_diameter(self, diameter: float) -> None:
        """Cap the diameter (pixels) of codes the scanner will accept.

        A realistic cap cuts false positives and speeds up the scan; too low a
        cap hides real codes.
        """
        self.params = replace(self.params, max_diameter=float(diameter))

    def scan(self, buffer: PixelBuffer) -> List[TopCode]:
        p = self.params
        self.rejections = {REJECT_OVERLAP: 0, REJECT_RINGS: 0, REJECT_DECODE: 0, REJECT_CHECKSUM: 0}

        t0 = time.perf_counter()
        intensity = buffer.luminance()
        self.binary_map = ThresholdMap(p.sensitivity, p.window).apply(intensity)
        t1 = time.perf_counter()

        h, w = buffer.shape
        if min(h, w) < p.min_diameter:
            warnings.warn(
                f"Image {w}x{h} is smaller than the minimum marker diameter "
                f"({p.min_diameter:g}px); no markers can be found.",
                RuntimeWarning,
                stacklevel=2,
            )

        candidates = locate_candidates(
            self.binary_map,
            min_diameter=p.min_diameter,
            max_diameter=p.max_diameter,
            ring_count=p.ring_count,
        )
        t2 = time.perf_counter()

        found = self._confirm(candidates)
        t3 = time.perf_counter()

        self.timings = {
            "threshold_s": t1 - t0,
            "locate_s": t2 - t1,
            "decode_s": t3 - t2,
            "total_s": t3 - t0,
            "candidates": len(candidates),
            "found": len(found),
        }
        return found

    def _confirm(self, candidates) -> List[TopCode]:
        p = self.params
        bmap = self.binary_map
        registry = make_registry(p.registry)
        found: List[TopCode] = []

        for candidate in candidates:
            if registry.query_overlap(candidate.bounds):
                self.rejections[REJECT_OVERLAP] += 1
                continue

            profile = analyze_rings(
                bmap,
                candidate,
                ring_count=p.ring_count,
                spoke_count=p.spoke_count,
                min_spokes=p.min_spokes,
                spoke_tolerance=p.spoke_tolerance,
            )
            if profile is None:
                self.rejections[REJECT_RINGS] += 1
                continue

            reading = decode(bmap, profile, sectors=p.sectors, arc_steps=p.arc_steps)
            if reading is None:
                self.rejections[REJECT_DECODE] += 1
                continue
            if validate(reading, checksum_bits=p.checksum_bits) is None:
                self.rejections[REJECT_CHECKSUM] += 1
                continue

            record = TopCode(
                code=reading.code,
                center=profile.center,
                orientation=reading.orientation,
                unit_size=reading.unit,
                ring_count=p.ring_count,
            )
            # the refined footprint can be larger than the coarse estimate
            if registry.query_overlap(record.bounds):
                self.rejections[REJECT_OVERLAP] += 1
                continue
            registry.insert(record.bounds)
            found.append(record)

        return found


def scan(buffer: PixelBuffer, params: Optional[ScanParams] = None) -> List[TopCode]:
    """Scan one buffer with a throwaway :class:`Scanner`."""
    return Scanner(params).scan(buffer)
