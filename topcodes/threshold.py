"""
Adaptive thresholding.

Wellner's running-average threshold ("Adaptive Thresholding for the
DigitalDesk", EuroPARC EPC-93-110): each pixel is compared against an
exponentially decaying sum of the pixels visited just before it, blended with
the sum recorded one row up. Rows are walked in serpentine order so the
running sum carries over between physically adjacent pixels at the row ends.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import ndimage
from scipy.signal import lfilter

DEFAULT_SENSITIVITY = 0.975
DEFAULT_WINDOW = 32

# 3x3 neighbourhood samples need at least this many foreground pixels
MAJORITY = 5
_KERNEL = np.ones((3, 3), dtype=np.uint8)


@dataclass
class BinaryMap:
    """Per-pixel foreground classification plus 3x3 neighbourhood counts."""

    mask: np.ndarray
    counts: np.ndarray

    @classmethod
    def from_mask(cls, mask: np.ndarray) -> "BinaryMap":
        mask = np.asarray(mask, dtype=bool)
        counts = ndimage.convolve(mask.astype(np.uint8), _KERNEL, mode="constant", cval=0)
        return cls(mask=mask, counts=counts)

    @property
    def width(self) -> int:
        return int(self.mask.shape[1])

    @property
    def height(self) -> int:
        return int(self.mask.shape[0])

    def count(self, xs, ys) -> np.ndarray:
        """Foreground count (0..9) of the 3x3 block around each rounded (x, y).

        Coordinates outside the image read as 0.
        """
        xi = np.rint(np.asarray(xs, dtype=np.float64)).astype(np.int64)
        yi = np.rint(np.asarray(ys, dtype=np.float64)).astype(np.int64)
        xi, yi = np.broadcast_arrays(xi, yi)
        inside = (xi >= 0) & (xi < self.width) & (yi >= 0) & (yi < self.height)
        out = np.zeros(xi.shape, dtype=np.int64)
        out[inside] = self.counts[yi[inside], xi[inside]]
        return out

    def majority(self, xs, ys) -> np.ndarray:
        return self.count(xs, ys) >= MAJORITY

    def to_image(self) -> np.ndarray:
        """Foreground as black, background as white; for threshold debugging."""
        return np.where(self.mask, 0, 255).astype(np.uint8)


class ThresholdMap:
    """Turns an intensity image into a :class:`BinaryMap`.

    The running sum lives only for the duration of :meth:`apply`; nothing is
    carried from one image to the next.
    """

    def __init__(self, sensitivity: float = DEFAULT_SENSITIVITY, window: int = DEFAULT_WINDOW):
        if not 0.0 < sensitivity <= 1.0:
            raise ValueError(f"sensitivity must be in (0, 1]; got {sensitivity}")
        if window < 2:
            raise ValueError(f"window must be at least 2 pixels; got {window}")
        self.sensitivity = float(sensitivity)
        self.window = int(window)

    def apply(self, intensity: np.ndarray) -> BinaryMap:
        intensity = np.asarray(intensity, dtype=np.float64)
        if intensity.ndim != 2:
            raise ValueError(f"Expected a 2-D intensity image; got shape {intensity.shape}")
        h, w = intensity.shape
        s = float(self.window)
        decay = 1.0 - 1.0 / s

        sums = np.empty((h, w), dtype=np.float64)
        mask = np.empty((h, w), dtype=bool)

        # Seed with the global mean so the first row starts from a settled average
        running = float(intensity.mean()) * s

        for j in range(h):
            reverse = j % 2 == 1
            row = intensity[j, ::-1] if reverse else intensity[j]
            row_sums, _ = lfilter([1.0], [1.0, -decay], row, zi=[decay * running])
            running = float(row_sums[-1])
            if reverse:
                row_sums = row_sums[::-1]
            sums[j] = row_sums

            if j == 0:
                threshold = row_sums / s
            else:
                threshold = (row_sums + sums[j - 1]) / (2.0 * s)
            mask[j] = intensity[j] < threshold * self.sensitivity

        return BinaryMap.from_mask(mask)
