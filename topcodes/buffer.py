"""
Pixel buffer descriptor.

The scanner only needs an intensity value per coordinate, so any 8-bit
layout reducible to luminance is accepted. Buffers are borrowed for the
duration of a scan and never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np


class PixelBufferError(ValueError):
    """Raised when a buffer's dimensions, stride or layout are inconsistent."""


# layout name -> (channel count, indices of colour channels)
LAYOUTS: Dict[str, tuple] = {
    "L": (1, (0,)),
    "RGB": (3, (0, 1, 2)),
    "BGR": (3, (0, 1, 2)),
    "RGBA": (4, (0, 1, 2)),
    "BGRA": (4, (0, 1, 2)),
}
LAYOUT_ALIASES = {"GRAY": "L", "GREY": "L", "GRAYSCALE": "L", "LUMINANCE": "L"}


def normalize_layout(layout: str) -> str:
    key = str(layout).upper()
    key = LAYOUT_ALIASES.get(key, key)
    if key not in LAYOUTS:
        raise PixelBufferError(
            f"Unsupported channel layout {layout!r}; supported: {', '.join(sorted(LAYOUTS))}"
        )
    return key


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Raw 8-bit image samples plus the geometry needed to address them.

    ``stride`` is the number of bytes between the starts of consecutive rows
    and defaults to ``width * channels`` (tightly packed rows).
    """

    data: Any
    width: int
    height: int
    layout: str = "RGB"
    stride: Optional[int] = None
    _samples: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise PixelBufferError(
                f"Buffer dimensions must be positive; got {self.width}x{self.height}"
            )
        layout = normalize_layout(self.layout)
        object.__setattr__(self, "layout", layout)
        channels = LAYOUTS[layout][0]
        row_bytes = int(self.width) * channels
        stride = row_bytes if self.stride is None else int(self.stride)
        if stride < row_bytes:
            raise PixelBufferError(
                f"Stride {stride} is smaller than one row of {self.width} {layout} pixels ({row_bytes} bytes)"
            )
        object.__setattr__(self, "stride", stride)

        samples = _as_samples(self.data)
        needed = stride * (int(self.height) - 1) + row_bytes
        if samples.size < needed:
            raise PixelBufferError(
                f"Buffer holds {samples.size} samples; {self.width}x{self.height} {layout} "
                f"with stride {stride} needs at least {needed}"
            )
        object.__setattr__(self, "_samples", samples)

    @property
    def channels(self) -> int:
        return LAYOUTS[self.layout][0]

    @property
    def shape(self) -> tuple:
        return (int(self.height), int(self.width))

    @classmethod
    def from_array(cls, arr: np.ndarray, layout: Optional[str] = None) -> "PixelBuffer":
        """Wrap an HxW or HxWxC uint8 array, inferring the layout from its shape."""
        arr = np.asarray(arr)
        if arr.ndim == 2:
            h, w = arr.shape
            c = 1
        elif arr.ndim == 3:
            h, w, c = arr.shape
        else:
            raise PixelBufferError(f"Expected an HxW or HxWxC array; got shape {arr.shape}")

        if layout is None:
            inferred = {1: "L", 3: "RGB", 4: "RGBA"}
            if c not in inferred:
                raise PixelBufferError(f"Cannot infer a layout for {c} channels")
            layout = inferred[c]
        elif LAYOUTS[normalize_layout(layout)][0] != c:
            raise PixelBufferError(f"Layout {layout!r} does not match {c} channels")

        return cls(data=np.ascontiguousarray(arr).reshape(-1), width=w, height=h, layout=layout)

    def luminance(self) -> np.ndarray:
        """Per-pixel intensity (0..255) as an HxW float32 array."""
        h, w = self.shape
        channels, colour = LAYOUTS[self.layout]
        rows = np.lib.stride_tricks.as_strided(
            self._samples,
            shape=(h, w * channels),
            strides=(self.stride * self._samples.itemsize, self._samples.itemsize),
            writeable=False,
        )
        pixels = rows.reshape(h, w, channels)
        if len(colour) == 1:
            return pixels[..., 0].astype(np.float32)
        return pixels[..., list(colour)].astype(np.float32).mean(axis=2)


def _as_samples(data: Any) -> np.ndarray:
    if isinstance(data, np.ndarray):
        if data.dtype != np.uint8:
            raise PixelBufferError(f"Expected 8-bit samples; got dtype {data.dtype}")
        return np.ascontiguousarray(data).reshape(-1)
    try:
        return np.frombuffer(memoryview(data), dtype=np.uint8)
    except TypeError as exc:
        raise PixelBufferError(f"Unsupported buffer type {type(data).__name__}") from exc
