"""TopCode fiducial marker scanner."""

__version__ = "0.1.0"

from .buffer import PixelBuffer, PixelBufferError  # noqa: E402,F401
from .registry import Circle, KDTreeRegistry, LinearRegistry, SpatialRegistry, make_registry  # noqa: E402,F401
from .scanner import ScanParams, Scanner, scan  # noqa: E402,F401
from .threshold import BinaryMap, ThresholdMap  # noqa: E402,F401
from .topcode import TopCode  # noqa: E402,F401
from .validator import checksum, valid_codes  # noqa: E402,F401

__all__ = [
    "BinaryMap",
    "Circle",
    "KDTreeRegistry",
    "LinearRegistry",
    "PixelBuffer",
    "PixelBufferError",
    "ScanParams",
    "Scanner",
    "SpatialRegistry",
    "ThresholdMap",
    "TopCode",
    "checksum",
    "make_registry",
    "scan",
    "valid_codes",
]
