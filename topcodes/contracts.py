"""
Output contract for scan summaries.

A documentation-as-code block merged into every summary JSON the CLI writes,
so a detections file can be read without the code that produced it.
"""

from __future__ import annotations

from typing import Dict


TOPCODE_DETECTIONS_PURPOSE = "topcode_detections"
TOPCODE_DETECTIONS_SEMANTICS = (
    "Each detection is one decoded TopCode whose data ring passed the checksum. "
    "Detections are listed in raster detection order, not sorted by code, and "
    "no two detections have overlapping outer circles."
)

TOPCODE_DETECTIONS_CONTRACT: Dict[str, object] = {
    "schema_version": "1",
    "purpose": TOPCODE_DETECTIONS_PURPOSE,
    "semantic_unit": "marker",
    "coordinates": "pixel; x right, y down",
    "orientation_units": "radians",
    "ordering": "raster_detection_order",
    "notes": TOPCODE_DETECTIONS_SEMANTICS,
}
