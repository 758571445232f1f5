import math

import numpy as np
import pytest

INK = 20
PAPER = 235
SECTORS = 13
ARC = 2.0 * math.pi / SECTORS


def render_topcode(canvas, code, cx, cy, unit, orientation=0.0, ring_count=4):
    """Paint a TopCode plus a one-unit paper quiet zone onto ``canvas`` in place.

    Sector ``s`` of ``code`` is centred at ``orientation + s * ARC`` (x right,
    y down) and is ink when bit ``s`` is set.
    """
    h, w = canvas.shape[:2]
    yy, xx = np.mgrid[0:h, 0:w]
    dx = xx - cx
    dy = yy - cy
    r = np.hypot(dx, dy) / unit
    phi = np.arctan2(dy, dx) - orientation
    sector = np.rint(phi / ARC).astype(int) % SECTORS
    bit = (int(code) >> sector) & 1

    data = ring_count - 1
    ink = r < 1
    for ring in range(2, data, 2):
        ink |= (r >= ring) & (r < ring + 1)
    ink |= (r >= data) & (r < ring_count) & (bit == 1)

    region = r < ring_count + 1
    canvas[region] = PAPER
    canvas[region & ink] = INK
    return canvas


@pytest.fixture
def marker_image():
    """Factory: grey canvas with the given markers rendered on it, in order."""

    def _make(markers, width=200, height=200, background=PAPER):
        canvas = np.full((height, width), background, dtype=np.uint8)
        for m in markers:
            render_topcode(canvas, **m)
        return canvas

    return _make
