import math

import numpy as np
import pytest

from topcodes import PixelBuffer, ScanParams, Scanner, scan
from topcodes.decoder import wrap_angle
from topcodes.validator import checksum


def _angle_diff(a: float, b: float) -> float:
    return abs(wrap_angle(a - b))


def test_canonical_marker_round_trip(marker_image):
    img = marker_image([dict(code=55, cx=100, cy=100, unit=10)])
    found = scan(PixelBuffer.from_array(img))

    assert len(found) == 1
    top = found[0]
    assert top.code == 55
    assert top.x == pytest.approx(100.0, abs=1.5)
    assert top.y == pytest.approx(100.0, abs=1.5)
    assert _angle_diff(top.orientation, 0.0) < 0.1
    assert top.unit_size == pytest.approx(10.0, rel=0.1)


def test_rotation_is_reported_as_orientation(marker_image):
    theta = math.radians(37)
    img = marker_image([dict(code=93, cx=100, cy=100, unit=10, orientation=theta)])
    found = scan(PixelBuffer.from_array(img))

    assert [t.code for t in found] == [93]
    assert _angle_diff(found[0].orientation, theta) < 0.1


def test_scale_changes_unit_size_only(marker_image):
    small = scan(PixelBuffer.from_array(marker_image([dict(code=31, cx=100, cy=100, unit=10)])))
    large = scan(
        PixelBuffer.from_array(
            marker_image([dict(code=31, cx=150, cy=150, unit=15)], width=300, height=300)
        )
    )

    assert [t.code for t in small] == [31]
    assert [t.code for t in large] == [31]
    assert large[0].unit_size / small[0].unit_size == pytest.approx(1.5, abs=0.1)


def test_blank_image_has_no_markers():
    img = np.full((120, 160), 128, dtype=np.uint8)
    assert scan(PixelBuffer.from_array(img)) == []


def test_single_marker_yields_one_candidate(marker_image):
    scanner = Scanner()
    found = scanner.scan(PixelBuffer.from_array(marker_image([dict(code=55, cx=100, cy=100, unit=10)])))

    assert len(found) == 1
    assert scanner.timings["candidates"] == 1
    assert scanner.rejections["overlap"] == 0


def test_overlapping_marker_is_rejected_by_registry(marker_image):
    # the lower marker keeps an intact core and inner rings, so it still yields
    # a candidate; it is found after the upper one and overlaps its circle
    img = marker_image(
        [
            dict(code=31, cx=100, cy=140, unit=10),
            dict(code=55, cx=100, cy=80, unit=10),
        ],
    )
    scanner = Scanner()
    found = scanner.scan(PixelBuffer.from_array(img))

    assert [t.code for t in found] == [55]
    assert scanner.rejections["overlap"] >= 1


def _three_markers(marker_image):
    return marker_image(
        [
            dict(code=31, cx=60, cy=60, unit=8),
            dict(code=55, cx=180, cy=70, unit=8, orientation=1.0),
            dict(code=93, cx=110, cy=170, unit=8, orientation=-2.0),
        ],
        width=240,
        height=240,
    )


def test_multiple_markers_in_raster_order(marker_image):
    found = scan(PixelBuffer.from_array(_three_markers(marker_image)))

    assert [t.code for t in found] == [31, 55, 93]
    assert _angle_diff(found[1].orientation, 1.0) < 0.1
    assert _angle_diff(found[2].orientation, -2.0) < 0.1


def test_records_never_overlap_and_pass_checksum(marker_image):
    found = scan(PixelBuffer.from_array(_three_markers(marker_image)))

    assert found
    for i, a in enumerate(found):
        assert checksum(a.code, 5)
        for b in found[i + 1:]:
            assert math.hypot(a.x - b.x, a.y - b.y) >= a.radius + b.radius


def test_scan_is_deterministic(marker_image):
    buffer = PixelBuffer.from_array(_three_markers(marker_image))
    assert scan(buffer) == scan(buffer)


def test_registry_choice_does_not_change_results(marker_image):
    buffer = PixelBuffer.from_array(_three_markers(marker_image))
    linear = scan(buffer, ScanParams(registry="linear"))
    kdtree = scan(buffer, ScanParams(registry="kdtree"))
    assert linear == kdtree


def test_rgb_and_grayscale_scan_the_same(marker_image):
    gray = marker_image([dict(code=55, cx=100, cy=100, unit=10)])
    rgb = np.repeat(gray[..., None], 3, axis=2)
    assert scan(PixelBuffer.from_array(gray)) == scan(PixelBuffer.from_array(rgb))


def test_lighting_gradient_is_tolerated(marker_image):
    img = marker_image([dict(code=93, cx=150, cy=100, unit=10, orientation=0.5)], width=240)
    gradient = np.linspace(0.6, 1.0, img.shape[1])[None, :]
    lit = np.clip(img.astype(np.float64) * gradient, 0, 255).astype(np.uint8)

    found = scan(PixelBuffer.from_array(lit))
    assert [t.code for t in found] == [93]


def test_max_diameter_hides_large_markers(marker_image):
    img = marker_image([dict(code=55, cx=100, cy=100, unit=10)])
    scanner = Scanner()
    scanner.set_max_code_diameter(40)
    assert scanner.scan(PixelBuffer.from_array(img)) == []
    assert scanner.params.max_diameter == 40


def test_scanner_reports_timings_and_rejections(marker_image):
    scanner = Scanner()
    found = scanner.scan(PixelBuffer.from_array(marker_image([dict(code=31, cx=100, cy=100, unit=10)])))

    assert scanner.timings["found"] == len(found) == 1
    assert scanner.timings["candidates"] >= 1
    assert set(scanner.rejections) == {"overlap", "rings", "decode", "checksum"}
    assert scanner.binary_map is not None
    assert scanner.binary_map.mask.shape == (200, 200)


def test_tiny_image_warns_and_returns_nothing():
    img = np.full((10, 10), 200, dtype=np.uint8)
    with pytest.warns(RuntimeWarning, match="smaller than the minimum marker diameter"):
        assert scan(PixelBuffer.from_array(img)) == []


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (dict(sensitivity=0.0), "sensitivity"),
        (dict(min_diameter=100, max_diameter=50), "min_diameter"),
        (dict(spoke_count=7), "spoke_count"),
        (dict(min_spokes=9), "min_spokes"),
        (dict(checksum_bits=14), "checksum_bits"),
        (dict(registry="quadtree"), "Unknown registry"),
    ],
)
def test_scan_params_validation(kwargs, message):
    with pytest.raises(ValueError, match=message):
        ScanParams(**kwargs)
