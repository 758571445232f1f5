import numpy as np
import pytest

from topcodes.threshold import MAJORITY, BinaryMap, ThresholdMap


def test_uniform_image_is_all_background():
    bmap = ThresholdMap().apply(np.full((40, 60), 180.0))
    assert not bmap.mask.any()
    assert bmap.counts.max() == 0


def test_dark_square_on_light_paper_is_foreground():
    img = np.full((80, 80), 230.0)
    img[30:50, 30:50] = 20.0
    bmap = ThresholdMap().apply(img)

    assert bmap.mask[30:50, 30:50].all()
    assert bmap.mask.sum() == 400


def test_linear_lighting_gradient_stays_background():
    # serpentine rows plus the row-above blend cancel the running-average lag;
    # only a band at the dark end where rows turn around is allowed to flip
    img = np.tile(np.linspace(0.6, 1.0, 240) * 235.0, (60, 1))
    bmap = ThresholdMap().apply(img)
    assert not bmap.mask[:, 96:].any()


def test_counts_are_3x3_foreground_totals():
    mask = np.zeros((5, 5), dtype=bool)
    mask[1:4, 1:4] = True
    bmap = BinaryMap.from_mask(mask)

    assert bmap.count(2, 2) == 9
    assert bmap.count(0, 0) == 1
    assert bmap.count(1.4, 0.6) == 4
    assert bmap.majority(2, 2)
    assert not bmap.majority(0, 2)


def test_count_outside_image_reads_zero():
    bmap = BinaryMap.from_mask(np.ones((4, 4), dtype=bool))
    np.testing.assert_array_equal(bmap.count([-5, 10, 1], [1, 1, 1]), [0, 0, 9])


def test_majority_threshold_is_five_of_nine():
    assert MAJORITY == 5


def test_to_image_draws_foreground_black():
    mask = np.array([[True, False]])
    np.testing.assert_array_equal(BinaryMap.from_mask(mask).to_image(), [[0, 255]])


@pytest.mark.parametrize("kwargs", [dict(sensitivity=0.0), dict(sensitivity=1.5), dict(window=1)])
def test_bad_threshold_settings(kwargs):
    with pytest.raises(ValueError):
        ThresholdMap(**kwargs)


def test_threshold_needs_2d_input():
    with pytest.raises(ValueError, match="2-D"):
        ThresholdMap().apply(np.zeros((4, 4, 3)))
