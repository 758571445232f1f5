import numpy as np
import pytest

from topcodes.registry import Circle, KDTreeRegistry, LinearRegistry, make_registry


def test_touching_circles_do_not_overlap():
    assert not Circle(0, 0, 5).overlaps(Circle(10, 0, 5))
    assert Circle(0, 0, 5).overlaps(Circle(9.99, 0, 5))


def test_contained_circle_overlaps():
    assert Circle(0, 0, 20).overlaps(Circle(3, 4, 1))


@pytest.mark.parametrize("kind", ["linear", "kdtree"])
def test_empty_registry_reports_no_overlap(kind):
    reg = make_registry(kind)
    assert len(reg) == 0
    assert not reg.query_overlap(Circle(0, 0, 100))


@pytest.mark.parametrize("kind", ["linear", "kdtree"])
def test_insert_then_query(kind):
    reg = make_registry(kind)
    reg.insert(Circle(50, 50, 10))
    assert len(reg) == 1
    assert reg.query_overlap(Circle(65, 50, 6))
    assert not reg.query_overlap(Circle(70, 50, 10))


def test_kdtree_matches_linear_on_random_circles():
    rng = np.random.default_rng(0)
    linear, kdtree = LinearRegistry(), KDTreeRegistry()
    for x, y, r in zip(rng.uniform(0, 500, 60), rng.uniform(0, 500, 60), rng.uniform(2, 40, 60)):
        c = Circle(float(x), float(y), float(r))
        assert linear.query_overlap(c) == kdtree.query_overlap(c)
        # insert only non-overlapping circles, the way the scanner does
        if not linear.query_overlap(c):
            linear.insert(c)
            kdtree.insert(c)
    assert len(linear) == len(kdtree) > 1


def test_unknown_registry_kind():
    with pytest.raises(ValueError, match="Unknown registry"):
        make_registry("quadtree")
