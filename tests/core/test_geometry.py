from __future__ import annotations

import numpy as np
import pytest

from engine.core.geometry import AABB, union_bounds


def test_constructor_normalizes_to_float_tuples() -> None:
    b = AABB(np.array([0, 1]), [2, 3])
    assert b.mins == (0.0, 1.0)
    assert b.maxs == (2.0, 3.0)
    assert isinstance(b.mins[0], float)


def test_constructor_rejects_inverted_and_non_finite() -> None:
    with pytest.raises(ValueError):
        AABB((1.0, 0.0), (0.0, 1.0))
    with pytest.raises(ValueError):
        AABB((0.0, 0.0), (float("nan"), 1.0))
    with pytest.raises(ValueError):
        AABB((0.0, float("-inf")), (1.0, 1.0))


def test_new_positive_and_from_points() -> None:
    assert AABB.new_positive((5, 1), (2, 4)) == AABB((2, 1), (5, 4))
    pts = np.array([[3.0, -1.0], [0.0, 2.0], [1.0, 1.0]])
    assert AABB.from_points(pts) == AABB((0, -1), (3, 2))
    with pytest.raises(ValueError):
        AABB.from_points(np.zeros((0, 2)))
    with pytest.raises(ValueError):
        AABB.from_points(np.zeros((3, 3)))


def test_contains_is_inclusive_on_boundary() -> None:
    outer = AABB((0, 0), (10, 10))
    assert outer.contains(AABB((0, 0), (10, 10)))
    assert outer.contains(AABB((2, 2), (3, 3)))
    assert not outer.contains(AABB((2, 2), (10.5, 3)))


def test_intersects_includes_touching() -> None:
    a = AABB((0, 0), (10, 10))
    assert a.intersects(AABB((10, 10), (12, 12)))
    assert a.intersects(AABB((-5, 5), (1, 6)))
    assert not a.intersects(AABB((10.01, 0), (12, 1)))
    assert not a.intersects(AABB((0, -3), (1, -0.5)))


def test_contains_all_vectorized() -> None:
    sel = AABB((0, 0), (10, 10))
    inside = np.array([[1, 1, 2, 2], [5, 5, 10, 10]], dtype=np.float64)
    partly = np.array([[1, 1, 2, 2], [5, 5, 11, 10]], dtype=np.float64)
    assert sel.contains_all(inside)
    assert not sel.contains_all(partly)
    assert sel.contains_all(np.empty((0, 4)))


def test_merged_and_translate() -> None:
    a = AABB((0, 0), (1, 1))
    b = AABB((3, -2), (4, 0.5))
    assert a.merged(b) == AABB((0, -2), (4, 1))
    assert a.translate((2, -1)) == AABB((2, -1), (3, 0))


def test_loosened_grows_and_collapses_to_center() -> None:
    b = AABB((0, 0), (4, 2))
    assert b.loosened(1) == AABB((-1, -1), (5, 3))
    # 高さ 2 に対し -1.5 縮めると y 軸は中心へ潰れる
    shrunk = b.loosened(-1.5)
    assert shrunk.mins == (1.5, 1.0)
    assert shrunk.maxs == (2.5, 1.0)


def test_extents_and_center() -> None:
    b = AABB((1, 2), (4, 8))
    assert b.extents == (3.0, 6.0)
    assert b.center == (2.5, 5.0)


def test_union_bounds() -> None:
    assert union_bounds([]) is None
    boxes = [AABB((0, 0), (1, 1)), AABB((5, 5), (6, 7)), AABB((-1, 2), (0, 3))]
    assert union_bounds(boxes) == AABB((-1, 0), (6, 7))


def test_approx_eq() -> None:
    a = AABB((0, 0), (1, 1))
    assert a.approx_eq(AABB((1e-12, 0), (1, 1 - 1e-12)))
    assert not a.approx_eq(AABB((0.1, 0), (1, 1)))
