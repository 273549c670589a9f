from __future__ import annotations

from engine.core.geometry import AABB
from engine.pens import Selector


def test_drag_normalizes_reverse_direction() -> None:
    sel = Selector()
    assert not sel.active and sel.bounds is None
    sel.start((10, 10))
    assert sel.active
    assert sel.bounds == AABB((10, 10), (10, 10))
    assert sel.drag_to((2, 15)) == AABB((2, 10), (10, 15))


def test_finish_keeps_bounds_and_clear_drops_them() -> None:
    sel = Selector()
    sel.drag_to((3, 3))  # アンカー無しの drag は開始点扱い
    sel.drag_to((5, 1))
    assert sel.finish() == AABB((3, 1), (5, 3))
    assert not sel.active
    assert sel.bounds == AABB((3, 1), (5, 3))
    sel.clear()
    assert sel.bounds is None


def test_first_drag_without_anchor_is_zero_box() -> None:
    sel = Selector()
    assert sel.drag_to((4, 7)) == AABB((4, 7), (4, 7))
    assert sel.active
    assert sel.anchor == (4.0, 7.0)
