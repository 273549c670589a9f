from __future__ import annotations

import io

import pytest

# What this tests
# - 公開入口だけで「挿入 → ドラッグ選択 → 移動 → 複製 → 書き出し」が通る


@pytest.mark.smoke
def test_select_move_duplicate_export_roundtrip():
    from common import setup_default_logging
    from engine.core import AABB
    from engine.pens import Selector
    from engine.strokes import BrushStroke, SelectionEngine, ShapeStroke, StrokesState

    setup_default_logging()
    with StrokesState(num_workers=2) as state:
        engine = SelectionEngine(state)
        state.insert_stroke(BrushStroke([[0, 0], [5, 5], [10, 0]], pressures=[0.2, 1.0, 0.2]))
        state.insert_stroke(ShapeStroke.ellipse((40, 40), (5, 5)))

        sel = Selector()
        sel.start((-10, -10))
        sel.drag_to((60, 60))
        assert engine.update_selection_for_selector(sel)
        assert engine.selection_len() == 2

        engine.translate_selection((1.0, 1.0))
        engine.resize_selection(AABB((0, 0), (100, 100)))
        assert engine.duplicate_selection()
        assert state.selection_bounds.approx_eq(AABB((20, 20), (120, 120)), tol=1e-6)

        buf = io.StringIO()
        assert engine.export_selection_as_svg(buf)
        assert buf.getvalue().count("\n") >= 4
