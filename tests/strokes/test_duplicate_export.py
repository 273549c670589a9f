from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from common import settings
from engine.core.geometry import AABB
from engine.export.svg import SVG_NS, SvgExportError
from engine.strokes import MarkerStroke, SelectionEngine, ShapeStroke, VectorImage

# What this tests
# - duplicate_selection: オフセットは 1 回だけ、複製側が選択され元は解除、chrono
# - gen_svg_selection: 原点基準、chrono 順、壊れたストロークのスキップ
# - export_selection_as_svg: 空選択は何も書かない、パス/ストリーム/失敗


def _children(doc: str) -> list[ET.Element]:
    root = ET.fromstring(doc.split("\n", 1)[1])
    assert root.tag == f"{{{SVG_NS}}}svg"
    return list(root)


def test_duplicate_offsets_once_and_moves_selection(
    engine: SelectionEngine, marker_h: MarkerStroke, square_shape: ShapeStroke
) -> None:
    state = engine.state
    k1 = state.insert_stroke(marker_h)
    k2 = state.insert_stroke(square_shape)
    engine.set_selected(k1, True)
    engine.set_selected(k2, True)
    t_orig = {k: state.chrono_components[k].t for k in (k1, k2)}

    new_keys = engine.duplicate_selection()

    assert len(new_keys) == 2
    assert sorted(engine.keys_selection()) == sorted(new_keys)
    assert engine.selected(k1) is False and engine.selected(k2) is False
    for orig, dup in zip((k1, k2), new_keys):
        assert state.strokes[dup].bounds() == state.strokes[orig].bounds().translate((20.0, 20.0))
        assert state.chrono_components[dup].t > state.chrono_components[orig].t
        assert state.chrono_components[orig].t > t_orig[orig]
    assert state.selection_bounds == AABB((19, 19), (51, 51))
    assert len(state) == 4


def test_duplicate_offset_from_settings(
    engine: SelectionEngine, marker_h: MarkerStroke, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings.get(), "DUPLICATION_OFFSET_X", 5.0)
    monkeypatch.setattr(settings.get(), "DUPLICATION_OFFSET_Y", -3.0)
    key = engine.state.insert_stroke(marker_h)
    engine.set_selected(key, True)
    (dup,) = engine.duplicate_selection()
    assert engine.state.strokes[dup].bounds() == AABB((4, -4), (16, -2))


def test_duplicate_empty_selection(engine: SelectionEngine, marker_h: MarkerStroke) -> None:
    engine.state.insert_stroke(marker_h)
    assert engine.duplicate_selection() == []
    assert engine.state.selection_bounds is None
    assert len(engine.state) == 1


@pytest.mark.integration
def test_duplicate_then_export_has_two_blocks(engine: SelectionEngine, marker_h: MarkerStroke) -> None:
    state = engine.state
    orig = state.insert_stroke(marker_h)
    engine.set_selected(orig, True)
    (dup,) = engine.duplicate_selection()
    # 元と複製の両方を選択して書き出す
    engine.set_selected(orig, True)

    doc = engine.gen_svg_selection()
    assert doc is not None
    children = _children(doc)
    assert len(children) == 2
    # 選択境界 (-1,-1)-(31,21) の左上が原点。元を後から選び直したので複製 → 元の順
    assert children[0].get("d") == "M 21 21 L 31 21"
    assert children[1].get("d") == "M 1 1 L 11 1"
    assert state.strokes[dup].bounds().mins == (19.0, 19.0)


def test_gen_svg_selection_wrapper_and_chrono_order(
    engine: SelectionEngine, marker_h: MarkerStroke, square_shape: ShapeStroke
) -> None:
    k1 = engine.state.insert_stroke(marker_h)
    k2 = engine.state.insert_stroke(square_shape)
    engine.set_selected(k2, True)
    engine.set_selected(k1, True)  # k1 が新しい

    doc = engine.gen_svg_selection()
    assert doc is not None
    assert doc.startswith("<?xml")
    root = ET.fromstring(doc.split("\n", 1)[1])
    assert root.get("width") == "32" and root.get("height") == "32"
    assert root.get("viewBox") == "0 0 32 32"
    assert root.get("preserveAspectRatio") == "none"
    tags = [c.get("d") for c in root]
    # 矩形（古い）→ 線（新しい）
    assert tags[0].endswith("Z")
    assert tags[1] == "M 1 1 L 11 1"


def test_gen_svg_selection_skips_broken_stroke(
    engine: SelectionEngine, marker_h: MarkerStroke, caplog: pytest.LogCaptureFixture
) -> None:
    k1 = engine.state.insert_stroke(marker_h)
    k2 = engine.state.insert_stroke(VectorImage("<rect", AABB((0, 0), (4, 4))))
    engine.set_selected(k1, True)
    engine.set_selected(k2, True)
    with caplog.at_level("DEBUG", logger="engine.strokes.selection"):
        doc = engine.gen_svg_selection()
    assert doc is not None
    assert len(_children(doc)) == 1
    assert "skipping stroke" in caplog.text


def test_empty_selection_has_no_document(engine: SelectionEngine, tmp_path: Path) -> None:
    assert engine.gen_svg_selection() is None
    target = tmp_path / "out.svg"
    assert engine.export_selection_as_svg(target) is False
    assert not target.exists()
    stream = io.StringIO()
    assert engine.export_selection_as_svg(stream) is False
    assert stream.getvalue() == ""


def test_export_to_path_and_stream(engine: SelectionEngine, marker_h: MarkerStroke, tmp_path: Path) -> None:
    key = engine.state.insert_stroke(marker_h)
    engine.set_selected(key, True)
    target = tmp_path / "sel.svg"
    assert engine.export_selection_as_svg(target) is True
    text = target.read_text(encoding="utf-8")
    assert text == engine.gen_svg_selection()
    assert not (tmp_path / "sel.svg.part").exists()

    stream = io.StringIO()
    assert engine.export_selection_as_svg(stream) is True
    assert stream.getvalue() == text


def test_export_failure_raises(engine: SelectionEngine, marker_h: MarkerStroke, tmp_path: Path) -> None:
    key = engine.state.insert_stroke(marker_h)
    engine.set_selected(key, True)
    with pytest.raises(SvgExportError):
        engine.export_selection_as_svg(tmp_path / "missing_dir" / "sel.svg")
    closed = io.StringIO()
    closed.close()
    with pytest.raises(SvgExportError):
        engine.export_selection_as_svg(closed)
