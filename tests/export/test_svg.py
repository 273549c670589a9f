from __future__ import annotations

import io
from pathlib import Path

import pytest

from engine.core.geometry import AABB
from engine.export.svg import SvgExportError, fmt_num, svg_color, wrap_svg, write_svg


@pytest.mark.parametrize(
    "value,expected",
    [(1.0, "1"), (0.5, "0.5"), (2.12345, "2.123"), (-0.0001, "0"), (-3.25, "-3.25"), (100.0, "100")],
)
def test_fmt_num(value: float, expected: str) -> None:
    assert fmt_num(value) == expected


def test_svg_color_clamps() -> None:
    assert svg_color((1.0, 0.0, 0.0, 1.0)) == ("#ff0000", "1")
    assert svg_color((2.0, -1.0, 0.5, 0.25)) == ("#ff0080", "0.25")


def test_wrap_svg_layout() -> None:
    box = AABB((0, 0), (10, 5))
    doc = wrap_svg("<g/>\n", bounds=box, viewbox=box)
    lines = doc.split("\n")
    assert lines[0].startswith("<?xml")
    assert lines[1].startswith("<svg ")
    assert 'width="10" height="5"' in lines[1]
    assert 'viewBox="0 0 10 5"' in lines[1]
    assert 'preserveAspectRatio="none"' in lines[1]
    assert lines[2] == "<g/>"
    assert lines[3] == "</svg>"
    assert doc.endswith("</svg>\n")


def test_wrap_svg_without_header_or_box() -> None:
    doc = wrap_svg("", xml_header=False, preserve_aspectratio=True)
    assert doc.startswith("<svg ")
    assert "width=" not in doc and "viewBox" not in doc
    assert 'preserveAspectRatio="xMidYMid"' in doc


def test_write_svg_path_replaces_atomically(tmp_path: Path) -> None:
    target = tmp_path / "a.svg"
    target.write_text("old", encoding="utf-8")
    write_svg(target, "<svg/>")
    assert target.read_text(encoding="utf-8") == "<svg/>"
    assert not (tmp_path / "a.svg.part").exists()
    write_svg(str(tmp_path / "b.svg"), "x")
    assert (tmp_path / "b.svg").read_text(encoding="utf-8") == "x"


def test_write_svg_path_error(tmp_path: Path) -> None:
    with pytest.raises(SvgExportError):
        write_svg(tmp_path / "nope" / "a.svg", "<svg/>")


def test_write_svg_stream() -> None:
    buf = io.StringIO()
    write_svg(buf, "<svg/>")
    assert buf.getvalue() == "<svg/>"
    assert not buf.closed
    buf.close()
    with pytest.raises(SvgExportError):
        write_svg(buf, "<svg/>")
