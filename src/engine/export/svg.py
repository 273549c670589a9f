"""
どこで: `engine.export.svg`。
何を: SVG 断片を文書エンベロープで包む `wrap_svg` と、文字列をファイル/ストリームへ
      書き出す `write_svg`。
なぜ: 選択範囲のベクタ書き出しで、要素生成（各ストローク）と文書化/I/O を分離するため。

書き出しはパス指定時に `.part` へ書いてから `replace` で確定する（途中失敗で壊れた
ファイルを残さない）。I/O 失敗は `SvgExportError` として呼び出し側へ伝搬する。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, Union

import numpy as np

from common.types import RGBA
from engine.core.geometry import AABB

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'

SvgSink = Union[str, "os.PathLike[str]", IO[str]]


class SvgExportError(Exception):
    """SVG の書き出し（open/write/close/rename）に失敗した。"""


def fmt_num(v: float) -> str:
    """SVG 属性用の数値表記（小数 3 桁に丸め、末尾 0 を除去）。"""
    s = np.format_float_positional(round(float(v), 3), trim="-")
    return "0" if s == "-0" else s


def svg_color(color: RGBA) -> tuple[str, str]:
    """RGBA(0–1) を `("#rrggbb", "opacity")` へ変換する。"""
    r, g, b, a = (min(1.0, max(0.0, float(c))) for c in color)
    hexcol = "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))
    return hexcol, fmt_num(a)


def _box_attrs(bounds: AABB) -> str:
    w, h = bounds.extents
    return (
        f'x="{fmt_num(bounds.mins[0])}" y="{fmt_num(bounds.mins[1])}" '
        f'width="{fmt_num(w)}" height="{fmt_num(h)}"'
    )


def wrap_svg(
    data: str,
    bounds: AABB | None = None,
    viewbox: AABB | None = None,
    xml_header: bool = True,
    preserve_aspectratio: bool = False,
) -> str:
    """SVG 断片 `data` を `<svg>` 文書で包む。

    引数:
        data: 改行区切りの要素ブロック。
        bounds: 文書の配置/サイズ（x, y, width, height）。None なら属性を省略。
        viewbox: `viewBox` の矩形。None なら省略。
        xml_header: True で XML 宣言を先頭に付ける。
        preserve_aspectratio: False で `preserveAspectRatio="none"`（伸縮で埋める）。
    """
    attrs = [f'xmlns="{SVG_NS}"', f'xmlns:xlink="{XLINK_NS}"', 'version="1.1"']
    if bounds is not None:
        attrs.append(_box_attrs(bounds))
    if viewbox is not None:
        vw, vh = viewbox.extents
        attrs.append(
            f'viewBox="{fmt_num(viewbox.mins[0])} {fmt_num(viewbox.mins[1])} '
            f'{fmt_num(vw)} {fmt_num(vh)}"'
        )
    attrs.append(f'preserveAspectRatio="{"xMidYMid" if preserve_aspectratio else "none"}"')

    lines = []
    if xml_header:
        lines.append(XML_HEADER)
    lines.append(f"<svg {' '.join(attrs)}>")
    if data:
        lines.append(data.rstrip("\n"))
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def write_svg(sink: SvgSink, data: str) -> None:
    """`data` を書き出す。

    - パス（str/PathLike）: 親ディレクトリ内の `<name>.part` に書いてから置換する。
    - テキストストリーム: そのまま `write` する（close は呼び出し側の責務）。
    """
    if isinstance(sink, (str, os.PathLike)):
        path = Path(sink)
        part_path = path.with_name(path.name + ".part")
        try:
            with part_path.open("w", encoding="utf-8") as fp:
                fp.write(data)
            part_path.replace(path)
        except OSError as e:
            # 失敗時の .part 片付け
            try:
                if part_path.exists():
                    part_path.unlink()
            except OSError:
                logger.debug("failed to remove %s", part_path, exc_info=True)
            raise SvgExportError(f"failed to write svg to {path}: {e}") from e
        logger.debug("exported svg (%d chars) to %s", len(data), path)
        return

    try:
        sink.write(data)
        sink.flush()
    except (OSError, ValueError) as e:
        # ValueError: 既に close 済みのストリームへの書き込み
        raise SvgExportError(f"failed to write svg to stream: {e}") from e


__all__ = ["SvgExportError", "SvgSink", "fmt_num", "svg_color", "wrap_svg", "write_svg"]
