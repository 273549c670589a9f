"""
どこで: `engine.strokes.stroke`。
何を: キャンバス上の描画オブジェクト（ストローク）の 5 種のバリアントと共通能力契約。
      - `MarkerStroke`: 一定幅の手描き線
      - `BrushStroke`: 筆圧で幅が変わる手描き線
      - `ShapeStroke`: 矩形/楕円/線分などの幾何図形（shapely で保持）
      - `VectorImage`: 埋め込み SVG
      - `BitmapImage`: 埋め込みラスタ画像（PNG/JPEG）
なぜ: 選択エンジンは各バリアントを `bounds/hitbox/translate/resize/gen_svg_data` の
      狭い契約越しにだけ扱い、内部表現には踏み込まないため。

データモデル（不変条件）:
- すべてのバリアントは明示的な境界 `_bounds: AABB` を持つ。`resize(new_bounds)` 後は
  `bounds() == new_bounds` が厳密に成り立つ（群拡大縮小の不変条件のため）。
  線幅は軸スケールの小さい方で拡縮し、インクとヒットボックスは常に `bounds()` の内側に収まる。
- 手描き系（marker/brush）は `hitbox()` に `(K, 4)` 配列 `[minx, miny, maxx, maxy]` を返す。
  各行は 1 セグメント（隣接 2 点）を半幅だけ膨らませたボックス。非手描き系は None。
- 点列は float64 `(N, 2)`。入力が不正なら `ValueError`。
"""

from __future__ import annotations

import base64
import copy
import xml.etree.ElementTree as ET
from typing import Literal, Protocol, Union, runtime_checkable

import numpy as np
from numba import njit  # type: ignore[attr-defined]
from shapely import affinity
from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry

from common import settings
from common.types import RGBA, Vec2
from engine.core.geometry import AABB
from engine.core.transform_utils import map_points_to_bounds, scale_vector, translate_points
from engine.export.svg import fmt_num, svg_color

BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)


class StrokeError(Exception):
    """ストローク操作の失敗。"""


class StrokeSvgError(StrokeError):
    """1 ストロークの SVG 生成に失敗した（エクスポートでは当該ストロークのみスキップ）。"""


@runtime_checkable
class StrokeBehaviour(Protocol):
    """選択エンジンが消費する能力契約。"""

    def bounds(self) -> AABB: ...

    def hitbox(self) -> np.ndarray | None: ...

    def translate(self, offset: Vec2) -> None: ...

    def resize(self, new_bounds: AABB) -> None: ...

    def gen_svg_data(self, offset: Vec2) -> str: ...

    def clone(self) -> "StrokeBehaviour": ...


# ---- 共通ヘルパ -------------------------------------------------------------


@njit(cache=True)
def _segment_hitboxes(points: np.ndarray, half_widths: np.ndarray) -> np.ndarray:
    n = points.shape[0]
    if n == 1:
        out = np.empty((1, 4), dtype=np.float64)
        hw = half_widths[0]
        out[0, 0] = points[0, 0] - hw
        out[0, 1] = points[0, 1] - hw
        out[0, 2] = points[0, 0] + hw
        out[0, 3] = points[0, 1] + hw
        return out
    out = np.empty((n - 1, 4), dtype=np.float64)
    for i in range(n - 1):
        hw = max(half_widths[i], half_widths[i + 1])
        out[i, 0] = min(points[i, 0], points[i + 1, 0]) - hw
        out[i, 1] = min(points[i, 1], points[i + 1, 1]) - hw
        out[i, 2] = max(points[i, 0], points[i + 1, 0]) + hw
        out[i, 3] = max(points[i, 1], points[i + 1, 1]) + hw
    return out


def compute_hitbox(points: np.ndarray, half_widths: np.ndarray) -> np.ndarray:
    """セグメントごとのヒットボックス配列 `(K, 4)` を返す。

    `USE_NUMBA=False` の場合は同じカーネルを純 Python（`py_func`）で実行する。
    """
    pts = np.ascontiguousarray(points, dtype=np.float64)
    hws = np.ascontiguousarray(half_widths, dtype=np.float64)
    kernel = _segment_hitboxes if settings.get().USE_NUMBA else _segment_hitboxes.py_func
    return kernel(pts, hws)


def width_factor(old_bounds: AABB, new_bounds: AABB, half_width: float) -> float:
    """拡縮時の線幅の倍率。軸スケールの小さい方、ただし線幅が新しい短辺を超えない値。"""
    sx, sy = scale_vector(old_bounds, new_bounds)
    factor = min(sx, sy)
    short_side = min(new_bounds.extents)
    if half_width > 0.0 and 2.0 * half_width * factor > short_side:
        factor = short_side / (2.0 * half_width)
    return factor


def fit_freehand_to_bounds(
    points: np.ndarray, half_widths: np.ndarray, old_bounds: AABB, new_bounds: AABB
) -> tuple[np.ndarray, float]:
    """手描き線を `new_bounds` に収まるよう再配置し、`(新しい点列, 幅の倍率)` を返す。

    - 幅は軸ごとのスケールの小さい方で拡縮し、`new_bounds` の短辺を超えないよう抑える。
    - 点列は内側の点ボックスを `new_bounds` を最大半幅だけ縮めた箱へ写す。
    これにより全セグメントのヒットボックスが `new_bounds` に含まれる。
    """
    hw_max = float(half_widths.max())
    factor = width_factor(old_bounds, new_bounds, hw_max)
    inner_old = AABB.from_points(points)
    inner_new = new_bounds.loosened(-hw_max * factor)
    return map_points_to_bounds(points, inner_old, inner_new), factor


def _as_points(points: object) -> np.ndarray:
    arr = np.array(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"点列の形状が不正です（(N, 2) が必要）: {arr.shape}")
    if arr.shape[0] == 0:
        raise ValueError("点列が空です")
    if not np.all(np.isfinite(arr)):
        raise ValueError("点列に非有限値が含まれています")
    return arr


def _path_d(points: np.ndarray, *, closed: bool = False) -> str:
    head = f"M {fmt_num(points[0, 0])} {fmt_num(points[0, 1])}"
    tail = " ".join(f"L {fmt_num(x)} {fmt_num(y)}" for x, y in points[1:])
    d = f"{head} {tail}" if tail else head
    return f"{d} Z" if closed else d


# ---- 手描き系 ---------------------------------------------------------------


class MarkerStroke:
    """一定幅の手描き線。"""

    __slots__ = ("points", "width", "color", "_bounds", "_hitbox")

    def __init__(self, points: object, width: float = 2.0, color: RGBA = BLACK) -> None:
        if not width > 0:
            raise ValueError(f"width は正の値である必要があります: {width}")
        self.points = _as_points(points)
        self.width = float(width)
        self.color = color
        self._bounds = AABB.from_points(self.points).loosened(self.width * 0.5)
        self._hitbox = self._gen_hitbox()

    def _gen_hitbox(self) -> np.ndarray:
        half = np.full(self.points.shape[0], self.width * 0.5, dtype=np.float64)
        return compute_hitbox(self.points, half)

    def bounds(self) -> AABB:
        return self._bounds

    def hitbox(self) -> np.ndarray:
        view = self._hitbox.view()
        view.setflags(write=False)
        return view

    def translate(self, offset: Vec2) -> None:
        dx, dy = float(offset[0]), float(offset[1])
        self.points = translate_points(self.points, (dx, dy))
        self._hitbox = self._hitbox + np.array([dx, dy, dx, dy], dtype=np.float64)
        self._bounds = self._bounds.translate((dx, dy))

    def resize(self, new_bounds: AABB) -> None:
        half = np.full(self.points.shape[0], self.width * 0.5, dtype=np.float64)
        self.points, factor = fit_freehand_to_bounds(self.points, half, self._bounds, new_bounds)
        self.width *= factor
        self._bounds = new_bounds
        self._hitbox = self._gen_hitbox()

    def gen_svg_data(self, offset: Vec2) -> str:
        pts = translate_points(self.points, offset)
        col, opacity = svg_color(self.color)
        return (
            f'<path d="{_path_d(pts)}" fill="none" stroke="{col}" stroke-opacity="{opacity}" '
            f'stroke-width="{fmt_num(self.width)}" stroke-linecap="round" stroke-linejoin="round"/>'
        )

    def clone(self) -> "MarkerStroke":
        return copy.deepcopy(self)


class BrushStroke:
    """筆圧付きの手描き線。点 i の幅は `width * pressures[i]`。"""

    __slots__ = ("points", "pressures", "width", "color", "_bounds", "_hitbox")

    def __init__(
        self,
        points: object,
        pressures: object | None = None,
        width: float = 4.0,
        color: RGBA = BLACK,
    ) -> None:
        if not width > 0:
            raise ValueError(f"width は正の値である必要があります: {width}")
        self.points = _as_points(points)
        if pressures is None:
            self.pressures = np.ones(self.points.shape[0], dtype=np.float64)
        else:
            self.pressures = np.clip(np.asarray(pressures, dtype=np.float64).reshape(-1), 0.0, 1.0)
            if self.pressures.shape[0] != self.points.shape[0]:
                raise ValueError("pressures の長さは点数と一致する必要があります")
        self.width = float(width)
        self.color = color
        self._bounds = self._gen_bounds()
        self._hitbox = self._gen_hitbox()

    def _half_widths(self) -> np.ndarray:
        return self.width * self.pressures * 0.5

    def _gen_bounds(self) -> AABB:
        hw = self._half_widths()
        lo = (self.points - hw[:, None]).min(axis=0)
        hi = (self.points + hw[:, None]).max(axis=0)
        return AABB((float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1])))

    def _gen_hitbox(self) -> np.ndarray:
        return compute_hitbox(self.points, self._half_widths())

    def bounds(self) -> AABB:
        return self._bounds

    def hitbox(self) -> np.ndarray:
        view = self._hitbox.view()
        view.setflags(write=False)
        return view

    def translate(self, offset: Vec2) -> None:
        dx, dy = float(offset[0]), float(offset[1])
        self.points = translate_points(self.points, (dx, dy))
        self._hitbox = self._hitbox + np.array([dx, dy, dx, dy], dtype=np.float64)
        self._bounds = self._bounds.translate((dx, dy))

    def resize(self, new_bounds: AABB) -> None:
        self.points, factor = fit_freehand_to_bounds(
            self.points, self._half_widths(), self._bounds, new_bounds
        )
        self.width *= factor
        self._bounds = new_bounds
        self._hitbox = self._gen_hitbox()

    def gen_svg_data(self, offset: Vec2) -> str:
        pts = translate_points(self.points, offset)
        col, opacity = svg_color(self.color)
        widths = self.width * self.pressures
        if pts.shape[0] == 1:
            return (
                f'<circle cx="{fmt_num(pts[0, 0])}" cy="{fmt_num(pts[0, 1])}" '
                f'r="{fmt_num(widths[0] * 0.5)}" fill="{col}" fill-opacity="{opacity}"/>'
            )
        # セグメントごとに端点の平均幅で描く
        segs = []
        for i in range(pts.shape[0] - 1):
            w = (widths[i] + widths[i + 1]) * 0.5
            segs.append(
                f'<line x1="{fmt_num(pts[i, 0])}" y1="{fmt_num(pts[i, 1])}" '
                f'x2="{fmt_num(pts[i + 1, 0])}" y2="{fmt_num(pts[i + 1, 1])}" '
                f'stroke-width="{fmt_num(w)}"/>'
            )
        return (
            f'<g stroke="{col}" stroke-opacity="{opacity}" stroke-linecap="round">'
            + "".join(segs)
            + "</g>"
        )

    def clone(self) -> "BrushStroke":
        return copy.deepcopy(self)


# ---- 幾何図形 ---------------------------------------------------------------

ShapeKind = Literal["rectangle", "ellipse", "line"]


class ShapeStroke:
    """shapely ジオメトリで保持する幾何図形。ヒットボックスは持たない（境界包含のみで選択）。"""

    __slots__ = ("kind", "shape", "width", "color", "fill", "_bounds")

    def __init__(
        self,
        kind: ShapeKind,
        shape: BaseGeometry,
        width: float = 2.0,
        color: RGBA = BLACK,
        fill: RGBA | None = None,
    ) -> None:
        if shape.is_empty:
            raise ValueError("空の図形からは ShapeStroke を作れません")
        self.kind = kind
        self.shape = shape
        self.width = float(width)
        self.color = color
        self.fill = fill
        minx, miny, maxx, maxy = shape.bounds
        self._bounds = AABB((minx, miny), (maxx, maxy)).loosened(self.width * 0.5)

    # ── ファクトリ ───────────────────
    @classmethod
    def rectangle(cls, bounds: AABB, **kwargs) -> "ShapeStroke":
        (x0, y0), (x1, y1) = bounds.mins, bounds.maxs
        poly = Polygon([(x0, y0), (x1, y0), (x1, y1), (x0, y1)])
        return cls("rectangle", poly, **kwargs)

    @classmethod
    def ellipse(cls, center: Vec2, radii: Vec2, **kwargs) -> "ShapeStroke":
        rx, ry = float(radii[0]), float(radii[1])
        if not (rx > 0 and ry > 0):
            raise ValueError(f"radii は正の値である必要があります: {radii}")
        circle = Point(float(center[0]), float(center[1])).buffer(1.0, quad_segs=32)
        return cls("ellipse", affinity.scale(circle, rx, ry, origin=(center[0], center[1])), **kwargs)

    @classmethod
    def line(cls, start: Vec2, end: Vec2, **kwargs) -> "ShapeStroke":
        return cls("line", LineString([tuple(start), tuple(end)]), **kwargs)

    # ── 契約 ───────────────────
    def bounds(self) -> AABB:
        return self._bounds

    def hitbox(self) -> None:
        return None

    def translate(self, offset: Vec2) -> None:
        dx, dy = float(offset[0]), float(offset[1])
        self.shape = affinity.translate(self.shape, xoff=dx, yoff=dy)
        self._bounds = self._bounds.translate((dx, dy))

    def resize(self, new_bounds: AABB) -> None:
        # 線幅ぶんを除いた図形本体の箱同士で写す（手描き系と同じ規則）
        half = self.width * 0.5
        factor = width_factor(self._bounds, new_bounds, half)
        minx, miny, maxx, maxy = self.shape.bounds
        old = AABB((minx, miny), (maxx, maxy))
        new = new_bounds.loosened(-half * factor)
        ax, ay = scale_vector(old, new)
        # x' = (x - old.minx) * ax + new.minx
        self.shape = affinity.affine_transform(
            self.shape,
            [ax, 0.0, 0.0, ay, new.mins[0] - old.mins[0] * ax, new.mins[1] - old.mins[1] * ay],
        )
        self.width *= factor
        self._bounds = new_bounds

    def gen_svg_data(self, offset: Vec2) -> str:
        geom = affinity.translate(self.shape, xoff=float(offset[0]), yoff=float(offset[1]))
        if geom.is_empty:
            raise StrokeSvgError(f"{self.kind} の形状が空です")
        if isinstance(geom, Polygon):
            d = _path_d(np.asarray(geom.exterior.coords, dtype=np.float64)[:-1], closed=True)
        elif isinstance(geom, LineString):
            d = _path_d(np.asarray(geom.coords, dtype=np.float64))
        else:
            raise StrokeSvgError(f"未対応の形状です: {geom.geom_type}")
        col, opacity = svg_color(self.color)
        if self.fill is not None:
            fcol, fop = svg_color(self.fill)
            fill_attr = f'fill="{fcol}" fill-opacity="{fop}"'
        else:
            fill_attr = 'fill="none"'
        return (
            f'<path d="{d}" {fill_attr} stroke="{col}" stroke-opacity="{opacity}" '
            f'stroke-width="{fmt_num(self.width)}"/>'
        )

    def clone(self) -> "ShapeStroke":
        # shapely ジオメトリは不変なので共有で十分
        return ShapeStroke(self.kind, self.shape, self.width, self.color, self.fill)


# ---- 埋め込み画像 -----------------------------------------------------------


class VectorImage:
    """埋め込み SVG。`svg_data` は `intrinsic_size` の座標系で記述された SVG 断片。"""

    __slots__ = ("svg_data", "intrinsic_size", "_bounds")

    def __init__(self, svg_data: str, bounds: AABB, intrinsic_size: Vec2 | None = None) -> None:
        self.svg_data = svg_data
        self.intrinsic_size = intrinsic_size or bounds.extents
        self._bounds = bounds

    def bounds(self) -> AABB:
        return self._bounds

    def hitbox(self) -> None:
        return None

    def translate(self, offset: Vec2) -> None:
        self._bounds = self._bounds.translate(offset)

    def resize(self, new_bounds: AABB) -> None:
        self._bounds = new_bounds

    def gen_svg_data(self, offset: Vec2) -> str:
        if not self.svg_data.strip():
            raise StrokeSvgError("埋め込み SVG が空です")
        iw, ih = self.intrinsic_size
        b = self._bounds.translate(offset)
        w, h = b.extents
        markup = (
            f'<svg x="{fmt_num(b.mins[0])}" y="{fmt_num(b.mins[1])}" '
            f'width="{fmt_num(w)}" height="{fmt_num(h)}" '
            f'viewBox="0 0 {fmt_num(iw)} {fmt_num(ih)}" preserveAspectRatio="none">'
            f"{self.svg_data}</svg>"
        )
        try:
            ET.fromstring(markup)
        except ET.ParseError as exc:
            raise StrokeSvgError(f"埋め込み SVG が不正です: {exc}") from exc
        return markup

    def clone(self) -> "VectorImage":
        return VectorImage(self.svg_data, self._bounds, self.intrinsic_size)


def _image_mime(data: bytes) -> str | None:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    return None


class BitmapImage:
    """埋め込みラスタ画像（PNG/JPEG のエンコード済みバイト列）。"""

    __slots__ = ("data", "_bounds")

    def __init__(self, data: bytes, bounds: AABB) -> None:
        self.data = bytes(data)
        self._bounds = bounds

    def bounds(self) -> AABB:
        return self._bounds

    def hitbox(self) -> None:
        return None

    def translate(self, offset: Vec2) -> None:
        self._bounds = self._bounds.translate(offset)

    def resize(self, new_bounds: AABB) -> None:
        self._bounds = new_bounds

    def gen_svg_data(self, offset: Vec2) -> str:
        mime = _image_mime(self.data)
        if mime is None:
            raise StrokeSvgError("未対応の画像形式です（PNG/JPEG のみ）")
        b = self._bounds.translate(offset)
        w, h = b.extents
        encoded = base64.b64encode(self.data).decode("ascii")
        return (
            f'<image x="{fmt_num(b.mins[0])}" y="{fmt_num(b.mins[1])}" '
            f'width="{fmt_num(w)}" height="{fmt_num(h)}" preserveAspectRatio="none" '
            f'xlink:href="data:{mime};base64,{encoded}"/>'
        )

    def clone(self) -> "BitmapImage":
        return BitmapImage(self.data, self._bounds)


StrokeStyle = Union[MarkerStroke, BrushStroke, ShapeStroke, VectorImage, BitmapImage]


def is_freehand(stroke: StrokeStyle) -> bool:
    """ヒットボックスで部分選択を判定するバリアントか。"""
    return isinstance(stroke, (MarkerStroke, BrushStroke))


__all__ = [
    "StrokeError",
    "StrokeSvgError",
    "StrokeBehaviour",
    "StrokeStyle",
    "MarkerStroke",
    "BrushStroke",
    "ShapeStroke",
    "VectorImage",
    "BitmapImage",
    "compute_hitbox",
    "is_freehand",
]
