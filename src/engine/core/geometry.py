"""
軸平行境界ボックス `AABB`（プロジェクト中核モジュール）

本モジュールは、選択/変換コア全体で使用する唯一の境界表現 `AABB` を提供する。
ヒットテスト（包含/交差）、選択範囲の合成（union）、平行移動や膨張は
すべてこの型の純関数として表現する。

データモデル（不変条件）:
- `mins: (x, y)` と `maxs: (x, y)` を float で保持し、常に `mins <= maxs`（軸ごと）。
- 生成時に非有限値（NaN/inf）は `ValueError`。
- 幅/高さ 0 の退化ボックス（点・水平線など）は許容する。

API 方針:
- `contains/intersects` は閉区間で判定する（境界上の接触は交差/包含に含む）。
- `merged/translate/loosened` はすべて新しい `AABB` を返す（インスタンスは不変）。

直感図:

    #   mins ──────────┐
    #    │   extents   │
    #    └──────────── maxs
    #
    # a.contains(b):  b の 4 辺がすべて a の内側（境界上を含む）
    # a.intersects(b): 両軸で区間が重なる（接触を含む）
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from common.types import Vec2


@dataclass(frozen=True)
class AABB:
    """不変の 2D 軸平行境界ボックス。

    フィールド:
    - `mins (x, y)`: 左上（最小）角。
    - `maxs (x, y)`: 右下（最大）角。
    """

    mins: Vec2
    maxs: Vec2

    def __post_init__(self) -> None:
        mx, my = float(self.mins[0]), float(self.mins[1])
        Mx, My = float(self.maxs[0]), float(self.maxs[1])
        if not all(math.isfinite(v) for v in (mx, my, Mx, My)):
            raise ValueError(f"AABB の座標は有限値である必要があります: {self.mins}, {self.maxs}")
        if mx > Mx or my > My:
            raise ValueError(f"AABB は mins <= maxs である必要があります: {self.mins}, {self.maxs}")
        # tuple/ndarray 入力を float タプルへ正規化
        object.__setattr__(self, "mins", (mx, my))
        object.__setattr__(self, "maxs", (Mx, My))

    # ── ファクトリ ───────────────────
    @classmethod
    def new_positive(cls, a: Sequence[float], b: Sequence[float]) -> "AABB":
        """2 点から正規化（軸ごとに min/max を取る）したボックスを作る。"""
        return cls(
            (min(a[0], b[0]), min(a[1], b[1])),
            (max(a[0], b[0]), max(a[1], b[1])),
        )

    @classmethod
    def from_points(cls, points: np.ndarray) -> "AABB":
        """`(N, 2)` 点列を包む最小ボックスを返す。空配列は `ValueError`。"""
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2 or pts.shape[0] == 0:
            raise ValueError(f"点列の形状が不正です: {pts.shape}")
        lo = pts.min(axis=0)
        hi = pts.max(axis=0)
        return cls((float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1])))

    # ── 基本量 ───────────────────
    @property
    def extents(self) -> Vec2:
        """`(width, height)`。"""
        return (self.maxs[0] - self.mins[0], self.maxs[1] - self.mins[1])

    @property
    def center(self) -> Vec2:
        return ((self.mins[0] + self.maxs[0]) * 0.5, (self.mins[1] + self.maxs[1]) * 0.5)

    # ── 判定 ───────────────────
    def contains(self, other: "AABB") -> bool:
        """`other` が完全に内側にあるか（境界上を含む）。"""
        return (
            self.mins[0] <= other.mins[0]
            and self.mins[1] <= other.mins[1]
            and other.maxs[0] <= self.maxs[0]
            and other.maxs[1] <= self.maxs[1]
        )

    def contains_all(self, boxes: np.ndarray) -> bool:
        """`(K, 4)` のボックス配列がすべて内側にあるか（ベクトル化版 `contains`）。

        空配列は True（全称命題の空真）。
        """
        arr = np.asarray(boxes, dtype=np.float64)
        if arr.size == 0:
            return True
        arr = arr.reshape(-1, 4)
        return bool(
            np.all(
                (arr[:, 0] >= self.mins[0])
                & (arr[:, 1] >= self.mins[1])
                & (arr[:, 2] <= self.maxs[0])
                & (arr[:, 3] <= self.maxs[1])
            )
        )

    def intersects(self, other: "AABB") -> bool:
        """両軸で区間が重なるか（接触を含む）。"""
        return (
            self.mins[0] <= other.maxs[0]
            and other.mins[0] <= self.maxs[0]
            and self.mins[1] <= other.maxs[1]
            and other.mins[1] <= self.maxs[1]
        )

    # ── 変換（すべて純粋） ────────
    def merged(self, other: "AABB") -> "AABB":
        """2 つのボックスの union を返す。"""
        return AABB(
            (min(self.mins[0], other.mins[0]), min(self.mins[1], other.mins[1])),
            (max(self.maxs[0], other.maxs[0]), max(self.maxs[1], other.maxs[1])),
        )

    def translate(self, offset: Sequence[float]) -> "AABB":
        """平行移動（純関数）。"""
        dx, dy = float(offset[0]), float(offset[1])
        return AABB(
            (self.mins[0] + dx, self.mins[1] + dy),
            (self.maxs[0] + dx, self.maxs[1] + dy),
        )

    def loosened(self, amount: float) -> "AABB":
        """全方向に `amount` だけ広げる（負値で縮小、反転する場合は中心へ潰す）。"""
        a = float(amount)
        cx, cy = self.center
        minx, maxx = self.mins[0] - a, self.maxs[0] + a
        miny, maxy = self.mins[1] - a, self.maxs[1] + a
        if minx > maxx:
            minx = maxx = cx
        if miny > maxy:
            miny = maxy = cy
        return AABB((minx, miny), (maxx, maxy))

    def approx_eq(self, other: "AABB", *, tol: float = 1e-9) -> bool:
        """各角が `tol` 以内で一致するか（浮動小数の比較用）。"""
        return all(
            abs(a - b) <= tol
            for a, b in zip(self.mins + self.maxs, other.mins + other.maxs)
        )


def union_bounds(boxes: Iterable[AABB]) -> AABB | None:
    """ボックス列の union。空なら None。"""
    result: AABB | None = None
    for b in boxes:
        result = b if result is None else result.merged(b)
    return result


__all__ = ["AABB", "union_bounds"]
