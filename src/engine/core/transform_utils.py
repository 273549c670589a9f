"""
どこで: `engine.core` の変換ユーティリティ。
何を: 群変換（選択全体の拡大縮小）の純関数群。グループ境界 B → 新境界 N の写像から
      各ストロークの新境界と点列の再配置を計算する。
なぜ: 選択エンジン/各ストロークの両方が同じ写像を使い、相対位置・相対サイズを保つため。

写像（軸ごと独立、回転/せん断なし）:

    scale  = N.extents / B.extents
    new.min = B.min + (s.min - B.min) * scale + (N.min - B.min)
    new.ext = s.ext * scale

退化軸（B.extents == 0）はスケール 1 として扱う（0 除算を避け、平行移動のみ適用）。
"""

from __future__ import annotations

import numpy as np

from common.types import Vec2

from .geometry import AABB

# これ以下の幅/高さは退化軸とみなす
DEGENERATE_EXTENT = 1e-12


def scale_vector(old: AABB, new: AABB) -> Vec2:
    """`old` → `new` の軸ごとのスケール係数。退化軸は 1.0。"""
    ow, oh = old.extents
    nw, nh = new.extents
    sx = nw / ow if ow > DEGENERATE_EXTENT else 1.0
    sy = nh / oh if oh > DEGENERATE_EXTENT else 1.0
    return (sx, sy)


def calc_new_stroke_bounds(stroke_bounds: AABB, selection_bounds: AABB, new_bounds: AABB) -> AABB:
    """群写像 `selection_bounds` → `new_bounds` を 1 ストロークの境界へ適用する。

    引数:
        stroke_bounds: 対象ストロークの現在の境界。
        selection_bounds: 選択グループ全体の現在の境界 B。
        new_bounds: 選択グループの新しい境界 N。

    返り値:
        ストロークの新しい境界。
    """
    sx, sy = scale_vector(selection_bounds, new_bounds)
    offset = (
        new_bounds.mins[0] - selection_bounds.mins[0],
        new_bounds.mins[1] - selection_bounds.mins[1],
    )
    min_x = (stroke_bounds.mins[0] - selection_bounds.mins[0]) * sx + selection_bounds.mins[0] + offset[0]
    min_y = (stroke_bounds.mins[1] - selection_bounds.mins[1]) * sy + selection_bounds.mins[1] + offset[1]
    w, h = stroke_bounds.extents
    return AABB((min_x, min_y), (min_x + w * sx, min_y + h * sy))


def map_points_to_bounds(points: np.ndarray, old: AABB, new: AABB) -> np.ndarray:
    """`(N, 2)` 点列を `old` → `new` のアフィン写像で再配置した新しい配列を返す。

    退化軸では `old.min → new.min` の平行移動だけを行う。
    """
    pts = np.asarray(points, dtype=np.float64)
    sx, sy = scale_vector(old, new)
    out = pts.copy()
    out[:, 0] = (pts[:, 0] - old.mins[0]) * sx + new.mins[0]
    out[:, 1] = (pts[:, 1] - old.mins[1]) * sy + new.mins[1]
    return out


def translate_points(points: np.ndarray, offset: Vec2) -> np.ndarray:
    """平行移動（純関数）。"""
    pts = np.asarray(points, dtype=np.float64)
    return pts + np.array([float(offset[0]), float(offset[1])], dtype=np.float64)


__all__ = [
    "DEGENERATE_EXTENT",
    "scale_vector",
    "calc_new_stroke_bounds",
    "map_points_to_bounds",
    "translate_points",
]
