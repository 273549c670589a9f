"""
どこで: `engine.pens.selector`。
何を: ドラッグ矩形による選択入力 `Selector`。`bounds` は現在の矩形（キャンバス座標）か None。
なぜ: ポインタ入力の解釈は外部に任せ、選択エンジンには正規化済みの矩形だけを渡すため。
"""

from __future__ import annotations

from dataclasses import dataclass

from common.types import Vec2
from engine.core.geometry import AABB


@dataclass
class Selector:
    """ドラッグ選択の状態。`start → drag_to → finish/clear` の順で使う。"""

    bounds: AABB | None = None
    anchor: Vec2 | None = None

    @property
    def active(self) -> bool:
        return self.anchor is not None

    def start(self, point: Vec2) -> None:
        """ドラッグ開始。幅 0 の矩形から始める。"""
        self.anchor = (float(point[0]), float(point[1]))
        self.bounds = AABB(self.anchor, self.anchor)

    def drag_to(self, point: Vec2) -> AABB:
        """現在位置まで矩形を更新して返す（逆方向のドラッグも正規化する）。"""
        current = (float(point[0]), float(point[1]))
        if self.anchor is None:
            self.anchor = current
        bounds = AABB.new_positive(self.anchor, current)
        self.bounds = bounds
        return bounds

    def finish(self) -> AABB | None:
        """ドラッグ終了。矩形は保持したまま（選択更新に使える）アンカーだけを外す。"""
        self.anchor = None
        return self.bounds

    def clear(self) -> None:
        self.anchor = None
        self.bounds = None


__all__ = ["Selector"]
