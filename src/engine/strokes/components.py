"""
どこで: `engine.strokes.components`。
何を: ストロークキーで引く並列コンポーネント表の 1 要素ずつ（選択/時系列/ゴミ箱/描画）と、
      キャンバス共有の時系列カウンタ `ChronoCounter`。
なぜ: 状態をストローク本体のフィールドではなくキー別の表に分けることで、並列フェーズが
      互いに素なキーだけを触れるようにするため（structure-of-arrays）。
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from engine.render.types import RenderImage, TextureNode


@dataclass
class SelectionComponent:
    """選択フラグ。コンポーネントの存在（値ではなく）が選択可能性を決める。"""

    selected: bool = False


@dataclass
class ChronoComponent:
    """最後に触れた順序（`ChronoCounter` が払い出す単調増加値）。"""

    t: int = 0


@dataclass
class TrashComponent:
    trashed: bool = False


@dataclass
class RenderComponent:
    """描画協調側が所有する表示状態。選択コアは `image.bounds`/`rendernode`/
    `regenerate_flag` だけを書き換える。"""

    image: RenderImage
    rendernode: TextureNode | None = None
    regenerate_flag: bool = True
    render: bool = True


@dataclass
class ChronoCounter:
    """ロックで保護した単調増加カウンタ（increment-and-fetch）。"""

    value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def tick(self) -> int:
        """1 進めて新しい値を返す。複数スレッドから呼ばれても値は重複しない。"""
        with self._lock:
            self.value += 1
            return self.value

    def current(self) -> int:
        with self._lock:
            return self.value


__all__ = [
    "SelectionComponent",
    "ChronoComponent",
    "TrashComponent",
    "RenderComponent",
    "ChronoCounter",
]
