"""
どこで: `engine.strokes.state`。
何を: キャンバス集約 `StrokesState`。ストロークのアリーナ（キー → ストローク）と、
      同じキーで引く並列コンポーネント表（選択/時系列/ゴミ箱/描画）、共有の時系列カウンタ、
      派生値 `selection_bounds`、ワーカープールを保持する。
なぜ: 選択エンジンはこの集約を通してのみ状態を読み書きし、呼び出しをまたいだ参照は
      キーだけで保持するため。

ライフサイクル:
- `insert_stroke()` でアリーナとコンポーネントを同時に作る（キーは単調増加で再利用しない）。
- `remove_stroke()` で同時に消す。選択エンジンは読み取りの間にコンポーネントが消えても
  「選択不可」として扱う。
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Iterable, Iterator

from common import settings
from common.types import StrokeKey
from engine.core.geometry import AABB, union_bounds
from engine.render.texture import image_to_texturenode
from engine.render.types import RenderImage
from engine.runtime.worker import StrokeWorkerPool

from .components import (
    ChronoComponent,
    ChronoCounter,
    RenderComponent,
    SelectionComponent,
    TrashComponent,
)
from .stroke import StrokeStyle

logger = logging.getLogger(__name__)

# (stroke, zoom) -> RenderImage。描画協調側が注入する純関数。
Rasterizer = Callable[[StrokeStyle, float], RenderImage]


class StrokesState:
    """ストロークのアリーナと並列コンポーネント表を保持するキャンバス集約。"""

    def __init__(
        self,
        *,
        num_workers: int | None = None,
        zoom: float = 1.0,
        rasterizer: Rasterizer | None = None,
    ) -> None:
        self.strokes: dict[StrokeKey, StrokeStyle] = {}
        self.selection_components: dict[StrokeKey, SelectionComponent] = {}
        self.chrono_components: dict[StrokeKey, ChronoComponent] = {}
        self.trash_components: dict[StrokeKey, TrashComponent] = {}
        self.render_components: dict[StrokeKey, RenderComponent] = {}

        self.chrono_counter = ChronoCounter()
        self.selection_bounds: AABB | None = None
        self.zoom = float(zoom)
        self.rasterizer = rasterizer

        workers = settings.get().SELECTION_WORKERS if num_workers is None else num_workers
        self.pool: StrokeWorkerPool[StrokeKey, StrokeStyle] = StrokeWorkerPool(workers)
        self._key_seq: Iterator[int] = itertools.count(1)

    # ---- アリーナ操作 ----
    def insert_stroke(self, stroke: StrokeStyle, *, selectable: bool = True) -> StrokeKey:
        """ストロークを挿入し、付随コンポーネントを作ってキーを返す。"""
        key = StrokeKey(next(self._key_seq))
        self.strokes[key] = stroke
        if selectable:
            self.selection_components[key] = SelectionComponent()
        self.chrono_components[key] = ChronoComponent(t=self.chrono_counter.tick())
        self.trash_components[key] = TrashComponent()
        image = RenderImage(bounds=stroke.bounds())
        self.render_components[key] = RenderComponent(
            image=image,
            rendernode=image_to_texturenode(image, self.zoom),
        )
        return key

    def remove_stroke(self, key: StrokeKey) -> StrokeStyle | None:
        """ストロークと全コンポーネントを削除して返す。選択中なら選択範囲も再計算する。"""
        stroke = self.strokes.pop(key, None)
        sel = self.selection_components.pop(key, None)
        self.chrono_components.pop(key, None)
        self.trash_components.pop(key, None)
        self.render_components.pop(key, None)
        if sel is not None and sel.selected:
            self.update_selection_bounds()
        return stroke

    def trash_stroke(self, key: StrokeKey, trashed: bool = True) -> bool:
        """ゴミ箱フラグを設定する。ゴミ箱へ入れた選択中ストロークは選択から外す。"""
        trash = self.trash_components.get(key)
        if trash is None:
            return False
        trash.trashed = trashed
        sel = self.selection_components.get(key)
        if trashed and sel is not None and sel.selected:
            sel.selected = False
            self.update_selection_bounds()
        return True

    def set_render(self, key: StrokeKey, render: bool) -> bool:
        comp = self.render_components.get(key)
        if comp is None:
            return False
        comp.render = render
        return True

    # ---- 派生値 ----
    def gen_bounds(self, keys: Iterable[StrokeKey]) -> AABB | None:
        """キー列のストローク境界の union。存在しないキーは無視する。"""
        return union_bounds(
            stroke.bounds() for stroke in (self.strokes.get(k) for k in keys) if stroke is not None
        )

    def keys_sorted_chrono(self) -> list[StrokeKey]:
        """時系列値の昇順（古い → 新しい）のキー列。描画順（z-order）の決定に使う。"""
        return sorted(
            self.strokes,
            key=lambda k: (self.chrono_components[k].t if k in self.chrono_components else 0, k),
        )

    def update_selection_bounds(self) -> None:
        """`selection_bounds` を現在の選択集合から再計算する（全走査）。"""
        selected = [k for k, c in list(self.selection_components.items()) if c.selected]
        self.selection_bounds = self.gen_bounds(selected)

    # ---- 描画協調 ----
    def regenerate_rendering_for_keys(self, keys: Iterable[StrokeKey]) -> None:
        """指定キーの再ラスタライズを要求する。

        ラスタライザが注入されていればワーカープールで並列に実行して画像/表示ノードを
        更新し、フラグを下ろす。未注入ならフラグだけを立てて描画協調側に委ねる。
        """
        key_list = [k for k in keys if k in self.render_components]
        for key in key_list:
            self.render_components[key].regenerate_flag = True
        if self.rasterizer is None or not key_list:
            return

        rasterizer = self.rasterizer
        zoom = self.zoom

        def _rasterize(_key: StrokeKey, stroke: StrokeStyle) -> RenderImage:
            return rasterizer(stroke, zoom)

        items = [(k, self.strokes[k]) for k in key_list if k in self.strokes]
        for key, image in self.pool.filter_map(_rasterize, items):
            comp = self.render_components.get(key)
            if comp is None:
                continue
            comp.image = image
            comp.rendernode = image_to_texturenode(image, zoom)
            comp.regenerate_flag = False

    def close(self) -> None:
        self.pool.close()

    def __enter__(self) -> "StrokesState":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self.strokes)


__all__ = ["StrokesState", "Rasterizer"]
