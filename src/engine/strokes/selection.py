"""
どこで: `engine.strokes.selection`。
何を: 選択エンジン。キャンバス集約 `StrokesState` の選択コンポーネント表と派生値
      `selection_bounds` を所有し、選択の問い合わせ/変更、セレクタ矩形によるヒットテスト、
      選択全体の群変換（平行移動・拡大縮小・複製）、選択範囲の SVG 書き出しを提供する。
なぜ: 選択状態の不変条件（`selection_bounds` = 選択中ストローク境界の union）を、
      すべての変更経路で 1 箇所から維持するため。

並列化の方針:
- ストローク単位の走査/変換（ヒットテスト・拡大縮小・平行移動）は `StrokeWorkerPool` で
  並列に行う。各タスクは自分のキーのストロークだけを触る。
- 共有値（chrono カウンタ、選択フラグの確定、描画コンポーネントの更新）は結果を集めた後の
  逐次ポストパスで書く。カウンタ自体もロック付き（`ChronoCounter.tick()`）。
  これにより chrono 値はアリーナ順で決定的に払い出される。

chrono の規約:
- `set_selected(key, True)` は明示的な「触れた」操作として毎回刻む。
- `deselect_all_strokes()` は選択中だったストロークごとに 1 回刻む。
- セレクタ矩形による更新では、非選択 → 選択への遷移だけを刻む（ドラッグでの一括解除は刻まない）。
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from common import settings
from common.types import StrokeKey, Vec2
from engine.core.geometry import AABB
from engine.core.transform_utils import DEGENERATE_EXTENT, calc_new_stroke_bounds
from engine.export.svg import SvgSink, wrap_svg, write_svg
from engine.pens.selector import Selector
from engine.render.texture import image_to_texturenode

from .stroke import StrokeStyle, StrokeSvgError, is_freehand

if TYPE_CHECKING:
    from .state import StrokesState

logger = logging.getLogger(__name__)


class SelectionResult(enum.Enum):
    """選択状態の変更結果。ログを解析せずに分岐できるよう明示する。"""

    APPLIED = "applied"
    NOT_SELECTABLE = "not_selectable"


def hit_test(stroke: StrokeStyle, selector_bounds: AABB) -> bool:
    """セレクタ矩形がストロークを選択するか。

    - 境界を完全に包含 → 選択。
    - 交差のみ → ヒットボックスを持つバリアントは全サブボックスの包含で選択、
      持たないバリアント（図形/画像）は選択しない。
    - それ以外 → 非選択。
    """
    bounds = stroke.bounds()
    if selector_bounds.contains(bounds):
        return True
    if not selector_bounds.intersects(bounds):
        return False
    if not is_freehand(stroke):
        return False
    return selector_bounds.contains_all(stroke.hitbox())


class SelectionEngine:
    """`StrokesState` 上の選択操作一式。

    エンジンは呼び出し中だけキャンバスを借りる。呼び出しをまたぐハンドルはキーのみで、
    ストロークやコンポーネントへの参照は保持しない。
    """

    def __init__(self, state: "StrokesState") -> None:
        self.state = state

    # ---- 問い合わせ ----
    def can_select(self, key: StrokeKey) -> bool:
        """選択コンポーネントを持つ（＝選択可能な）キーか。"""
        return key in self.state.selection_components

    def selected(self, key: StrokeKey) -> bool | None:
        """現在の選択フラグ。選択コンポーネントが無ければ警告して None。"""
        comp = self.state.selection_components.get(key)
        if comp is None:
            logger.warning(
                "failed to get selection_component for stroke with key %s, "
                "invalid key used or stroke does not support selecting",
                key,
            )
            return None
        return comp.selected

    def keys_selection(self) -> list[StrokeKey]:
        """選択中のキー（順序は規定しない）。"""
        return [k for k, c in list(self.state.selection_components.items()) if c.selected]

    def selection_len(self) -> int:
        return len(self.keys_selection())

    def update_selection_bounds(self) -> None:
        self.state.update_selection_bounds()

    # ---- 選択状態の変更 ----
    def _stamp_chrono(self, key: StrokeKey) -> None:
        chrono = self.state.chrono_components.get(key)
        if chrono is not None:
            chrono.t = self.state.chrono_counter.tick()

    def set_selected(self, key: StrokeKey, selected: bool) -> SelectionResult:
        """選択フラグを設定し、`selection_bounds` を再計算する。

        True を設定した場合は chrono を進めてストロークに刻む。選択コンポーネントが無い
        キーは警告して `NOT_SELECTABLE` を返す（状態は変えない）。
        """
        comp = self.state.selection_components.get(key)
        if comp is None:
            logger.warning(
                "failed to get selection_component for stroke with key %s, "
                "invalid key used or stroke does not support selecting",
                key,
            )
            return SelectionResult.NOT_SELECTABLE

        comp.selected = bool(selected)
        if comp.selected:
            self._stamp_chrono(key)
        self.state.update_selection_bounds()
        return SelectionResult.APPLIED

    def deselect_all_strokes(self) -> None:
        """全選択を解除する。選択中だったストロークごとに chrono を 1 回刻む。"""
        for key, comp in list(self.state.selection_components.items()):
            if not comp.selected:
                continue
            comp.selected = False
            self._stamp_chrono(key)
        self.state.selection_bounds = None

    # ---- セレクタによる選択 ----
    def update_selection_for_selector(
        self, selector: Selector, viewport: AABB | None = None
    ) -> bool:
        """セレクタ矩形で選択集合を更新し、集合が変わったかを返す。

        - セレクタに矩形が無ければ何もしない（False）。
        - ゴミ箱/非表示のストローク、ビューポート外のストロークは判定対象外（状態も保持）。
        - 判定は並列、確定（フラグ/chrono）は逐次ポストパスで行う。
        """
        selector_bounds = selector.bounds
        if selector_bounds is None:
            return False

        state = self.state
        before = set(self.keys_selection())

        def _evaluate(key: StrokeKey, stroke: StrokeStyle) -> bool | None:
            render_comp = state.render_components.get(key)
            trash_comp = state.trash_components.get(key)
            # Skip if stroke is hidden
            if render_comp is not None and not render_comp.render:
                return None
            if trash_comp is not None and trash_comp.trashed:
                return None
            # skip if stroke is not in viewport
            if viewport is not None and not viewport.intersects(stroke.bounds()):
                return None
            if key not in state.selection_components:
                return None
            return hit_test(stroke, selector_bounds)

        verdicts = state.pool.filter_map(_evaluate, list(state.strokes.items()))

        for key, hit in verdicts:
            comp = state.selection_components.get(key)
            if comp is None:
                # 判定中に削除された
                continue
            if hit and not comp.selected:
                self._stamp_chrono(key)
            comp.selected = hit

        after = set(self.keys_selection())
        if after == before:
            return False

        state.update_selection_bounds()
        state.regenerate_rendering_for_keys(sorted(after))
        logger.debug(
            "selection changed by selector: %d -> %d strokes", len(before), len(after)
        )
        return True

    # ---- 群変換 ----
    def resize_selection(self, new_bounds: AABB) -> None:
        """選択全体を `new_bounds` へ拡大縮小する（各ストロークの相対位置/相対サイズを保つ）。

        描画は境界と表示ノードだけを即時更新し、`regenerate_flag` を立てて再ラスタライズを
        描画協調側に委ねる（対話的なリサイズの完了後に 1 回行う想定）。
        選択範囲の幅か高さが 0 の場合その軸は平行移動だけになり、`selection_bounds` は
        `new_bounds` ではなく変形後のストローク境界の union になる。
        選択が無ければ何もしない。
        """
        state = self.state
        selection_bounds = state.selection_bounds
        if selection_bounds is None:
            return

        def _resize(key: StrokeKey, stroke: StrokeStyle) -> AABB | None:
            comp = state.selection_components.get(key)
            if comp is None or not comp.selected:
                return None
            new_stroke_bounds = calc_new_stroke_bounds(stroke.bounds(), selection_bounds, new_bounds)
            stroke.resize(new_stroke_bounds)
            return new_stroke_bounds

        resized = state.pool.filter_map(_resize, list(state.strokes.items()))

        for key, new_stroke_bounds in resized:
            render_comp = state.render_components.get(key)
            if render_comp is None:
                continue
            render_comp.image.bounds = new_stroke_bounds
            render_comp.rendernode = image_to_texturenode(render_comp.image, state.zoom)
            render_comp.regenerate_flag = True

        # 退化軸は平行移動のみで new_bounds とは一致しないので union を取り直す
        old_w, old_h = selection_bounds.extents
        if min(old_w, old_h) <= DEGENERATE_EXTENT:
            state.selection_bounds = state.gen_bounds(key for key, _ in resized)
        else:
            state.selection_bounds = new_bounds

    def translate_selection(self, offset: Vec2) -> None:
        """選択全体を `offset` だけ平行移動する。選択が無ければ境界は None のまま。"""
        state = self.state
        delta = (float(offset[0]), float(offset[1]))

        def _translate(key: StrokeKey, stroke: StrokeStyle) -> bool | None:
            comp = state.selection_components.get(key)
            if comp is None or not comp.selected:
                return None
            stroke.translate(delta)
            return True

        translated = state.pool.filter_map(_translate, list(state.strokes.items()))

        for key, _ in translated:
            render_comp = state.render_components.get(key)
            if render_comp is None:
                continue
            render_comp.image.bounds = render_comp.image.bounds.translate(delta)
            render_comp.rendernode = image_to_texturenode(render_comp.image, state.zoom)

        if state.selection_bounds is not None:
            state.selection_bounds = state.selection_bounds.translate(delta)

    def duplicate_selection(self) -> list[StrokeKey]:
        """選択中のストロークを複製し、複製側を選択してオフセットをずらす。

        オフセット（既定 20, 20）は複製 1 つにつき 1 回だけ適用する。元の選択は解除される。
        新しいキーを元キーの昇順に対応する順で返す。
        """
        cfg = settings.get()
        offset = (cfg.DUPLICATION_OFFSET_X, cfg.DUPLICATION_OFFSET_Y)
        state = self.state

        selected = sorted(self.keys_selection())
        self.deselect_all_strokes()

        new_keys: list[StrokeKey] = []
        for key in selected:
            stroke = state.strokes.get(key)
            if stroke is None:
                continue
            clone = stroke.clone()
            # Offsetting the new selected stroke to make the duplication apparent to the user
            clone.translate(offset)
            new_key = state.insert_stroke(clone)
            state.selection_components[new_key].selected = True
            self._stamp_chrono(new_key)
            new_keys.append(new_key)

        state.update_selection_bounds()
        state.regenerate_rendering_for_keys(new_keys)
        return new_keys

    # ---- 書き出し ----
    def gen_svg_selection(self) -> str | None:
        """選択範囲を原点基準に移した SVG 文書を返す。選択が無ければ None。

        要素は chrono 順（古い → 新しい）に並べる。1 ストロークの生成失敗はスキップする。
        """
        state = self.state
        selection_bounds = state.selection_bounds
        if selection_bounds is None:
            return None

        offset = (-selection_bounds.mins[0], -selection_bounds.mins[1])
        selected = set(self.keys_selection())
        blocks: list[str] = []
        for key in state.keys_sorted_chrono():
            if key not in selected:
                continue
            stroke = state.strokes.get(key)
            if stroke is None:
                continue
            try:
                blocks.append(stroke.gen_svg_data(offset))
            except StrokeSvgError as exc:
                logger.debug("skipping stroke %s in svg export: %s", key, exc, exc_info=True)

        data = "".join(block + "\n" for block in blocks)
        width, height = selection_bounds.extents
        wrapper_bounds = AABB((0.0, 0.0), (width, height))
        return wrap_svg(
            data,
            bounds=wrapper_bounds,
            viewbox=wrapper_bounds,
            xml_header=True,
            preserve_aspectratio=False,
        )

    def export_selection_as_svg(self, sink: SvgSink) -> bool:
        """選択範囲の SVG を `sink` へ書き出し、書き出したかを返す。

        選択が無ければ何も書かずに False（ファイルも作らない）。I/O 失敗は `SvgExportError`。
        """
        data = self.gen_svg_selection()
        if data is None:
            return False
        write_svg(sink, data)
        return True


__all__ = ["SelectionEngine", "SelectionResult", "hit_test"]
