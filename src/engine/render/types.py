"""
どこで: `engine.render` 型定義。
何を: ラスタ画像 `RenderImage` と表示ノード `TextureNode` の軽量データクラス。
なぜ: 選択コアはラスタライズを行わないが、境界の更新と再生成要求だけは描画協調側の
      型を通して伝える必要があるため。
"""

from __future__ import annotations

from dataclasses import dataclass, field

from engine.core.geometry import AABB


@dataclass
class RenderImage:
    """キャンバス座標での配置境界と、任意のラスタデータ（RGBA8 プリマルチプライド）。

    `data` が None のときは未ラスタライズ（プレースホルダ）を表す。
    """

    bounds: AABB
    data: bytes | None = None
    pixel_width: int = 0
    pixel_height: int = 0


@dataclass(frozen=True)
class TextureNode:
    """ズーム適用後のウィジェット座標に配置された表示ノード。"""

    bounds: AABB  # ズーム後の表示矩形
    pixel_width: int
    pixel_height: int
    has_texture: bool = field(default=False)


__all__ = ["RenderImage", "TextureNode"]
