"""
どこで: `engine.render.texture`。
何を: `RenderImage` と倍率からズーム後の表示ノードを作る純関数 `image_to_texturenode`。
なぜ: 群変換後の境界更新で、ラスタを作り直さずに表示位置だけを即時反映するため。
"""

from __future__ import annotations

from engine.core.geometry import AABB

from .types import RenderImage, TextureNode


def image_to_texturenode(image: RenderImage, zoom: float) -> TextureNode:
    """画像境界を `zoom` 倍した表示ノードを返す（副作用なし）。

    - `zoom <= 0` は `ValueError`。
    - ラスタ未生成（`data is None`）の場合もノードは作るが `has_texture=False`。
    """
    z = float(zoom)
    if not z > 0.0:
        raise ValueError(f"zoom は正の値である必要があります: {zoom}")
    b = image.bounds
    node_bounds = AABB((b.mins[0] * z, b.mins[1] * z), (b.maxs[0] * z, b.maxs[1] * z))
    return TextureNode(
        bounds=node_bounds,
        pixel_width=int(image.pixel_width),
        pixel_height=int(image.pixel_height),
        has_texture=image.data is not None,
    )


__all__ = ["image_to_texturenode"]
