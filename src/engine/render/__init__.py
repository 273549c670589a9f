"""
どこで: `engine.render` サブパッケージ。
何を: 描画協調側との境界（`RenderImage`/`TextureNode`/`image_to_texturenode`）を提供。
なぜ: 選択コアがラスタライズ実装に依存せず、境界更新と再生成要求だけを伝えられるようにするため。
"""

from .texture import image_to_texturenode
from .types import RenderImage, TextureNode

__all__ = ["RenderImage", "TextureNode", "image_to_texturenode"]
