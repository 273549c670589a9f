"""
どこで: `engine.strokes` サブパッケージ。
何を: ストロークのバリアント、キー別コンポーネント表、キャンバス集約 `StrokesState`、
      選択エンジン `SelectionEngine` を提供。
なぜ: 選択/群変換のコアを 1 パッケージにまとめ、上位（UI/入力）からはこの入口だけを使うため。
"""

from .stroke import (
    BitmapImage,
    BrushStroke,
    MarkerStroke,
    ShapeStroke,
    StrokeError,
    StrokeStyle,
    StrokeSvgError,
    VectorImage,
)
from .components import (
    ChronoComponent,
    ChronoCounter,
    RenderComponent,
    SelectionComponent,
    TrashComponent,
)
from .state import StrokesState
from .selection import SelectionEngine, SelectionResult

__all__ = [
    "BitmapImage",
    "BrushStroke",
    "MarkerStroke",
    "ShapeStroke",
    "StrokeError",
    "StrokeStyle",
    "StrokeSvgError",
    "VectorImage",
    "ChronoComponent",
    "ChronoCounter",
    "RenderComponent",
    "SelectionComponent",
    "TrashComponent",
    "StrokesState",
    "SelectionEngine",
    "SelectionResult",
]
