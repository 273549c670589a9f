"""
どこで: `engine.core` サブパッケージ。
何を: 境界ボックス `AABB` と群変換の純関数（`transform_utils`）を提供。
なぜ: ヒットテストと群変換の基盤を構成し、上位層（strokes/selection/export）から再利用するため。
"""

from .geometry import AABB, union_bounds

__all__ = ["AABB", "union_bounds"]
