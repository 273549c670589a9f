"""
どこで: `common` の型定義。
何を: Vec2/RGBA/StrokeKey などの軽量エイリアス（組込みジェネリックで記述）。
なぜ: 依存の少ない場所に配置して循環と分散定義を避けるため。
"""

from typing import NewType

Vec2 = tuple[float, float]
RGBA = tuple[float, float, float, float]

# アリーナが挿入時に払い出す安定 ID（ストロークの生存中は再利用しない）
StrokeKey = NewType("StrokeKey", int)


__all__ = ["Vec2", "RGBA", "StrokeKey"]
