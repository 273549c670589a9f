"""
どこで: `common` パッケージ。
何を: 設定・環境変数・ロギング・型エイリアスなどの軽量共通基盤。
なぜ: engine 側の各層から再利用する基盤を分離し、依存の向きを単純化するため。
"""

from .logging import setup_default_logging
from .types import RGBA, StrokeKey, Vec2

__all__ = [
    "RGBA",
    "StrokeKey",
    "Vec2",
    "setup_default_logging",
]
