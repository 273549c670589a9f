"""
どこで: `engine.pens` サブパッケージ。
何を: 入力から選択範囲などを組み立てるペン類（現状は `Selector` のみ）。
"""

from .selector import Selector

__all__ = ["Selector"]
