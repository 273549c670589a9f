"""
どこで: `engine.export` サブパッケージ。
何を: 選択範囲の SVG 書き出し（エンベロープ生成とファイル/ストリームへの出力）。
"""

from .svg import SvgExportError, wrap_svg, write_svg

__all__ = ["SvgExportError", "wrap_svg", "write_svg"]
