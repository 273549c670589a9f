"""
ストローク選択コア向けの軽量ロギングユーティリティ。

要点:
- 各モジュールは `logging.getLogger(__name__)` でロガーを取得する。
- アプリ側で設定が無い場合に限り、設定値 `LOG_LEVEL` に従う最小構成を 1 度だけ適用する。
"""

from __future__ import annotations

import logging

from . import settings


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = settings.get().LOG_LEVEL
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return int(level)


def setup_default_logging(level: int | str | None = None) -> bool:
    """最小限のロギング設定を 1 度だけ適用し、適用したかを返す。

    - ルートロガーにハンドラが既にあれば何もしない（False）
    - `level` 省略時は `common.settings` の `LOG_LEVEL` を使う
    """
    root = logging.getLogger()
    if root.handlers:
        # Assume the app has configured logging
        return False
    logging.basicConfig(
        level=_resolve_level(level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return True


__all__ = ["setup_default_logging"]
