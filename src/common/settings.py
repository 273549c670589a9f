"""
どこで: `common.settings`
何を: 選択/変換コアの設定（ワーカ数・複製オフセット・ログレベル等）を型付きで一元管理する。
なぜ: `configs/default.yaml` と環境変数 `SCV_*` の二層を 1 箇所で解決し、既定値/型の一貫性と
      テスト容易性（`reload_from_env()` による再読込）を確保するため。

優先順: dataclass 既定値 < YAML（`selection:` セクション） < 環境変数。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from util.utils import config_section

from .env import env_bool, env_float, env_int, env_str

logger = logging.getLogger(__name__)


@dataclass
class _Settings:
    # Worker pool（0 以下でインライン実行）
    SELECTION_WORKERS: int = 4

    # 複製時のオフセット [px]
    DUPLICATION_OFFSET_X: float = 20.0
    DUPLICATION_OFFSET_Y: float = 20.0

    # Hitbox 生成カーネル
    USE_NUMBA: bool = True

    # Misc
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def _apply_yaml(section: Mapping[str, Any]) -> None:
    """YAML の `selection:` セクションを適用する。型不一致の項目は警告して無視。"""
    workers = section.get("workers")
    if workers is not None:
        try:
            _settings.SELECTION_WORKERS = max(0, int(workers))
        except (TypeError, ValueError):
            logger.warning("ignoring invalid selection.workers=%r", workers)

    offset = section.get("duplication_offset")
    if offset is not None:
        try:
            ox, oy = offset
            _settings.DUPLICATION_OFFSET_X = float(ox)
            _settings.DUPLICATION_OFFSET_Y = float(oy)
        except (TypeError, ValueError):
            logger.warning("ignoring invalid selection.duplication_offset=%r", offset)

    use_numba = section.get("use_numba")
    if isinstance(use_numba, bool):
        _settings.USE_NUMBA = use_numba

    level = section.get("log_level")
    if isinstance(level, str) and level.strip():
        _settings.LOG_LEVEL = level.strip().upper()


def reload_from_env() -> None:
    """既定値 → YAML → 環境変数の順で設定を再構築する。

    - int は `env_int`（下限 0 に丸め）、float は `env_float`、bool は `env_bool`。
    - YAML が無い/壊れている場合は既定値のまま。
    """
    defaults = _Settings()
    for name in defaults.__dataclass_fields__:
        setattr(_settings, name, getattr(defaults, name))

    _apply_yaml(config_section("selection"))

    _settings.SELECTION_WORKERS = (
        env_int("SCV_SELECTION_WORKERS", _settings.SELECTION_WORKERS, min_value=0) or 0
    )
    _settings.DUPLICATION_OFFSET_X = env_float(
        "SCV_DUPLICATION_OFFSET_X", _settings.DUPLICATION_OFFSET_X
    )
    _settings.DUPLICATION_OFFSET_Y = env_float(
        "SCV_DUPLICATION_OFFSET_Y", _settings.DUPLICATION_OFFSET_Y
    )
    _settings.USE_NUMBA = env_bool("SCV_USE_NUMBA", _settings.USE_NUMBA)
    _settings.LOG_LEVEL = env_str("SCV_LOG_LEVEL", _settings.LOG_LEVEL).upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
