"""
どこで: `util.utils`。
何を: YAML 設定ファイルの探索と読み込み（フェイルソフト）。
なぜ: 設定層（`common.settings`）がファイル配置を知らずに `selection:` セクションだけを
      受け取れるようにするため。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

logger = logging.getLogger(__name__)

# 追加の設定ファイル（最優先）を指す環境変数
CONFIG_ENV = "SCV_CONFIG"


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _find_project_root(start: Path) -> Path:
    """`.git` / `pyproject.toml` / `configs/` のいずれかを持つ最も近い祖先を返す。

    見つからなければ `start.parent.parent`（`<repo>/src/util` → `<repo>` を想定）。
    """
    cur = start.resolve()
    markers = (".git", "pyproject.toml", "configs")
    for parent in [cur, *cur.parents]:
        if any((parent / m).exists() for m in markers):
            return parent
    return cur.parent.parent


def _merge_sections(base: Dict[str, Any], override: Mapping[str, Any]) -> None:
    # セクション（辞書）同士は 1 段だけマージ、それ以外は置き換え
    for name, value in override.items():
        current = base.get(name)
        if isinstance(current, dict) and isinstance(value, Mapping):
            base[name] = {**current, **value}
        else:
            base[name] = value


def load_config(project_root: Path | None = None) -> Dict[str, Any]:
    """設定を読み込んで辞書で返す。

    読み込み順（後勝ち）:
    1) `configs/default.yaml`
    2) ルートの `config.yaml`
    3) 環境変数 `SCV_CONFIG` が指すファイル

    存在しない/壊れたファイルは無視する。全て無ければ空辞書。
    """
    if project_root is None:
        project_root = _find_project_root(Path(__file__).parent)

    candidates = [project_root / "configs" / "default.yaml", project_root / "config.yaml"]
    extra = os.getenv(CONFIG_ENV)
    if extra:
        candidates.append(Path(extra))

    merged: Dict[str, Any] = {}
    for path in candidates:
        if path.exists():
            _merge_sections(merged, _read_yaml(path))
    return merged


def config_section(name: str, project_root: Path | None = None) -> Dict[str, Any]:
    """`load_config()` の 1 セクションを返す（無い/辞書でなければ空辞書）。"""
    section = load_config(project_root).get(name)
    return dict(section) if isinstance(section, Mapping) else {}


__all__ = ["CONFIG_ENV", "load_config", "config_section"]
