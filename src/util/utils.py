"""
どこで: `util.utils`（設定ローダ）。
何を: `configs/default.yaml` とルート `config.yaml` を読み、`engine`/`generator`/`logging` の
      セクション単位でマージした設定辞書を返す。セクション取り出しと「引数 > 設定 > 既定」の解決も担う。
なぜ: ランナーやデモが YAML の所在やマージ規則を知らずに、同じ優先順位で値を決められるようにするため。
"""

from pathlib import Path
from typing import Any, Dict

import yaml

# セクション単位（1 段）でマージするキー。それ以外のトップレベルキーは丸ごと上書き。
CONFIG_SECTIONS = ("engine", "generator", "logging")

_ROOT_MARKERS = ("pyproject.toml", "configs")


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    """YAML を辞書として読む。読めない/辞書でない場合は空辞書（フェイルソフト）。"""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def find_project_root(start: Path | None = None) -> Path:
    """`pyproject.toml` か `configs/` を持つ最も近い祖先ディレクトリを返す。

    見つからなければ `<repo>/src/util/utils.py` 配置を仮定して 2 階層上を返す。
    """
    cur = (start or Path(__file__).parent).resolve()
    for parent in [cur, *cur.parents]:
        if any((parent / marker).exists() for marker in _ROOT_MARKERS):
            return parent
    return cur.parent.parent


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """`override` を `base` に重ねた新しい辞書を返す。

    `CONFIG_SECTIONS` のキーは両方が辞書ならキー単位で上書きし、それ以外は値ごと置き換える。
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if key in CONFIG_SECTIONS and isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def load_config(root: Path | None = None) -> Dict[str, Any]:
    """設定を読み込んで辞書で返す（フェイルソフト）。

    1) `<root>/configs/default.yaml`（ベース）
    2) `<root>/config.yaml`（セクション単位で上書き）

    どちらも無い/不正なら空辞書。`root` 省略時は `find_project_root()`。
    """
    project_root = find_project_root() if root is None else Path(root)
    cfg: Dict[str, Any] = {}
    for path in (project_root / "configs" / "default.yaml", project_root / "config.yaml"):
        if path.exists():
            cfg = merge_config(cfg, _read_yaml_mapping(path))
    return cfg


def config_section(cfg: Dict[str, Any] | None, name: str) -> Dict[str, Any]:
    """トップレベルのセクション（`engine`, `generator` など）を辞書で返す。

    セクションが無い/辞書でない場合は空辞書。
    """
    if not isinstance(cfg, dict):
        return {}
    section = cfg.get(name)
    return dict(section) if isinstance(section, dict) else {}


def resolve_setting(explicit: Any, section: Dict[str, Any], key: str, default: Any) -> Any:
    """明示引数 > セクションの値 > 既定 の順で最初の非 None を返す。"""
    if explicit is not None:
        return explicit
    value = section.get(key)
    return default if value is None else value
