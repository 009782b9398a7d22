from __future__ import annotations

import pytest

from util.utils import (
    _read_yaml_mapping,
    config_section,
    find_project_root,
    load_config,
    merge_config,
    resolve_setting,
)


@pytest.mark.integration
# What this tests
# - load_config merges configs/default.yaml (base) with root config.yaml (override).
# - The shipped defaults expose the engine/generator sections the runner reads.
def test_load_config_merges_default_and_root():
    cfg = load_config()
    # configs/default.yaml provides `test_marker: true` which should appear
    assert cfg.get("test_marker") is True
    engine = config_section(cfg, "engine")
    assert engine.get("metric") in {"mse", "mae", "psnr"}
    assert "n_vertices" in config_section(cfg, "generator")


def test_root_config_overrides_per_section_key(tmp_path):
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text(
        "engine:\n  metric: mse\n  seed: 1\nlogging:\n  level: INFO\nextra: [1, 2]\n",
        encoding="utf-8",
    )
    (tmp_path / "config.yaml").write_text(
        "engine:\n  seed: 42\nextra: 3\n", encoding="utf-8"
    )
    cfg = load_config(tmp_path)
    # engine は 1 段マージ（metric が残る）、その他のキーは丸ごと置換
    assert config_section(cfg, "engine") == {"metric": "mse", "seed": 42}
    assert config_section(cfg, "logging") == {"level": "INFO"}
    assert cfg["extra"] == 3
    assert find_project_root(tmp_path / "configs") == tmp_path.resolve()


def test_load_config_without_files_is_empty(tmp_path):
    assert load_config(tmp_path) == {}


def test_merge_config_replaces_non_dict_sections():
    merged = merge_config({"engine": {"seed": 1}}, {"engine": None})
    assert merged == {"engine": None}
    assert config_section(merged, "engine") == {}


def test_read_yaml_mapping_is_fail_soft(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("engine: [unclosed\n", encoding="utf-8")
    assert _read_yaml_mapping(bad) == {}
    listy = tmp_path / "list.yaml"
    listy.write_text("- a\n- b\n", encoding="utf-8")
    assert _read_yaml_mapping(listy) == {}
    assert _read_yaml_mapping(tmp_path / "missing.yaml") == {}


def test_config_section_ignores_non_dict():
    assert config_section({"engine": 3}, "engine") == {}
    assert config_section(None, "engine") == {}
    assert config_section({"engine": {"seed": 1}}, "engine") == {"seed": 1}


def test_resolve_setting_precedence():
    section = {"seed": 7, "metric": None}
    assert resolve_setting(3, section, "seed", 0) == 3
    assert resolve_setting(None, section, "seed", 0) == 7
    assert resolve_setting(None, section, "metric", "mse") == "mse"
    assert resolve_setting(None, {}, "missing", None) is None
