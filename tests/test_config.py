# ABOUTME: Tests loading analytics thresholds from YAML.
# ABOUTME: Checks partial overrides, rejection of unknown keys and the shipped defaults file.

from pathlib import Path

import pytest
import yaml

from src.common.config import DEFAULT_CONFIG, config_from_dict, load_config

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_partial_override_keeps_other_defaults(tmp_path):
    path = tmp_path / "analytics.yaml"
    path.write_text(yaml.safe_dump({"temporal": {"min_data_points": 20}, "memory": {"target_retention": 0.9}}))

    cfg = load_config(path)

    assert cfg.temporal.min_data_points == 20
    assert cfg.temporal.confidence_threshold == DEFAULT_CONFIG.temporal.confidence_threshold
    assert cfg.memory.target_retention == 0.9
    assert cfg.timeseries == DEFAULT_CONFIG.timeseries


def test_empty_file_means_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == DEFAULT_CONFIG


def test_unknown_section_is_rejected():
    with pytest.raises(ValueError, match="Unsupported config section 'metrics'"):
        config_from_dict({"metrics": {"enabled": True}})


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError, match="min_sample_size"):
        config_from_dict({"timeseries": {"min_sample_size": 3}})


def test_shipped_config_matches_defaults():
    assert load_config(REPO_ROOT / "configs" / "analytics.yaml") == DEFAULT_CONFIG
