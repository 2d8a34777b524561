import dataclasses

import pytest

from config import AnalysisConfig


def test_defaults_match_report_settings():
    cfg = AnalysisConfig()
    assert cfg.k_range == range(1, 21)
    assert cfg.n_topics == 7
    assert cfg.seed == 1234
    assert cfg.n_clusters == 5
    assert cfg.top_n_bar == 5
    assert cfg.top_n_cloud == 20


def test_config_is_immutable():
    cfg = AnalysisConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.n_topics = 3


def test_with_overrides_skips_none():
    cfg = AnalysisConfig().with_overrides(n_topics=4, seed=None)
    assert cfg.n_topics == 4
    assert cfg.seed == 1234


def test_output_paths_follow_output_dir(tmp_path):
    cfg = AnalysisConfig(output_dir=str(tmp_path))
    assert cfg.fig_dir == str(tmp_path / "figures")
    assert cfg.table_dir == str(tmp_path / "tables")
    assert cfg.report_path.endswith("topic_report.pdf")


@pytest.mark.parametrize("kwargs", [
    {"n_topics": 0},
    {"k_min": 0},
    {"k_min": 5, "k_max": 3},
    {"n_clusters": 0},
    {"n_jobs": 0},
    {"genre_join": "fuzzy"},
    {"projection": "tsne"},
    {"select_metrics": ("Griffiths2004",)},
    {"cloud_font_range": (40, 10)},
])
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        AnalysisConfig(**kwargs)
