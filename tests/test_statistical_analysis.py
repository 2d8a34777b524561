import os

from conftest import tidy_gamma
from statistical_analysis import genre_topic_significance

GAMMA = tidy_gamma({
    "a1": [0.90, 0.10], "a2": [0.85, 0.15], "a3": [0.95, 0.05],
    "b1": [0.10, 0.90], "b2": [0.15, 0.85], "b3": [0.05, 0.95],
    "c1": [0.50, 0.50],
})
GENRES = {"a1": "Action", "a2": "Action", "a3": "Action",
          "b1": "Romance", "b2": "Romance", "b3": "Romance",
          "c1": "Crime"}


def test_clear_genre_difference_is_significant(config, tmp_path):
    out = tmp_path / "stats.txt"
    table = genre_topic_significance(GAMMA, GENRES, config, out_path=str(out))
    assert list(table["topic"]) == [1, 2]
    assert table["significant"].all()
    assert "Action/Romance" in table.loc[0, "significant_pairs"]
    assert os.path.exists(out)
    # single-document genres are not tested
    assert "Crime" not in out.read_text()


def test_too_few_genres(config):
    table = genre_topic_significance(GAMMA, {"a1": "Action", "a2": "Action"}, config)
    assert table.empty
