import os

import numpy as np
import pandas as pd
import pytest

import visualize

TOP_TERMS = pd.DataFrame({
    "topic": [1, 1, 2, 2],
    "term": ["alien", "laser", "bride", "love"],
    "beta": [0.5, 0.3, 0.6, 0.2],
    "rank": [1, 2, 1, 2],
})


def test_scree_plot(tmp_path):
    table = pd.DataFrame({
        "topics": [1, 2, 3],
        "CaoJuan2009": [np.nan, 0.2, 0.1],
        "Deveaud2014": [np.nan, 1.0, 2.0],
        "perplexity": [30.0, 20.0, 25.0],
    })
    path = visualize.plot_topic_count_metrics(table, str(tmp_path / "scree.png"))
    assert os.path.getsize(path) > 0


def test_top_terms_plot(tmp_path):
    path = visualize.plot_top_terms(TOP_TERMS, str(tmp_path / "top.png"), labels={1: "space"})
    assert os.path.exists(path)


def test_genre_plot(tmp_path):
    means = pd.DataFrame({"genre": ["A", "A", "B", "B"], "topic": [1, 2, 1, 2], "gamma": [0.7, 0.3, 0.2, 0.8]})
    assert os.path.exists(visualize.plot_genre_topics(means, str(tmp_path / "genre.png")))


def test_cluster_plots(tmp_path):
    proj = pd.DataFrame({
        "document": list("abcd"),
        "x": [0.0, 1.0, 0.0, 5.0],
        "y": [0.0, 0.0, 1.0, 5.0],
        "cluster": [1, 1, 1, 2],
    })
    hulls = {1: proj[["x", "y"]].to_numpy()[:3]}
    assert os.path.exists(visualize.plot_clusters(proj, str(tmp_path / "c.png"), hulls=hulls))
    centroids = pd.DataFrame([[0.9, 0.1], [0.2, 0.8]], index=[1, 2], columns=[1, 2])
    assert os.path.exists(visualize.plot_cluster_topic_profile(centroids, str(tmp_path / "cent.png")))


def test_one_wordcloud_per_topic(tmp_path):
    paths = visualize.plot_wordclouds(TOP_TERMS, str(tmp_path / "clouds"), font_range=(10, 60), seed=1)
    assert [os.path.basename(p) for p in paths] == ["topic_01_wordcloud.png", "topic_02_wordcloud.png"]
    assert all(os.path.exists(p) for p in paths)


@pytest.mark.parametrize("plot", [
    lambda p: visualize.plot_top_terms(TOP_TERMS.iloc[0:0], p),
    lambda p: visualize.plot_genre_topics(pd.DataFrame(columns=["genre", "topic", "gamma"]), p),
    lambda p: visualize.plot_clusters(pd.DataFrame(columns=["document", "x", "y", "cluster"]), p),
    lambda p: visualize.plot_topic_count_metrics(pd.DataFrame(columns=["topics"]), p),
    lambda p: visualize.plot_wordclouds(TOP_TERMS.iloc[0:0], p),
])
def test_empty_input_raises(tmp_path, plot):
    with pytest.raises(visualize.NoDataError):
        plot(str(tmp_path / "empty.png"))
