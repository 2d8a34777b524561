import numpy as np
import pytest

from topic_model import fit_topic_model, label_topics, load_topic_model

DISJOINT_VOCAB = {
    "Space Saga": {"spaceship", "alien", "laser"},
    "Wedding Bells": {"wedding", "bride", "love"},
    "Dark Alley": {"detective", "murder", "clue"},
}


@pytest.fixture
def fitted(disjoint_dtm, config):
    return fit_topic_model(disjoint_dtm, config)


def test_gamma_rows_sum_to_one(fitted):
    sums = fitted.gamma.groupby("document")["gamma"].sum()
    np.testing.assert_allclose(sums.to_numpy(), 1.0, atol=1e-5)
    assert (fitted.gamma["gamma"] >= 0).all()


def test_beta_rows_sum_to_one(fitted):
    sums = fitted.beta.groupby("topic")["beta"].sum()
    np.testing.assert_allclose(sums.to_numpy(), 1.0, atol=1e-5)
    assert (fitted.beta["beta"] >= 0).all()


def test_topic_ids_start_at_one(fitted):
    assert fitted.topic_ids == [1, 2, 3]
    assert sorted(fitted.gamma["topic"].unique()) == [1, 2, 3]
    assert fitted.gamma_matrix().shape == (3, 3)
    assert fitted.beta_matrix().shape == (3, 9)


def test_disjoint_documents_get_distinct_topics(fitted):
    dominant = fitted.dominant_topics()
    assert dominant.nunique() == 3

    top = fitted.top_terms(1).set_index("topic")["term"]
    for doc, topic in dominant.items():
        assert top[topic] in DISJOINT_VOCAB[doc]


def test_same_seed_same_fit(disjoint_dtm, config):
    a = fit_topic_model(disjoint_dtm, config)
    b = fit_topic_model(disjoint_dtm, config)
    np.testing.assert_array_equal(a.beta_weights, b.beta_weights)
    np.testing.assert_array_equal(a.gamma_weights, b.gamma_weights)


def test_top_terms_ranked_by_descending_beta(fitted):
    top = fitted.top_terms(2)
    assert len(top) == 6
    for _, rows in top.groupby("topic"):
        assert list(rows["rank"]) == [1, 2]
        assert rows["beta"].is_monotonic_decreasing


def test_explicit_k_overrides_config(disjoint_dtm, config):
    result = fit_topic_model(disjoint_dtm, config, n_topics=2)
    assert result.n_topics == 2


def test_explicit_zero_topics_rejected(disjoint_dtm, config):
    with pytest.raises(ValueError):
        fit_topic_model(disjoint_dtm, config, n_topics=0)


def test_save_and_load_roundtrip(fitted, tmp_path):
    label_topics(fitted, {1: "first"})
    fitted.save(str(tmp_path / "models"))
    loaded = load_topic_model(str(tmp_path / "models"))
    assert loaded.dtm.documents == fitted.dtm.documents
    assert loaded.labels == {1: "first"}
    np.testing.assert_allclose(loaded.gamma_weights, fitted.gamma_weights)
    np.testing.assert_allclose(loaded.beta_weights, fitted.beta_weights)


def test_load_missing_model(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_topic_model(str(tmp_path))


def test_label_topics_rejects_unknown_ids(fitted):
    with pytest.raises(ValueError):
        label_topics(fitted, {9: "nope"})
    label_topics(fitted, {2: "romance"})
    assert "label" in fitted.top_terms(1).columns
