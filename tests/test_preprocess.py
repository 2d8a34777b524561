import pandas as pd

from preprocess import clean_documents, load_stopwords, normalize_text, term_occurrences, tokenize


def test_normalize_text_keeps_letters_only():
    assert normalize_text("The Alien's LASER-gun, 1984!") == "the alien s laser gun"
    assert normalize_text(None) == ""


def test_tokenize_splits_on_whitespace():
    assert tokenize("  Space\tship\nalien ") == ["space", "ship", "alien"]


def test_tokenize_keeps_accented_letters():
    assert tokenize("Amélie meets a naïve señor in Zürich") == [
        "amélie", "meets", "a", "naïve", "señor", "in", "zürich"]
    assert normalize_text("R2_D2") == "r d"


def test_stopwords_include_custom_exclusions(config):
    cfg = config.with_overrides(extra_stopwords=frozenset({"Frodo"}))
    stop = load_stopwords(cfg)
    assert "frodo" in stop
    assert "the" in stop


def test_clean_documents_removes_stopwords_without_stemming(config):
    frame = pd.DataFrame({
        "title": ["A", "B"],
        "plot": ["The detectives were running after the killers", "the and of"],
        "genre": [None, None],
    })
    docs = clean_documents(frame, config)
    assert docs["A"] == ["detectives", "running", "killers"]
    assert docs["B"] == []


def test_term_occurrences_one_row_per_token():
    occ = term_occurrences({"A": ["x", "x", "y"], "B": []})
    assert len(occ) == 3
    assert set(occ["document"]) == {"A"}
