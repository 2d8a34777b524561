import matplotlib
matplotlib.use("Agg")

import pandas as pd
import pytest

from config import AnalysisConfig
from dtm import build_dtm

# Small fixed list so tests never need the NLTK corpus download
TEST_STOPWORDS = frozenset("""
a an the and or of to in on for with at from by this that is are was were be been
his her their they them he she it its as into after before while when who s
""".split())

DISJOINT_TEXTS = {
    "Space Saga": " ".join(["spaceship alien laser"] * 10),
    "Wedding Bells": " ".join(["wedding bride love"] * 10),
    "Dark Alley": " ".join(["detective murder clue"] * 10),
}


@pytest.fixture
def config(tmp_path):
    return AnalysisConfig(
        k_min=1,
        k_max=4,
        n_topics=3,
        n_clusters=3,
        seed=1234,
        passes=50,
        iterations=200,
        alpha="0.1",
        n_jobs=1,
        stopwords=TEST_STOPWORDS,
        extra_stopwords=frozenset(),
        genre_join="exact",
        projection="mds",
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def disjoint_frame():
    return pd.DataFrame({
        "title": list(DISJOINT_TEXTS),
        "plot": list(DISJOINT_TEXTS.values()),
        "genre": ["Science Fiction", "Romance", "Crime"],
    })


@pytest.fixture
def disjoint_tokens():
    return {title: text.split() for title, text in DISJOINT_TEXTS.items()}


@pytest.fixture
def disjoint_dtm(disjoint_tokens):
    return build_dtm(disjoint_tokens)


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "plots.csv"
    pd.DataFrame({
        "Title": ["Alien Dawn", "First Dance", "Blood Trail", "Empty One"],
        "Plot": [
            "An alien fleet attacks; a laser spaceship defends the colony.",
            "A bride and groom plan a wedding full of love.",
            "The detective follows a clue to solve the murder.",
            "The and of 123 !!!",
        ],
        "Genre": ["Science Fiction", "Romance", "Crime", ""],
    }).to_csv(path, index=False)
    return str(path)


def tidy_gamma(rows):
    """{document: [w1, w2, ...]} -> tidy (document, topic, gamma)."""
    return pd.DataFrame(
        [(doc, t + 1, w) for doc, ws in rows.items() for t, w in enumerate(ws)],
        columns=["document", "topic", "gamma"],
    )
