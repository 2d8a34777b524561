# genre_topics.py
# Average topic weight per genre, and checks on the title join behind it.
import logging
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from config import AnalysisConfig
from dataset import normalize_title

logger = logging.getLogger(__name__)


def find_join_mismatches(documents: Iterable[str], lookup_titles: Iterable[str]) -> List[Tuple[str, str]]:
    """(document, lookup title) pairs that differ only by case/whitespace."""
    lookup_titles = list(lookup_titles)
    exact = set(lookup_titles)
    by_key: Dict[str, str] = {}
    for title in lookup_titles:
        by_key.setdefault(normalize_title(title), title)
    pairs = []
    for doc in documents:
        if doc in exact:
            continue
        match = by_key.get(normalize_title(doc))
        if match is not None:
            pairs.append((doc, match))
    return pairs


def attach_genres(gamma: pd.DataFrame, genres: Dict[str, str], config: AnalysisConfig) -> pd.DataFrame:
    """Inner join of tidy gamma onto the genre lookup; unmatched documents are dropped."""
    documents = gamma["document"].unique()
    mismatches = find_join_mismatches(documents, genres.keys())

    if config.genre_join == "normalized":
        by_key: Dict[str, str] = {}
        for title, genre in genres.items():
            by_key.setdefault(normalize_title(title), genre)
        doc_genre = {doc: by_key.get(normalize_title(doc)) for doc in documents}
        if mismatches:
            logger.info("Joined %d title(s) after case/whitespace normalization", len(mismatches))
    else:
        doc_genre = {doc: genres.get(doc) for doc in documents}
        if mismatches:
            logger.warning(
                "%d title(s) did not join exactly but match after case/whitespace normalization "
                "(use genre_join='normalized' to include them): %s",
                len(mismatches), "; ".join(f"{d!r}~{t!r}" for d, t in mismatches[:10]),
            )

    missing = [doc for doc, g in doc_genre.items() if g is None]
    if missing:
        logger.warning("Excluded %d document(s) without a genre from the genre aggregation", len(missing))

    joined = gamma.assign(genre=gamma["document"].map(doc_genre))
    return joined.dropna(subset=["genre", "gamma"]).reset_index(drop=True)


def genre_topic_means(gamma: pd.DataFrame, genres: Dict[str, str], config: AnalysisConfig) -> pd.DataFrame:
    """Mean gamma per (genre, topic), plus the number of documents averaged."""
    joined = attach_genres(gamma, genres, config)
    if joined.empty:
        return pd.DataFrame(columns=["genre", "topic", "gamma", "n_documents"])
    means = (
        joined.groupby(["genre", "topic"], sort=True)
        .agg(gamma=("gamma", "mean"), n_documents=("document", "nunique"))
        .reset_index()
    )
    return means.dropna(subset=["gamma"]).reset_index(drop=True)


def genre_topic_alignment(means: pd.DataFrame) -> pd.DataFrame:
    """Per genre, the topic with the highest mean gamma."""
    if means.empty:
        return pd.DataFrame(columns=["genre", "topic", "gamma"])
    idx = means.groupby("genre")["gamma"].idxmax()
    return means.loc[idx, ["genre", "topic", "gamma"]].reset_index(drop=True)
