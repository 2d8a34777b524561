# preprocess.py
# Plot text cleaning: lowercase, alphabetic-only, whitespace tokens, stop words out.
import logging
import re
from typing import Dict, FrozenSet, List

import pandas as pd

from config import AnalysisConfig

logger = logging.getLogger(__name__)

_NON_ALPHA = re.compile(r"[\W\d_]+")
_NLTK_STOPWORDS: FrozenSet[str] = frozenset()


def normalize_text(text) -> str:
    if text is None or (isinstance(text, float) and pd.isna(text)):
        return ""
    return _NON_ALPHA.sub(" ", str(text).lower()).strip()


def tokenize(text) -> List[str]:
    return normalize_text(text).split()


def _nltk_stopwords() -> FrozenSet[str]:
    """English stop words from NLTK, fetching the corpus on first use."""
    global _NLTK_STOPWORDS
    if not _NLTK_STOPWORDS:
        import nltk
        from nltk.corpus import stopwords as nltk_stopwords
        try:
            nltk.data.find("corpora/stopwords")
        except LookupError:
            logger.info("NLTK stopwords not found. Downloading...")
            nltk.download("stopwords", quiet=True)
        _NLTK_STOPWORDS = frozenset(nltk_stopwords.words("english"))
    return _NLTK_STOPWORDS


def load_stopwords(config: AnalysisConfig) -> FrozenSet[str]:
    base = config.stopwords if config.stopwords is not None else _nltk_stopwords()
    extra = {w.lower() for w in config.extra_stopwords}
    return frozenset(base) | frozenset(extra)


def clean_documents(frame: pd.DataFrame, config: AnalysisConfig) -> Dict[str, List[str]]:
    """title -> surviving tokens, in input order. Empty lists are kept here."""
    stop = load_stopwords(config)
    docs = {}
    for title, plot in zip(frame["title"], frame["plot"]):
        docs[title] = [t for t in tokenize(plot) if t not in stop]
    n_tokens = sum(len(t) for t in docs.values())
    logger.info("Cleaned %d documents (%d tokens, %d stop words)", len(docs), n_tokens, len(stop))
    return docs


def term_occurrences(tokens_by_doc: Dict[str, List[str]]) -> pd.DataFrame:
    """One row per (document, term) occurrence."""
    rows = [(doc, term) for doc, tokens in tokens_by_doc.items() for term in tokens]
    return pd.DataFrame(rows, columns=["document", "term"])
