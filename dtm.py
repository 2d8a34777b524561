# dtm.py
"""
Document-term matrix on top of a gensim Dictionary + bag-of-words corpus.

The vocabulary is the union of all surviving terms; nothing is pruned.
Documents with no terms cannot be represented and are left out.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
from gensim import corpora
from scipy import sparse

logger = logging.getLogger(__name__)

BoW = List[Tuple[int, int]]


class EmptyDocumentError(ValueError):
    """A document with zero terms reached the matrix."""


@dataclass
class DocumentTermMatrix:
    documents: List[str]
    dictionary: corpora.Dictionary
    corpus: List[BoW]
    excluded: List[str] = field(default_factory=list)

    def __post_init__(self):
        if len(self.documents) != len(self.corpus):
            raise ValueError("documents and corpus must have the same length")
        if not self.documents:
            raise EmptyDocumentError("Document-term matrix has no documents")
        for doc, bow in zip(self.documents, self.corpus):
            if not bow:
                raise EmptyDocumentError(f"Document '{doc}' has no terms")

    @property
    def n_documents(self) -> int:
        return len(self.documents)

    @property
    def n_terms(self) -> int:
        return len(self.dictionary)

    @property
    def terms(self) -> List[str]:
        return [self.dictionary[i] for i in range(len(self.dictionary))]

    @property
    def doc_lengths(self) -> np.ndarray:
        return np.array([sum(c for _, c in bow) for bow in self.corpus], dtype=float)

    def to_sparse(self) -> sparse.csr_matrix:
        rows, cols, vals = [], [], []
        for i, bow in enumerate(self.corpus):
            for term_id, count in bow:
                rows.append(i)
                cols.append(term_id)
                vals.append(count)
        return sparse.csr_matrix(
            (np.array(vals, dtype=np.int64), (rows, cols)),
            shape=(self.n_documents, self.n_terms),
        )

    def to_frame(self) -> pd.DataFrame:
        """Tidy counts; only non-zero cells appear."""
        rows = [
            (doc, self.dictionary[term_id], count)
            for doc, bow in zip(self.documents, self.corpus)
            for term_id, count in bow
        ]
        return pd.DataFrame(rows, columns=["document", "term", "count"])

    def texts(self) -> List[List[str]]:
        """Token lists rebuilt from counts (order lost); used by coherence."""
        return [[self.dictionary[t] for t, c in bow for _ in range(c)] for bow in self.corpus]


def build_dtm(tokens_by_doc: Dict[str, Sequence[str]]) -> DocumentTermMatrix:
    kept = {doc: list(tokens) for doc, tokens in tokens_by_doc.items() if tokens}
    excluded = [doc for doc, tokens in tokens_by_doc.items() if not tokens]
    if excluded:
        logger.warning(
            "Excluded %d document(s) with no terms after cleaning: %s",
            len(excluded), ", ".join(excluded[:10]) + (" ..." if len(excluded) > 10 else ""),
        )
    if not kept:
        raise EmptyDocumentError(f"All {len(tokens_by_doc)} documents are empty after cleaning")

    documents = list(kept)
    dictionary = corpora.Dictionary(kept[d] for d in documents)
    corpus = [dictionary.doc2bow(kept[d]) for d in documents]
    logger.info("Document-term matrix: %d documents x %d terms", len(documents), len(dictionary))
    return DocumentTermMatrix(documents, dictionary, corpus, excluded)
