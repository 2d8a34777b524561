# topic_model.py
"""
Fit an LDA topic model on the document-term matrix and expose its
per-topic term weights (beta) and per-document topic weights (gamma).

Topic ids run 1..k and are arbitrary labels of a single fit: refitting with
a different seed or k can reorder or reshuffle topics. Give them names with
`label_topics` only after looking at their top terms.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from gensim import corpora
from gensim.models import LdaModel

from config import AnalysisConfig
from dtm import DocumentTermMatrix

logger = logging.getLogger(__name__)

MODEL_FILE = "lda.model"
DICT_FILE = "lda.dict"
CORPUS_FILE = "corpus.mm"
GAMMA_FILE = "gamma.npy"
META_FILE = "documents.json"


def _parse_alpha(alpha):
    if isinstance(alpha, str):
        try:
            return float(alpha)
        except ValueError:
            return alpha
    return alpha


def train_lda(dtm: DocumentTermMatrix, n_topics: int, config: AnalysisConfig) -> LdaModel:
    """One seeded gensim LDA fit; same inputs + seed -> same model."""
    return LdaModel(
        corpus=dtm.corpus,
        id2word=dtm.dictionary,
        num_topics=n_topics,
        passes=config.passes,
        iterations=config.iterations,
        alpha=_parse_alpha(config.alpha),
        random_state=config.seed,
    )


def infer_gamma(model: LdaModel, corpus) -> np.ndarray:
    """Row-normalized variational gamma, one row per document."""
    gamma, _ = model.inference(corpus)
    return gamma / gamma.sum(axis=1, keepdims=True)


@dataclass
class TopicModelResult:
    model: LdaModel
    dtm: DocumentTermMatrix
    beta_weights: np.ndarray    # topics x terms
    gamma_weights: np.ndarray   # documents x topics
    labels: Dict[int, str] = field(default_factory=dict)

    @property
    def n_topics(self) -> int:
        return self.beta_weights.shape[0]

    @property
    def topic_ids(self) -> List[int]:
        return list(range(1, self.n_topics + 1))

    def beta_matrix(self) -> pd.DataFrame:
        return pd.DataFrame(self.beta_weights, index=pd.Index(self.topic_ids, name="topic"),
                            columns=self.dtm.terms)

    def gamma_matrix(self) -> pd.DataFrame:
        return pd.DataFrame(self.gamma_weights, index=pd.Index(self.dtm.documents, name="document"),
                            columns=self.topic_ids)

    @property
    def beta(self) -> pd.DataFrame:
        """Tidy (topic, term, beta)."""
        wide = self.beta_matrix()
        wide.columns.name = "term"
        return wide.stack().rename("beta").reset_index()

    @property
    def gamma(self) -> pd.DataFrame:
        """Tidy (document, topic, gamma)."""
        wide = self.gamma_matrix()
        wide.columns.name = "topic"
        return wide.stack().rename("gamma").reset_index()

    def top_terms(self, n: int) -> pd.DataFrame:
        """Top-n terms per topic by descending beta; ties keep vocabulary order."""
        ranked = (
            self.beta.sort_values(["topic", "beta"], ascending=[True, False], kind="mergesort")
            .groupby("topic", sort=True)
            .head(n)
            .reset_index(drop=True)
        )
        ranked["rank"] = ranked.groupby("topic").cumcount() + 1
        if self.labels:
            ranked["label"] = ranked["topic"].map(self.labels)
        return ranked

    def dominant_topics(self) -> pd.Series:
        idx = self.gamma_weights.argmax(axis=1) + 1
        return pd.Series(idx, index=pd.Index(self.dtm.documents, name="document"), name="topic")

    def save(self, model_dir: str) -> str:
        os.makedirs(model_dir, exist_ok=True)
        self.model.save(os.path.join(model_dir, MODEL_FILE))
        self.dtm.dictionary.save(os.path.join(model_dir, DICT_FILE))
        corpora.MmCorpus.serialize(os.path.join(model_dir, CORPUS_FILE), self.dtm.corpus)
        np.save(os.path.join(model_dir, GAMMA_FILE), self.gamma_weights)
        with open(os.path.join(model_dir, META_FILE), "w", encoding="utf-8") as f:
            json.dump({
                "documents": self.dtm.documents,
                "excluded": self.dtm.excluded,
                "labels": {str(k): v for k, v in self.labels.items()},
            }, f, indent=2)
        logger.info("--- LDA model and dictionary saved to '%s' ---", model_dir)
        return model_dir


def fit_topic_model(dtm: DocumentTermMatrix, config: AnalysisConfig,
                    n_topics: Optional[int] = None) -> TopicModelResult:
    k = config.n_topics if n_topics is None else n_topics
    if k < 1:
        raise ValueError(f"n_topics must be >= 1, got {k}")
    logger.info("--- Fitting LDA with k=%d (seed=%d, passes=%d) ---", k, config.seed, config.passes)
    model = train_lda(dtm, k, config)
    beta = model.get_topics()
    gamma = infer_gamma(model, dtm.corpus)
    return TopicModelResult(model=model, dtm=dtm, beta_weights=beta, gamma_weights=gamma)


def load_topic_model(model_dir: str) -> TopicModelResult:
    model_path = os.path.join(model_dir, MODEL_FILE)
    if not os.path.exists(model_path):
        raise FileNotFoundError(f"Pre-trained LDA model not found in '{model_dir}'. Run the pipeline first.")
    model = LdaModel.load(model_path)
    dictionary = corpora.Dictionary.load(os.path.join(model_dir, DICT_FILE))
    # MmCorpus yields float counts
    corpus = [[(int(t), int(c)) for t, c in bow]
              for bow in corpora.MmCorpus(os.path.join(model_dir, CORPUS_FILE))]
    with open(os.path.join(model_dir, META_FILE), encoding="utf-8") as f:
        meta = json.load(f)
    dtm = DocumentTermMatrix(meta["documents"], dictionary, corpus, meta.get("excluded", []))
    gamma = np.load(os.path.join(model_dir, GAMMA_FILE))
    labels = {int(k): v for k, v in meta.get("labels", {}).items()}
    return TopicModelResult(model=model, dtm=dtm, beta_weights=model.get_topics(),
                            gamma_weights=gamma, labels=labels)


def label_topics(result: TopicModelResult, labels: Dict[int, str]) -> TopicModelResult:
    """Attach human-chosen names to topic ids of this fit."""
    unknown = [t for t in labels if t not in result.topic_ids]
    if unknown:
        raise ValueError(f"Unknown topic id(s): {unknown}")
    result.labels = dict(labels)
    return result
