#!/usr/bin/env python3
"""select_k.py

Scores candidate topic counts so k can be picked from a scree plot.

One LDA fit per candidate k (same seed, same read-only matrix), then:
- CaoJuan2009  : mean pairwise cosine similarity between topics (minimize)
- Arun2010     : symmetric KL between beta singular values and
                 length-weighted topic mass (minimize)
- Deveaud2014  : mean pairwise divergence between topics (maximize)
- perplexity   : 2^(-per-word bound) on the training corpus (minimize)
- coherence    : gensim u_mass coherence (maximize)

The selector never picks k itself; callers read the table (or the plot)
and pass the chosen k to topic_model.fit_topic_model.
"""
import logging
import multiprocessing as mp
from itertools import combinations
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from gensim.models import CoherenceModel

from config import AnalysisConfig
from dtm import DocumentTermMatrix
from topic_model import infer_gamma, train_lda

logger = logging.getLogger(__name__)

METRIC_DIRECTIONS = {
    "CaoJuan2009": "minimize",
    "Arun2010": "minimize",
    "Deveaud2014": "maximize",
    "perplexity": "minimize",
    "coherence": "maximize",
}

_TINY = np.finfo(float).tiny


def cao_juan_2009(beta: np.ndarray) -> float:
    k = beta.shape[0]
    if k < 2:
        return float("nan")
    norms = np.linalg.norm(beta, axis=1)
    sims = [
        float(beta[i] @ beta[j] / (norms[i] * norms[j]))
        for i, j in combinations(range(k), 2)
    ]
    return sum(sims) / (k * (k - 1) / 2)


def arun_2010(beta: np.ndarray, gamma: np.ndarray, doc_lengths: np.ndarray) -> float:
    cm1 = np.linalg.svd(beta, compute_uv=False)
    cm2 = doc_lengths @ gamma
    cm2 = cm2 / np.max(np.abs(doc_lengths))
    # svd returns min(k, V) values; pad when the vocabulary is smaller than k
    if cm1.shape[0] < cm2.shape[0]:
        cm1 = np.pad(cm1, (0, cm2.shape[0] - cm1.shape[0]))
    cm1 = np.maximum(cm1, _TINY)
    cm2 = np.maximum(cm2, _TINY)
    return float(np.sum(cm1 * np.log(cm1 / cm2)) + np.sum(cm2 * np.log(cm2 / cm1)))


def deveaud_2014(beta: np.ndarray) -> float:
    k = beta.shape[0]
    if k < 2:
        return float("nan")
    m = beta.astype(float)
    if np.any(m == 0):
        m = m + _TINY
    total = 0.0
    for i, j in combinations(range(k), 2):
        x, y = m[i], m[j]
        total += 0.5 * np.sum(x * np.log(x / y)) + 0.5 * np.sum(y * np.log(y / x))
    return float(total / (k * (k - 1)))


def _score_candidate(args) -> Dict[str, float]:
    dtm, k, config, metrics = args
    model = train_lda(dtm, k, config)
    beta = model.get_topics().astype(float)
    row: Dict[str, float] = {"topics": k}
    gamma: Optional[np.ndarray] = None
    for name in metrics:
        if name == "CaoJuan2009":
            row[name] = cao_juan_2009(beta)
        elif name == "Deveaud2014":
            row[name] = deveaud_2014(beta)
        elif name == "Arun2010":
            if gamma is None:
                gamma = infer_gamma(model, dtm.corpus).astype(float)
            row[name] = arun_2010(beta, gamma, dtm.doc_lengths)
        elif name == "perplexity":
            row[name] = float(np.exp2(-model.log_perplexity(dtm.corpus)))
        elif name == "coherence":
            cm = CoherenceModel(model=model, corpus=dtm.corpus, dictionary=dtm.dictionary,
                                coherence="u_mass")
            row[name] = float(cm.get_coherence())
    return row


def find_topics_number(dtm: DocumentTermMatrix, config: AnalysisConfig,
                       candidates: Optional[Iterable[int]] = None,
                       metrics: Optional[Iterable[str]] = None,
                       on_fit: Optional[Callable[[int], None]] = None) -> pd.DataFrame:
    """Metric table, one row per candidate k (ascending)."""
    candidates = sorted(set(candidates if candidates is not None else config.k_range))
    metrics = list(metrics if metrics is not None else config.select_metrics)
    unknown = [m for m in metrics if m not in METRIC_DIRECTIONS]
    if unknown:
        raise ValueError(f"Unknown selector metrics: {', '.join(unknown)}")
    if not candidates or candidates[0] < 1:
        raise ValueError(f"Candidate topic counts must be >= 1, got {candidates}")

    logger.info("--- Scoring %d candidate topic counts (%d..%d), n_jobs=%d ---",
                len(candidates), candidates[0], candidates[-1], config.n_jobs)
    jobs = [(dtm, k, config, metrics) for k in candidates]
    rows: List[Dict[str, float]] = []
    if config.n_jobs > 1:
        with mp.Pool(processes=config.n_jobs) as pool:
            for row in pool.imap(_score_candidate, jobs):
                rows.append(row)
                if on_fit:
                    on_fit(int(row["topics"]))
    else:
        for job in jobs:
            row = _score_candidate(job)
            rows.append(row)
            if on_fit:
                on_fit(int(row["topics"]))

    table = pd.DataFrame(rows, columns=["topics"] + metrics)
    table["topics"] = table["topics"].astype(int)
    return table.sort_values("topics").reset_index(drop=True)


def metric_table_long(table: pd.DataFrame) -> pd.DataFrame:
    """Long form with each metric min-max scaled to [0, 1] and its direction."""
    metrics = [c for c in table.columns if c in METRIC_DIRECTIONS]
    long = table.melt(id_vars="topics", value_vars=metrics, var_name="metric", value_name="value")

    def _scale(s: pd.Series) -> pd.Series:
        lo, hi = s.min(), s.max()
        if pd.isna(lo) or hi == lo:
            return s * 0.0
        return (s - lo) / (hi - lo)

    long["scaled"] = long.groupby("metric")["value"].transform(_scale)
    long["direction"] = long["metric"].map(METRIC_DIRECTIONS)
    return long


def best_by_metric(table: pd.DataFrame) -> Dict[str, int]:
    """Candidate k at each metric's optimum (a hint for the reader, not a choice)."""
    out = {}
    for metric, direction in METRIC_DIRECTIONS.items():
        if metric not in table.columns or table[metric].isna().all():
            continue
        idx = table[metric].idxmin() if direction == "minimize" else table[metric].idxmax()
        out[metric] = int(table.loc[idx, "topics"])
    return out
