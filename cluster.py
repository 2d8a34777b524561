# cluster.py
"""
k-means over document topic weights, plus a 2-D projection for plotting.

Cluster ids run 1..n_clusters and, like topic ids, only mean something
within one seeded run.
"""
import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd
from scipy.spatial import ConvexHull, QhullError
from sklearn.cluster import KMeans
from sklearn.decomposition import PCA
from sklearn.manifold import MDS

from config import AnalysisConfig

logger = logging.getLogger(__name__)


class MissingRowError(ValueError):
    """A document has no (or an incomplete) topic-weight row."""


class ClusteringError(ValueError):
    """Not enough documents for the requested cluster count."""


@dataclass
class ClusterResult:
    assignments: pd.Series      # document -> cluster id
    centroids: pd.DataFrame     # cluster x topic
    weights: pd.DataFrame       # document x topic rows that were clustered
    inertia: float

    def sizes(self) -> pd.Series:
        return self.assignments.value_counts().sort_index()

    def to_frame(self) -> pd.DataFrame:
        return self.assignments.rename("cluster").reset_index()


def _gamma_rows(gamma: pd.DataFrame) -> pd.DataFrame:
    """Tidy or wide gamma -> wide (document x topic)."""
    if {"document", "topic", "gamma"}.issubset(gamma.columns):
        return gamma.pivot(index="document", columns="topic", values="gamma")
    return gamma


def cluster_documents(gamma: pd.DataFrame, config: AnalysisConfig, strict: bool = False) -> ClusterResult:
    wide = _gamma_rows(gamma)
    incomplete = wide.index[wide.isna().any(axis=1)]
    if len(incomplete):
        if strict:
            raise MissingRowError(
                f"{len(incomplete)} document(s) have missing topic weights: {', '.join(map(str, incomplete[:10]))}"
            )
        logger.warning("Dropped %d document(s) with missing topic weights before clustering", len(incomplete))
        wide = wide.drop(index=incomplete)

    n = config.n_clusters
    if len(wide) < n:
        raise ClusteringError(f"Cannot form {n} clusters from {len(wide)} document(s)")

    logger.info("--- k-means: %d documents into %d clusters (seed=%d) ---", len(wide), n, config.seed)
    km = KMeans(n_clusters=n, random_state=config.seed, n_init=10)
    labels = km.fit_predict(wide.to_numpy(dtype=float)) + 1

    assignments = pd.Series(labels, index=wide.index.rename("document"), name="cluster")
    centroids = pd.DataFrame(
        km.cluster_centers_,
        index=pd.Index(range(1, n + 1), name="cluster"),
        columns=wide.columns,
    )
    return ClusterResult(assignments=assignments, centroids=centroids, weights=wide,
                         inertia=float(km.inertia_))


def project_2d(result: ClusterResult, config: AnalysisConfig) -> pd.DataFrame:
    """2-D coordinates of each clustered document (for plotting only)."""
    X = result.weights.to_numpy(dtype=float)
    if len(X) == 1:
        coords = np.zeros((1, 2))
    elif config.projection == "pca":
        n_comp = min(2, X.shape[0], X.shape[1])
        coords = PCA(n_components=n_comp, random_state=config.seed).fit_transform(X)
        if n_comp < 2:
            coords = np.hstack([coords, np.zeros((len(X), 2 - n_comp))])
    else:
        coords = MDS(n_components=2, random_state=config.seed,
                     n_init=4).fit_transform(X)
    return pd.DataFrame({
        "document": result.weights.index,
        "x": coords[:, 0],
        "y": coords[:, 1],
        "cluster": result.assignments.reindex(result.weights.index).to_numpy(),
    })


def cluster_hulls(projection: pd.DataFrame) -> Dict[int, np.ndarray]:
    """Convex hull vertices per cluster; skipped below three points or when collinear."""
    hulls = {}
    for cluster_id, pts in projection.groupby("cluster"):
        xy = pts[["x", "y"]].to_numpy(dtype=float)
        if len(xy) < 3:
            continue
        try:
            hull = ConvexHull(xy)
        except QhullError:
            continue
        hulls[int(cluster_id)] = xy[hull.vertices]
    return hulls
