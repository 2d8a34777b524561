# visualize.py
"""
Figures for the topic report. Every function writes one PNG (or one per
topic for word clouds) and returns the path(s) it wrote.
"""
import os
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from wordcloud import WordCloud

from select_k import metric_table_long

# -----------------------------
# Report-friendly plot defaults
# -----------------------------
plt.rcParams.update({
    "font.size": 12,
    "axes.titlesize": 14,
    "axes.labelsize": 12,
    "xtick.labelsize": 10,
    "ytick.labelsize": 10,
    "legend.fontsize": 10,
})


class NoDataError(ValueError):
    """Nothing to plot."""


def _require(frame: Optional[pd.DataFrame], what: str):
    if frame is None or len(frame) == 0:
        raise NoDataError(f"No data to plot for {what}")


def _save(fig, out_path: str) -> str:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=160, bbox_inches="tight")
    plt.close(fig)
    return out_path


def _topic_title(topic: int, labels: Optional[Dict[int, str]]) -> str:
    if labels and topic in labels:
        return f"Topic {topic}: {labels[topic]}"
    return f"Topic {topic}"


def plot_topic_count_metrics(table: pd.DataFrame, out_path: str) -> str:
    """Scree plot: metrics to minimize on top, metrics to maximize below, all scaled to [0, 1]."""
    _require(table, "topic count metrics")
    long = metric_table_long(table)
    _require(long.dropna(subset=["value"]), "topic count metrics")

    fig, axes = plt.subplots(2, 1, figsize=(10, 7), sharex=True)
    for ax, direction in zip(axes, ("minimize", "maximize")):
        sub = long[long["direction"] == direction]
        for metric, rows in sub.groupby("metric"):
            ax.plot(rows["topics"], rows["scaled"], marker="o", label=metric)
        ax.set_title(direction.capitalize())
        ax.set_ylabel("scaled score")
        ax.set_ylim(-0.05, 1.05)
        if len(sub):
            ax.legend(loc="best")
        ax.grid(alpha=0.3)
    axes[-1].set_xlabel("number of topics")
    axes[-1].set_xticks(sorted(table["topics"].unique()))
    return _save(fig, out_path)


def plot_top_terms(top_terms: pd.DataFrame, out_path: str,
                   labels: Optional[Dict[int, str]] = None, cols: int = 3) -> str:
    """One horizontal bar panel per topic, highest beta on top."""
    _require(top_terms, "top terms")
    topics = sorted(top_terms["topic"].unique())
    rows = (len(topics) + cols - 1) // cols
    fig, axes = plt.subplots(rows, cols, figsize=(4.5 * cols, 3.2 * rows), squeeze=False)
    palette = sns.color_palette("husl", n_colors=len(topics))

    for i, topic in enumerate(topics):
        ax = axes[i // cols, i % cols]
        sub = top_terms[top_terms["topic"] == topic].sort_values("beta")
        ax.barh(sub["term"], sub["beta"], color=palette[i])
        ax.set_title(_topic_title(topic, labels))
        ax.set_xlabel("beta")
    for j in range(len(topics), rows * cols):
        axes[j // cols, j % cols].axis("off")
    return _save(fig, out_path)


def plot_genre_topics(means: pd.DataFrame, out_path: str, labels: Optional[Dict[int, str]] = None) -> str:
    """Grouped bars of mean gamma per genre, one bar per topic."""
    _require(means, "genre topic means")
    data = means.copy()
    data["topic"] = data["topic"].map(lambda t: _topic_title(int(t), labels))
    n_genres = data["genre"].nunique()
    fig, ax = plt.subplots(figsize=(max(8, 1.2 * n_genres + 4), 5))
    sns.barplot(data=data, x="genre", y="gamma", hue="topic", ax=ax)
    ax.set_xlabel("genre")
    ax.set_ylabel("mean gamma")
    ax.set_title("Average topic weight by genre")
    ax.tick_params(axis="x", rotation=45)
    ax.legend(title="topic", bbox_to_anchor=(1.02, 1), loc="upper left")
    return _save(fig, out_path)


def plot_clusters(projection: pd.DataFrame, out_path: str,
                  hulls: Optional[Dict[int, np.ndarray]] = None, annotate: bool = True) -> str:
    """Documents in the 2-D projection, coloured by cluster, with convex hulls."""
    _require(projection, "cluster projection")
    clusters = sorted(projection["cluster"].unique())
    palette = dict(zip(clusters, sns.color_palette("tab10", n_colors=len(clusters))))

    fig, ax = plt.subplots(figsize=(9, 7))
    for cluster_id in clusters:
        pts = projection[projection["cluster"] == cluster_id]
        ax.scatter(pts["x"], pts["y"], s=40, color=palette[cluster_id], label=f"Cluster {cluster_id}")
        hull = (hulls or {}).get(int(cluster_id))
        if hull is not None:
            closed = np.vstack([hull, hull[:1]])
            ax.fill(closed[:, 0], closed[:, 1], color=palette[cluster_id], alpha=0.15)
            ax.plot(closed[:, 0], closed[:, 1], color=palette[cluster_id], lw=1)
    if annotate and len(projection) <= 60:
        for _, r in projection.iterrows():
            ax.annotate(str(r["document"]), (r["x"], r["y"]), fontsize=7, alpha=0.8,
                        xytext=(3, 3), textcoords="offset points")
    ax.set_xlabel("dimension 1")
    ax.set_ylabel("dimension 2")
    ax.set_title("Document clusters")
    ax.legend(loc="best")
    return _save(fig, out_path)


def plot_cluster_topic_profile(centroids: pd.DataFrame, out_path: str) -> str:
    """Heatmap of k-means centroids in topic-weight space."""
    _require(centroids, "cluster centroids")
    fig, ax = plt.subplots(figsize=(1.0 * centroids.shape[1] + 3, 0.6 * centroids.shape[0] + 2))
    sns.heatmap(centroids, annot=True, fmt=".2f", cmap="viridis", ax=ax)
    ax.set_xlabel("topic")
    ax.set_ylabel("cluster")
    ax.set_title("Cluster centroids")
    return _save(fig, out_path)


def plot_wordclouds(top_terms: pd.DataFrame, out_dir: str, font_range=(10, 80),
                    labels: Optional[Dict[int, str]] = None, seed: Optional[int] = None) -> List[str]:
    """One word cloud per topic; font size grows with beta inside `font_range`."""
    _require(top_terms, "word clouds")
    os.makedirs(out_dir, exist_ok=True)
    min_font, max_font = font_range
    paths = []
    for topic, sub in top_terms.groupby("topic", sort=True):
        freqs = dict(zip(sub["term"], sub["beta"].astype(float)))
        wc = WordCloud(
            width=800, height=600,
            background_color="white",
            colormap="viridis",
            max_words=len(freqs),
            min_font_size=min_font,
            max_font_size=max_font,
            relative_scaling=1.0,
            random_state=seed,
        ).generate_from_frequencies(freqs)

        fig = plt.figure(figsize=(8, 6))
        plt.imshow(wc, interpolation="bilinear")
        plt.title(_topic_title(int(topic), labels))
        plt.axis("off")
        paths.append(_save(fig, os.path.join(out_dir, f"topic_{int(topic):02d}_wordcloud.png")))
    return paths
