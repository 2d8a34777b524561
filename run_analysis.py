#!/usr/bin/env python3
# run_analysis.py
"""
Runs the whole movie-plot topic analysis once, top to bottom:

  load -> clean -> document-term matrix -> (topic-count scan) -> LDA fit
       -> genre averages -> k-means + projection -> figures, tables, report

The topic-count scan only produces scores and a scree plot; pick k from
them and pass it with --k (or N_TOPICS). `--select-only` stops after the scan.
"""
import argparse
import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd
from rich.progress import Progress, BarColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn

import visualize
from build_report import ReportArtifacts, build_report
from cluster import ClusterResult, cluster_documents, cluster_hulls, project_2d
from config import VERBOSE, AnalysisConfig
from dataset import genre_lookup, load_genre_lookup, load_movie_plots
from dtm import DocumentTermMatrix, build_dtm
from genre_topics import genre_topic_alignment, genre_topic_means
from logging_setup import console, setup_logging
from preprocess import clean_documents
from select_k import best_by_metric, find_topics_number
from statistical_analysis import genre_topic_significance
from topic_model import TopicModelResult, fit_topic_model

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    config: AnalysisConfig
    dtm: DocumentTermMatrix
    metrics: Optional[pd.DataFrame] = None
    topics: Optional[TopicModelResult] = None
    genre_means: Optional[pd.DataFrame] = None
    clusters: Optional[ClusterResult] = None
    projection: Optional[pd.DataFrame] = None
    figures: Dict[str, object] = field(default_factory=dict)
    tables: Dict[str, str] = field(default_factory=dict)
    report_path: Optional[str] = None


def _prepare_dirs(config: AnalysisConfig, clean: bool) -> None:
    """Clears previous figures/tables so a run never mixes outputs."""
    for d in (config.fig_dir, config.table_dir):
        if clean and os.path.exists(d):
            shutil.rmtree(d)
        os.makedirs(d, exist_ok=True)


def _write_table(frame: pd.DataFrame, name: str, config: AnalysisConfig, result: PipelineResult) -> None:
    path = os.path.join(config.table_dir, name)
    frame.to_csv(path, index=False)
    result.tables[name] = path
    logger.info("Saved %s", path)


def _progress() -> Progress:
    return Progress(
        TextColumn("[bold cyan]{task.fields[phase]} [bold white]→[/] {task.description}", justify="right"),
        BarColumn(bar_width=40),
        "[progress.percentage]{task.percentage:>3.0f}%",
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def run_selection(dtm: DocumentTermMatrix, config: AnalysisConfig) -> pd.DataFrame:
    with _progress() as progress:
        task = progress.add_task("candidate k", total=len(config.k_range), phase="Scoring")
        table = find_topics_number(dtm, config, on_fit=lambda k: progress.advance(task))
    hints = best_by_metric(table)
    if hints:
        logger.info("Metric optima (hints only): %s", ", ".join(f"{m}={k}" for m, k in hints.items()))
    return table


def run_pipeline(plots_path: str, config: AnalysisConfig, genres_path: Optional[str] = None,
                 select_k: bool = True, select_only: bool = False, make_report: bool = True,
                 clean_outputs: bool = True) -> PipelineResult:
    _prepare_dirs(config, clean_outputs)

    # --- Phase 1: load and clean ---
    logger.info("--- Phase 1: Loading and cleaning plots ---")
    movies = load_movie_plots(plots_path)
    genres = load_genre_lookup(genres_path) if genres_path else genre_lookup(movies)
    tokens = clean_documents(movies, config)
    dtm = build_dtm(tokens)
    logger.info("%d of %d documents kept for modelling", dtm.n_documents, len(movies))
    result = PipelineResult(config=config, dtm=dtm)

    # --- Phase 2: topic-count scan ---
    if select_k:
        logger.info("--- Phase 2: Scoring candidate topic counts ---")
        result.metrics = run_selection(dtm, config)
        _write_table(result.metrics, "topic_count_metrics.csv", config, result)
        result.figures["scree"] = visualize.plot_topic_count_metrics(
            result.metrics, os.path.join(config.fig_dir, "topic_count_metrics.png"))
        if select_only:
            return result

    # --- Phase 3: final fit ---
    logger.info("--- Phase 3: Fitting topic model ---")
    topics = fit_topic_model(dtm, config)
    result.topics = topics
    topics.save(config.model_dir)
    top_bar = topics.top_terms(config.top_n_bar)
    top_cloud = topics.top_terms(config.top_n_cloud)
    _write_table(topics.beta, "beta.csv", config, result)
    _write_table(topics.gamma, "gamma.csv", config, result)
    _write_table(top_cloud, "top_terms.csv", config, result)
    result.figures["top_terms"] = visualize.plot_top_terms(
        top_bar, os.path.join(config.fig_dir, "top_terms.png"), labels=topics.labels)
    result.figures["wordclouds"] = visualize.plot_wordclouds(
        top_cloud, os.path.join(config.fig_dir, "wordclouds"), font_range=config.cloud_font_range,
        labels=topics.labels, seed=config.seed)

    # --- Phase 4: genres ---
    alignment = significance = None
    if genres:
        logger.info("--- Phase 4: Aggregating topic weights by genre ---")
        result.genre_means = genre_topic_means(topics.gamma, genres, config)
        if not result.genre_means.empty:
            _write_table(result.genre_means, "genre_topic_means.csv", config, result)
            alignment = genre_topic_alignment(result.genre_means)
            result.figures["genres"] = visualize.plot_genre_topics(
                result.genre_means, os.path.join(config.fig_dir, "genre_topics.png"), labels=topics.labels)
            significance = genre_topic_significance(topics.gamma, genres, config,
                                                    out_path=config.stat_results_path)
        else:
            logger.warning("No document joined to a genre; skipping genre figures")
    else:
        logger.info("No genre labels available; skipping genre aggregation")

    # --- Phase 5: clusters ---
    logger.info("--- Phase 5: Clustering documents ---")
    result.clusters = cluster_documents(topics.gamma, config)
    result.projection = project_2d(result.clusters, config)
    _write_table(result.projection, "clusters.csv", config, result)
    result.figures["clusters"] = visualize.plot_clusters(
        result.projection, os.path.join(config.fig_dir, "clusters.png"), hulls=cluster_hulls(result.projection))
    result.figures["centroids"] = visualize.plot_cluster_topic_profile(
        result.clusters.centroids, os.path.join(config.fig_dir, "cluster_centroids.png"))

    # --- Phase 6: report ---
    if make_report:
        artifacts = ReportArtifacts(
            settings={
                "input": plots_path,
                "documents": f"{dtm.n_documents} kept, {len(dtm.excluded)} empty after cleaning",
                "vocabulary": dtm.n_terms,
                "topics (k)": config.n_topics,
                "clusters": config.n_clusters,
                "seed": config.seed,
            },
            metrics_table=result.metrics,
            top_terms=top_bar,
            genre_alignment=alignment,
            significance=significance,
            cluster_sizes=result.clusters.sizes(),
            scree_plot=result.figures.get("scree"),
            top_terms_plot=result.figures.get("top_terms"),
            genre_plot=result.figures.get("genres"),
            cluster_plot=result.figures.get("clusters"),
            centroid_plot=result.figures.get("centroids"),
            wordclouds=result.figures.get("wordclouds", []),
        )
        result.report_path = build_report(artifacts, config.report_path)
        logger.info("--- Report written to '%s' ---", result.report_path)
    return result


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Topic modelling and clustering of movie plots.")
    parser.add_argument("--plots", required=True, help="CSV with title, plot and optional genre columns")
    parser.add_argument("--genres", help="Separate CSV of title -> genre")
    parser.add_argument("--k", type=int, dest="n_topics", help="Number of topics for the final fit")
    parser.add_argument("--clusters", type=int, dest="n_clusters", help="Number of k-means clusters")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--k-min", type=int)
    parser.add_argument("--k-max", type=int)
    parser.add_argument("--jobs", type=int, dest="n_jobs", help="Worker processes for the topic-count scan")
    parser.add_argument("--skip-select", action="store_true", help="Skip the topic-count scan")
    parser.add_argument("--select-only", action="store_true", help="Only run the topic-count scan")
    parser.add_argument("--output-dir")
    parser.add_argument("--extra-stopwords", help="Comma-separated words to drop (e.g. character names)")
    parser.add_argument("--genre-join", choices=["exact", "normalized"])
    parser.add_argument("--projection", choices=["mds", "pca"])
    parser.add_argument("--no-report", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.verbose or VERBOSE)
    extra = None
    if args.extra_stopwords:
        extra = frozenset(w.strip().lower() for w in args.extra_stopwords.split(",") if w.strip())
    try:
        config = AnalysisConfig().with_overrides(
            n_topics=args.n_topics, n_clusters=args.n_clusters, seed=args.seed,
            k_min=args.k_min, k_max=args.k_max, n_jobs=args.n_jobs, output_dir=args.output_dir,
            extra_stopwords=extra, genre_join=args.genre_join, projection=args.projection,
        )
        run_pipeline(args.plots, config, genres_path=args.genres,
                     select_k=not args.skip_select, select_only=args.select_only,
                     make_report=not args.no_report)
    except ValueError as e:
        # DatasetError, EmptyDocumentError, ClusteringError and bad settings
        logger.error("Run aborted: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
