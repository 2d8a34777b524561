# statistical_analysis.py
"""
Tests whether topic weights differ between genres.

For every topic:
1. One-way ANOVA of the per-document gamma across genres.
2. Tukey's HSD on the genre pairs when the ANOVA is significant.

Genres with fewer than two documents are left out of the tests.
"""
import logging
import os
from typing import Dict, List, Optional

import pandas as pd
from scipy import stats
from statsmodels.stats.multicomp import pairwise_tukeyhsd

from config import AnalysisConfig
from genre_topics import attach_genres

logger = logging.getLogger(__name__)


def genre_topic_significance(gamma: pd.DataFrame, genres: Dict[str, str], config: AnalysisConfig,
                             alpha: float = 0.05, out_path: Optional[str] = None) -> pd.DataFrame:
    """One row per topic: F statistic, p-value, and significant genre pairs."""
    output_lines = ["--- Genre/Topic Significance Analysis Results ---"]
    joined = attach_genres(gamma, genres, config)
    counts = joined.groupby("genre")["document"].nunique()
    eligible = counts[counts >= 2].index
    joined = joined[joined["genre"].isin(eligible)]

    rows: List[dict] = []
    if len(eligible) < 2:
        message = "Cannot perform statistical tests with fewer than two genres of at least two documents."
        logger.info(message)
        output_lines.append(message)
    else:
        for topic, sub in joined.groupby("topic", sort=True):
            output_lines.append(f"\n--- Topic {topic} ---")
            grouped_data = [g["gamma"].to_numpy() for _, g in sub.groupby("genre")]
            f_val, p_val = stats.f_oneway(*grouped_data)
            output_lines.append(f"ANOVA Test: F-statistic = {f_val:.4f}, p-value = {p_val}")

            pairs = ""
            if p_val < alpha:
                tukey = pairwise_tukeyhsd(endog=sub["gamma"].to_numpy(), groups=sub["genre"].to_numpy(), alpha=alpha)
                table = pd.DataFrame(data=tukey._results_table.data[1:], columns=tukey._results_table.data[0])
                significant = table[table["p-adj"] < alpha]
                pairs = "; ".join(f"{r.group1}/{r.group2}" for r in significant.itertuples())
                output_lines.append("Pairwise Comparisons (Tukey's HSD):")
                output_lines.append(significant.to_string(index=False) if not significant.empty
                                    else "No genre pairs differ significantly after correction.")
            else:
                output_lines.append(f"No significant difference among genres (p >= {alpha}).")

            rows.append({
                "topic": int(topic),
                "f_statistic": float(f_val),
                "p_value": float(p_val),
                "significant": bool(p_val < alpha),
                "significant_pairs": pairs,
            })

    if out_path:
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write("\n".join(output_lines))
        logger.info("--- Statistical analysis complete. Results saved to '%s' ---", out_path)

    return pd.DataFrame(rows, columns=["topic", "f_statistic", "p_value", "significant", "significant_pairs"])
