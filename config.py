# config.py
import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple

# ============ TOPIC MODEL ============
# Candidate topic counts scanned by the selector (inclusive range)
K_MIN = int(os.getenv("K_MIN", "1"))
K_MAX = int(os.getenv("K_MAX", "20"))

# Topic count used for the final fit (picked by hand from the scree plot)
N_TOPICS = int(os.getenv("N_TOPICS", "7"))

# Seed shared by LDA, k-means and the 2-D projection
SEED = int(os.getenv("SEED", "1234"))

LDA_PASSES = int(os.getenv("LDA_PASSES", "20"))
LDA_ITERATIONS = int(os.getenv("LDA_ITERATIONS", "400"))
LDA_ALPHA = os.getenv("LDA_ALPHA", "symmetric")

# Selector metrics: see select_k.METRIC_DIRECTIONS
SELECT_METRICS = ("CaoJuan2009", "Arun2010", "Deveaud2014", "perplexity", "coherence")
N_JOBS = int(os.getenv("N_JOBS", "1"))

# ============ CLUSTERING ============
N_CLUSTERS = int(os.getenv("N_CLUSTERS", "5"))
PROJECTION = os.getenv("PROJECTION", "mds")   # "mds" or "pca"

# ============ TEXT ============
# Custom exclusions on top of the standard English list (e.g. character names)
EXTRA_STOPWORDS = frozenset(
    w.strip().lower() for w in os.getenv("EXTRA_STOPWORDS", "").split(",") if w.strip()
)

# "exact" joins titles as-is and reports near misses; "normalized" folds case/whitespace
GENRE_JOIN = os.getenv("GENRE_JOIN", "exact")

# ============ DISPLAY ============
TOP_N_BAR = int(os.getenv("TOP_N_BAR", "5"))
TOP_N_CLOUD = int(os.getenv("TOP_N_CLOUD", "20"))
CLOUD_FONT_RANGE = (10, 80)

# ============ PATHS ============
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")

# ============ DEBUG / VERBOSITY ============
VERBOSE = bool(int(os.getenv("VERBOSE", "0")))

_JOIN_POLICIES = {"exact", "normalized"}
_PROJECTIONS = {"mds", "pca"}


@dataclass(frozen=True)
class AnalysisConfig:
    """Everything a run needs; passed explicitly into each stage."""

    k_min: int = K_MIN
    k_max: int = K_MAX
    n_topics: int = N_TOPICS
    seed: int = SEED
    passes: int = LDA_PASSES
    iterations: int = LDA_ITERATIONS
    alpha: str = LDA_ALPHA
    select_metrics: Tuple[str, ...] = SELECT_METRICS
    n_jobs: int = N_JOBS
    n_clusters: int = N_CLUSTERS
    projection: str = PROJECTION
    # None -> NLTK English list
    stopwords: Optional[FrozenSet[str]] = None
    extra_stopwords: FrozenSet[str] = field(default=EXTRA_STOPWORDS)
    genre_join: str = GENRE_JOIN
    top_n_bar: int = TOP_N_BAR
    top_n_cloud: int = TOP_N_CLOUD
    cloud_font_range: Tuple[int, int] = CLOUD_FONT_RANGE
    output_dir: str = OUTPUT_DIR

    def __post_init__(self):
        if self.k_min < 1 or self.k_max < self.k_min:
            raise ValueError(f"Invalid candidate topic range {self.k_min}..{self.k_max}.")
        if self.n_topics < 1:
            raise ValueError(f"n_topics must be >= 1, got {self.n_topics}.")
        if self.n_clusters < 1:
            raise ValueError(f"n_clusters must be >= 1, got {self.n_clusters}.")
        if self.passes < 1 or self.iterations < 1:
            raise ValueError("passes and iterations must be positive.")
        if self.n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}.")
        if self.genre_join not in _JOIN_POLICIES:
            raise ValueError(f"Unsupported genre_join '{self.genre_join}'. Use 'exact' or 'normalized'.")
        if self.projection not in _PROJECTIONS:
            raise ValueError(f"Unsupported projection '{self.projection}'. Use 'mds' or 'pca'.")
        # local import keeps config importable on its own
        from select_k import METRIC_DIRECTIONS
        unknown = [m for m in self.select_metrics if m not in METRIC_DIRECTIONS]
        if unknown:
            raise ValueError(f"Unknown selector metrics: {', '.join(unknown)}")
        lo, hi = self.cloud_font_range
        if lo < 1 or lo > hi:
            raise ValueError(f"Invalid word cloud font range {self.cloud_font_range}.")
        if self.top_n_bar < 1 or self.top_n_cloud < 1:
            raise ValueError("top_n_bar and top_n_cloud must be positive.")

    @property
    def k_range(self) -> range:
        return range(self.k_min, self.k_max + 1)

    @property
    def fig_dir(self) -> str:
        return os.path.join(self.output_dir, "figures")

    @property
    def table_dir(self) -> str:
        return os.path.join(self.output_dir, "tables")

    @property
    def model_dir(self) -> str:
        return os.path.join(self.output_dir, "models")

    @property
    def report_path(self) -> str:
        return os.path.join(self.output_dir, "topic_report.pdf")

    @property
    def stat_results_path(self) -> str:
        return os.path.join(self.table_dir, "statistical_analysis_results.txt")

    def with_overrides(self, **changes) -> "AnalysisConfig":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)
