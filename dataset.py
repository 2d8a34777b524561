# dataset.py
# Loading the movie plot table and the title -> genre lookup.
import logging
import os
import re
from typing import Dict, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Accepted spellings for each canonical column
COLUMN_ALIASES = {
    "title": ("title", "name", "movie", "movie_name", "movie_title"),
    "plot": ("plot", "plot_text", "summary", "synopsis"),
    "genre": ("genre", "genres", "movie_genre"),
}
REQUIRED_COLUMNS = ("title", "plot")


class DatasetError(ValueError):
    """Input table is missing, unreadable or malformed."""


def normalize_title(title) -> str:
    """Case- and whitespace-insensitive key, e.g. ' The  Matrix' -> 'the matrix'."""
    if title is None or (isinstance(title, float) and pd.isna(title)):
        return ""
    return re.sub(r"\s+", " ", str(title)).strip().lower()


def _resolve_columns(columns) -> Dict[str, str]:
    lowered = {str(c).strip().lower(): c for c in columns}
    resolved = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                resolved[canonical] = lowered[alias]
                break
    return resolved


def _read_csv(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise DatasetError(f"Input file not found: {path}")
    try:
        return pd.read_csv(path, encoding="utf-8", dtype=str, keep_default_na=False)
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DatasetError(f"Could not parse {path}: {e}") from e


def load_movie_plots(path: str) -> pd.DataFrame:
    """Loads (title, plot, genre) records; genre is None where absent."""
    raw = _read_csv(path)
    cols = _resolve_columns(raw.columns)
    missing = [c for c in REQUIRED_COLUMNS if c not in cols]
    if missing:
        raise DatasetError(f"{path} is missing required column(s): {', '.join(missing)}")

    df = pd.DataFrame({
        "title": raw[cols["title"]].astype(str).str.strip(),
        "plot": raw[cols["plot"]].astype(str),
    })
    if "genre" in cols:
        genre = raw[cols["genre"]].astype(str).str.strip()
        df["genre"] = genre.where(genre != "", None)
    else:
        df["genre"] = None

    if (df["title"] == "").any():
        raise DatasetError(f"{path} has {int((df['title'] == '').sum())} row(s) without a title")
    dupes = df.loc[df["title"].duplicated(), "title"].unique()
    if len(dupes):
        raise DatasetError(f"Duplicate titles in {path}: {', '.join(map(str, dupes[:10]))}")

    logger.info("Loaded %d movie plots from %s", len(df), path)
    return df


def load_genre_lookup(path: str) -> Dict[str, str]:
    """Reads a separate title -> genre table."""
    raw = _read_csv(path)
    cols = _resolve_columns(raw.columns)
    missing = [c for c in ("title", "genre") if c not in cols]
    if missing:
        raise DatasetError(f"{path} is missing required column(s): {', '.join(missing)}")
    lookup = {}
    for title, genre in zip(raw[cols["title"]], raw[cols["genre"]]):
        title, genre = str(title).strip(), str(genre).strip()
        if title and genre:
            # first occurrence wins
            lookup.setdefault(title, genre)
    logger.info("Loaded %d genre labels from %s", len(lookup), path)
    return lookup


def genre_lookup(frame: pd.DataFrame) -> Dict[str, str]:
    """Title -> genre for rows of the plots table that carry a genre."""
    if "genre" not in frame.columns:
        return {}
    rows = frame.dropna(subset=["genre"])
    return dict(zip(rows["title"], rows["genre"]))


def subset_genres(frame: pd.DataFrame, exclude: Optional[set] = None) -> pd.DataFrame:
    """Drops every movie whose genre is in `exclude`."""
    if not exclude:
        return frame
    return frame[~frame["genre"].isin(exclude)].reset_index(drop=True)
