"""Data manager for loading and caching the composed view.

This module locates the registry exports on disk, runs the composition
in ``pipeline.py`` once, and keeps the result in memory so every user
interaction filters the same read-only frame.  A forced reload recomputes
the view, which is how the app picks up refreshed exports.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from functools import lru_cache

import pandas as pd

from . import pipeline
from .config import DRUGS_FILE, GROUPS_FILE

logger = logging.getLogger(__name__)


def resolve_data_dir() -> Path:
    """Select the directory holding the registry exports.

    The lookup order is:

    1. The ``DRUG_DATA_DIR`` environment variable, if set.
    2. A ``data`` folder at the repository root.
    """
    env = os.getenv("DRUG_DATA_DIR")
    if env:
        # Expand relative or user paths to absolute
        return Path(env).expanduser().resolve()

    # Repo root /data (two levels up from this file)
    return Path(__file__).resolve().parent.parent / "data"


@lru_cache(maxsize=4)
def _compose_cached(drugs_path: Path, groups_path: Path) -> pd.DataFrame:
    """Runs the composition for one pair of export files."""
    return pipeline.run_pipeline(drugs_path, groups_path)


def load_view(
    force_reload: bool = False,
    *,
    drugs_path: Optional[Path] = None,
    groups_path: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Return the composed view, computing it on first use.

    Parameters
    ----------
    force_reload : bool, optional
        If ``True``, drop the in-memory copy and re-read the exports.
    drugs_path, groups_path : Path, optional
        Explicit export locations.  Default to ``drugs.csv`` and
        ``drug_groups.csv`` in :func:`resolve_data_dir`.

    Returns
    -------
    pd.DataFrame
        The composed view.  Callers must treat it as read-only; it is
        shared between calls.
    """
    data_dir = resolve_data_dir()
    drugs_path = Path(drugs_path) if drugs_path else data_dir / DRUGS_FILE
    groups_path = Path(groups_path) if groups_path else data_dir / GROUPS_FILE

    for path in (drugs_path, groups_path):
        if not path.exists():
            raise FileNotFoundError(
                f"Registry export {path} not found; set DRUG_DATA_DIR or pass "
                "explicit paths."
            )

    if force_reload:
        # Clear the LRU cache before recomputing
        _compose_cached.cache_clear()
        logger.info("Reloading registry exports from %s", drugs_path.parent)
    else:
        logger.info("Loading registry exports from %s", drugs_path.parent)

    return _compose_cached(drugs_path, groups_path)
