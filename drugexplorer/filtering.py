"""Filtering of the composed view from a hierarchy selection.

A selection maps hierarchy levels (``group``, ``state``, ``created_year``,
``created_month``) to the value picked for that level.  It is replaced
wholesale on every click in the hierarchy chart, so the filter is rebuilt
from scratch each time: one equality predicate per constrained level,
combined with a logical AND.

Predicates are plain closures evaluated against the DataFrame, so values
are never spliced into a query string and need no quoting.
"""

from __future__ import annotations

import math
from functools import reduce
from typing import Callable, Dict, Iterable, Mapping, Optional

import pandas as pd

from .config import FILTER_ORDER, HIERARCHY_KEYS, ROOT_LABEL, TRIMMED_LEVELS

Predicate = Callable[[pd.DataFrame], pd.Series]
Selection = Mapping[str, Optional[str]]


# ============================================================
# Predicates
# ============================================================


def _normalize(series: pd.Series, trim: bool) -> pd.Series:
    values = series.astype("string")
    return values.str.strip() if trim else values


def equals(column: str, value: object, *, trim: bool = False) -> Predicate:
    """
    Predicate matching rows whose ``column`` equals ``value`` as a string.

    Both sides are compared in their string form (so a year selected as
    ``"2016"`` matches an integer column).  With ``trim=True`` surrounding
    whitespace is removed from both sides first.  Missing values never match.
    """
    target = str(value).strip() if trim else str(value)

    def predicate(df: pd.DataFrame) -> pd.Series:
        mask = _normalize(df[column], trim) == target
        return mask.fillna(False).astype(bool)

    return predicate


def conjunction(predicates: Iterable[Predicate]) -> Predicate:
    """Combine predicates with a logical AND (empty -> every row matches)."""
    predicates = list(predicates)

    def predicate(df: pd.DataFrame) -> pd.Series:
        everything = pd.Series(True, index=df.index, dtype=bool)
        return reduce(lambda mask, p: mask & p(df), predicates, everything)

    return predicate


# ============================================================
# Selection handling
# ============================================================


def _is_unset(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def validate_selection(selection: Selection) -> None:
    """Raise ``ValueError`` for keys outside the fixed hierarchy levels."""
    unknown = [key for key in selection if key not in HIERARCHY_KEYS]
    if unknown:
        raise ValueError(
            f"Unknown hierarchy level(s) {unknown}; expected a subset of "
            f"{list(HIERARCHY_KEYS)}."
        )


def active_constraints(selection: Selection) -> Dict[str, str]:
    """Return the constrained levels of ``selection`` in filter order."""
    validate_selection(selection)
    return {
        key: str(selection[key])
        for key in FILTER_ORDER
        if key in selection and not _is_unset(selection[key])
    }


def build_predicate(selection: Selection) -> Predicate:
    """Build the conjunctive predicate for a selection."""
    return conjunction(
        equals(key, value, trim=key in TRIMMED_LEVELS)
        for key, value in active_constraints(selection).items()
    )


def filter_view(view: pd.DataFrame, selection: Selection) -> pd.DataFrame:
    """
    Return the rows of ``view`` matching every constrained level.

    Parameters
    ----------
    view : pd.DataFrame
        The composed view (see :func:`drugexplorer.pipeline.compose_view`).
    selection : Mapping[str, str | None]
        Current hierarchy selection.  Absent, ``None`` or blank values put
        no constraint on their level.

    Returns
    -------
    pd.DataFrame
        A new DataFrame holding the matching rows with their original index
        labels.  An empty selection returns a copy of the full view; a value
        matching nothing returns an empty frame.  ``view`` is not modified.
    """
    if not active_constraints(selection):
        return view.copy()

    mask = build_predicate(selection)(view)
    return view.loc[mask].copy()


def describe_selection(selection: Selection) -> str:
    """Human-readable summary of the active constraints."""
    constraints = active_constraints(selection)
    if not constraints:
        return ROOT_LABEL
    return " AND ".join(f"{key} = {value}" for key, value in constraints.items())


# ============================================================
# Paging
# ============================================================


def page_count(view: pd.DataFrame, page_size: int) -> int:
    """Number of pages needed to show ``view`` (at least one)."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}.")
    return max(1, math.ceil(len(view) / page_size))


def clamp_page(view: pd.DataFrame, page: Optional[int], page_size: int) -> int:
    """Nearest valid 1-based page number; a missing page means the first."""
    pages = page_count(view, page_size)
    return min(max(int(page or 1), 1), pages)


def page_view(view: pd.DataFrame, page: int, page_size: int) -> pd.DataFrame:
    """
    Slice one page (1-based) out of ``view``.

    Pages outside ``1..page_count`` are clamped to the nearest valid page.
    """
    page = clamp_page(view, page, page_size)
    start = (page - 1) * page_size
    return view.iloc[start : start + page_size]
