"""Core pipeline logic: join drug records with their group memberships.

This module orchestrates the loading, cleaning and composition of two
datasets exported from the parsed drug registry:

* The drug table, one row per drug keyed by ``primary_key`` with its
  name, type, physical state and creation timestamp.
* The group-membership table, associating a drug (``parent_key``) with a
  group label such as ``approved`` or ``withdrawn``.  A drug may belong
  to zero, one or many groups.

The primary entry point is :func:`run_pipeline`, which produces the
composed view: a read-only DataFrame used as the basis for all hierarchy
display and filtering in the Shiny app.
"""

from __future__ import annotations

from .config import (
    CREATED_COL,
    DEFAULT_SEP,
    DRUG_COLUMNS,
    FOREIGN_KEY_COL,
    GROUP_COLUMNS,
    GROUP_LABEL_COL,
    KEY_COL,
    STATE_COL,
    UNKNOWN_STATE,
    VIEW_COLUMNS,
)

from pathlib import Path
from typing import List

import logging
import pandas as pd
from pandas.api.types import is_datetime64_any_dtype, is_numeric_dtype

# Module‑level logger
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def fill_unknown_state(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with unset ``state`` values set to ``"Unknown"``.

    Nulls, empty strings and whitespace-only values count as unset; every
    other value is kept exactly as given.  Equality filters never match a
    null, so the state column must always carry an explicit category.
    """
    out = df.copy()
    state = out[STATE_COL].astype("string")
    blank = state.str.strip().eq("").fillna(False).astype(bool)
    out[STATE_COL] = state.mask(blank, pd.NA).fillna(UNKNOWN_STATE)
    return out


def _parse_timestamp(value: object) -> object:
    return pd.to_datetime(value, errors="coerce", format="mixed")


def parse_created(values: pd.Series) -> pd.Series:
    """Parse creation timestamps, each value in its own format.

    Values carrying different UTC offsets cannot share one datetime
    column; those are parsed one by one into ``Timestamp`` objects that
    keep their own offset.
    """
    values = values.astype(object).where(values.notna(), None)
    try:
        parsed = pd.to_datetime(values, errors="coerce", format="mixed")
    except ValueError:
        # Mixed timezones detected
        parsed = None
    if parsed is not None and is_datetime64_any_dtype(parsed):
        return parsed
    return values.map(_parse_timestamp)


def align_keys(left: pd.Series, right: pd.Series) -> tuple[pd.Series, pd.Series]:
    """Cast both join keys to one common nullable dtype.

    Numeric keys stay numeric (``Int64`` when every value is integral, so
    ``1`` and ``1.0`` from a CSV column with blanks still match); anything
    else is compared as strings.
    """
    if is_numeric_dtype(left) and is_numeric_dtype(right):
        present = pd.concat([left, right], ignore_index=True).dropna()
        if (present == present.round()).all():
            return left.astype("Int64"), right.astype("Int64")
        return left.astype("Float64"), right.astype("Float64")
    return left.astype("string"), right.astype("string")


def add_created_parts(df: pd.DataFrame) -> pd.DataFrame:
    """Derive ``created_year`` and ``created_month`` from ``created``.

    Timestamps are parsed as given, without any timezone conversion: the
    year and month are those written in each value, whatever its offset.
    Values that cannot be parsed produce missing year/month entries.

    Parameters
    ----------
    df : pd.DataFrame
        Data containing a ``created`` column.

    Returns
    -------
    pd.DataFrame
        A copy with nullable integer (``Int64``) ``created_year`` (calendar
        year) and ``created_month`` (1–12) columns.
    """
    out = df.copy()
    created = parse_created(out[CREATED_COL])
    if is_datetime64_any_dtype(created):
        years, months = created.dt.year, created.dt.month
    else:
        years = created.map(lambda ts: pd.NA if pd.isna(ts) else ts.year)
        months = created.map(lambda ts: pd.NA if pd.isna(ts) else ts.month)
    out["created_year"] = years.astype("Int64")
    out["created_month"] = months.astype("Int64")
    return out


# ---------------------------------------------------------------------------
# Data loaders
# ---------------------------------------------------------------------------


def load_drugs_raw(source: str | Path, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """Load the drug table export.

    Parameters
    ----------
    source : str or Path
        Path or URL to the drugs CSV.
    sep : str, optional
        Column delimiter; defaults to `","`.

    Returns
    -------
    pd.DataFrame
        The raw drug records as read from the CSV.
    """
    return pd.read_csv(source, sep=sep)


def load_groups_raw(source: str | Path, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """Load the drug-group membership export."""
    return pd.read_csv(source, sep=sep)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def compose_view(drugs: pd.DataFrame, groups: pd.DataFrame) -> pd.DataFrame:
    """Join drugs to their groups and build the filterable view.

    Steps:

    * Check both inputs for the columns the view depends on.
    * Full outer join of drugs and memberships on
      ``primary_key == parent_key``.  Drugs in several groups are
      repeated once per group; drugs in no group appear once with a
      missing ``group``.
    * Rename the membership label column to ``group``.
    * Replace unset states with ``"Unknown"``.
    * Derive ``created_year`` and ``created_month``.
    * Keep only the display/filter columns.

    Parameters
    ----------
    drugs : pd.DataFrame
        Drug records with columns ``primary_key``, ``name``, ``type``,
        ``state`` and ``created``.
    groups : pd.DataFrame
        Membership records with columns ``parent_key`` and ``text``.

    Returns
    -------
    pd.DataFrame
        The composed view with columns ``name``, ``type``, ``state``,
        ``group``, ``created_year`` and ``created_month`` and a fresh
        ``RangeIndex``.  Neither input is modified.
    """
    ensure_columns(drugs, DRUG_COLUMNS)
    ensure_columns(groups, GROUP_COLUMNS)

    left = drugs[DRUG_COLUMNS].copy()
    right = groups[GROUP_COLUMNS].rename(columns={GROUP_LABEL_COL: "group"})
    left[KEY_COL], right[FOREIGN_KEY_COL] = align_keys(
        left[KEY_COL], right[FOREIGN_KEY_COL]
    )
    right["group"] = right["group"].astype("string")

    joined = left.merge(
        right,
        how="outer",
        left_on=KEY_COL,
        right_on=FOREIGN_KEY_COL,
        validate="one_to_many",
    )

    view = add_created_parts(fill_unknown_state(joined))
    view = view[VIEW_COLUMNS].reset_index(drop=True)

    unmatched = int(view["group"].isna().sum())
    logger.info(
        "Composed view: %d drugs, %d memberships -> %d rows (%d without a group)",
        len(drugs),
        len(groups),
        len(view),
        unmatched,
    )
    return view


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_pipeline(
    drugs_source: str | Path,
    groups_source: str | Path,
    *,
    sep: str = DEFAULT_SEP,
) -> pd.DataFrame:
    """Load both registry exports and return the composed view.

    Parameters
    ----------
    drugs_source, groups_source : str or Path
        Locations of the drugs and drug-group CSV exports.
    sep : str, optional
        Column delimiter for both files.  Defaults to ",".

    Returns
    -------
    pd.DataFrame
        The composed view as returned by :func:`compose_view`.
    """
    drugs = load_drugs_raw(drugs_source, sep=sep)
    if drugs.empty:
        raise ValueError(f"Drug export {drugs_source} returned an empty DataFrame.")
    groups = load_groups_raw(groups_source, sep=sep)

    return compose_view(drugs, groups)
