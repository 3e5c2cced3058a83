import os

import pandas as pd
import pytest

from drugexplorer.pipeline import compose_view

FIXTURE_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def fixture_dir():
    """Directory holding the sample registry exports."""
    return FIXTURE_DIR


@pytest.fixture
def drugs_df():
    """Load the sample drug export."""
    return pd.read_csv(os.path.join(FIXTURE_DIR, "drugs.csv"))


@pytest.fixture
def groups_df():
    """Load the sample drug-group export."""
    return pd.read_csv(os.path.join(FIXTURE_DIR, "drug_groups.csv"))


@pytest.fixture
def composed(drugs_df, groups_df):
    """Composed view of the sample exports."""
    return compose_view(drugs_df, groups_df)


@pytest.fixture
def small_view():
    """Hand-built view: one row per combination used in the filter tests."""
    return pd.DataFrame(
        {
            "name": ["A", "B", "C", "D"],
            "type": ["small molecule", "biotech", "small molecule", "biotech"],
            "state": ["solid", "liquid", "liquid", "Unknown"],
            "group": pd.array(["approved", "approved", "withdrawn", None], dtype="string"),
            "created_year": pd.array([2016, 2016, 2017, 2016], dtype="Int64"),
            "created_month": pd.array([3, 4, 3, 3], dtype="Int64"),
        }
    )
