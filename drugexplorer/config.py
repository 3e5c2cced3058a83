"""
Configuration constants for the drug registry explorer.
"""

from typing import Dict, List, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
# CSV exports of the parsed drug registry; the directory can be overridden
# with the ``DRUG_DATA_DIR`` environment variable (see ``data_manager.py``).
DRUGS_FILE: str = "drugs.csv"
GROUPS_FILE: str = "drug_groups.csv"

DEFAULT_SEP: str = ","

# Drug (entity) columns
KEY_COL: str = "primary_key"
NAME_COL: str = "name"
TYPE_COL: str = "type"
STATE_COL: str = "state"
CREATED_COL: str = "created"

# Group-membership columns
FOREIGN_KEY_COL: str = "parent_key"
GROUP_LABEL_COL: str = "text"

DRUG_COLUMNS: List[str] = [KEY_COL, NAME_COL, TYPE_COL, STATE_COL, CREATED_COL]
GROUP_COLUMNS: List[str] = [FOREIGN_KEY_COL, GROUP_LABEL_COL]

UNKNOWN_STATE: str = "Unknown"

# Projection kept in the composed view
VIEW_COLUMNS: List[str] = [
    "name",
    "type",
    "state",
    "group",
    "created_year",
    "created_month",
]

# ======================================================
#  HIERARCHY / FILTERING
# ======================================================
HIERARCHY_OPTIONS: List[Tuple[str, str]] = [
    ("Group", "group"),
    ("State", "state"),
    ("Created year", "created_year"),
    ("Created month", "created_month"),
]

HIERARCHY_KEYS: Tuple[str, ...] = tuple(value for _, value in HIERARCHY_OPTIONS)

# Order in which per-level predicates are combined
FILTER_ORDER: Tuple[str, ...] = ("created_year", "created_month", "group", "state")

# Levels whose display form may carry padding
TRIMMED_LEVELS: frozenset = frozenset({"created_month"})

# ======================================================
#  UI DEFAULTS
# ======================================================
DEFAULT_LEVELS: List[str] = ["created_year", "created_month", "group", "state"]

PAGE_SIZE_OPTIONS: Dict[str, str] = {
    "10": "10 rows",
    "25": "25 rows",
    "50": "50 rows",
    "100": "100 rows",
}
DEFAULT_PAGE_SIZE: int = 10

ROOT_LABEL: str = "All drugs"
