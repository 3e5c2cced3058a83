"""Hierarchy preparation for the drug browser.

The composed view is shown as a tree whose levels are an ordered subset
of the hierarchy keys chosen at runtime (for example year, then state).
Each node is identified by the path of values leading to it, encoded as
a JSON list so that any label text survives the round trip through the
chart and back into a selection.
"""

from __future__ import annotations

import json
from typing import Dict, List, Sequence

import pandas as pd

from .config import HIERARCHY_KEYS, ROOT_LABEL

NODE_COLUMNS: List[str] = ["id", "parent", "label", "level", "count"]


def validate_levels(levels: Sequence[str]) -> None:
    """Levels must be distinct members of the fixed hierarchy keys."""
    unknown = [level for level in levels if level not in HIERARCHY_KEYS]
    if unknown:
        raise ValueError(
            f"Unknown hierarchy level(s) {unknown}; expected a subset of "
            f"{list(HIERARCHY_KEYS)}."
        )
    if len(set(levels)) != len(levels):
        raise ValueError(f"Hierarchy levels must be distinct, got {list(levels)}.")


def node_id(path: Sequence[str]) -> str:
    """Encode a path of level values as a node id."""
    return json.dumps([str(value) for value in path])


def summarize_levels(view: pd.DataFrame, levels: Sequence[str]) -> pd.DataFrame:
    """
    Count drugs along every path of the hierarchy.

    Parameters
    ----------
    view : pd.DataFrame
        The composed (or filtered) view.
    levels : Sequence[str]
        Ordered hierarchy levels, outermost first.

    Returns
    -------
    pd.DataFrame
        One row per node with columns ``id``, ``parent``, ``label``,
        ``level`` and ``count``.  The first row is the root (empty path,
        ``parent == ""``) counting every row of ``view``.  Rows missing a
        value at some level are counted by the ancestors above that level
        only, since no selection can match a missing value.
    """
    validate_levels(levels)
    levels = list(levels)

    nodes: List[Dict[str, object]] = [
        {
            "id": node_id([]),
            "parent": "",
            "label": ROOT_LABEL,
            "level": "",
            "count": len(view),
        }
    ]

    for depth in range(1, len(levels) + 1):
        keys = levels[:depth]
        counts = view.groupby(keys, dropna=True, sort=True).size()
        for path, count in counts.items():
            path = path if isinstance(path, tuple) else (path,)
            nodes.append(
                {
                    "id": node_id(path),
                    "parent": node_id(path[:-1]),
                    "label": str(path[-1]),
                    "level": keys[-1],
                    "count": int(count),
                }
            )

    return pd.DataFrame(nodes, columns=NODE_COLUMNS)


def selection_from_node_id(node: str, levels: Sequence[str]) -> Dict[str, str]:
    """
    Translate a clicked node into a fresh selection mapping.

    The selection holds every component of the node's path keyed by its
    level, so it replaces the previous selection entirely.  The root node
    yields an empty (unconstrained) selection.
    """
    validate_levels(levels)
    path = json.loads(node)
    if not isinstance(path, list):
        raise ValueError(f"Malformed node id {node!r}.")
    if len(path) > len(levels):
        raise ValueError(
            f"Node {node!r} is deeper than the hierarchy levels {list(levels)}."
        )
    return {level: str(value) for level, value in zip(levels, path)}
