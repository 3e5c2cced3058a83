"""
Drug registry explorer: compose the drug and drug-group exports, apply a
hierarchy selection and print (or save) one page of the filtered table.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .config import DEFAULT_PAGE_SIZE, DRUGS_FILE, GROUPS_FILE
from .data_manager import resolve_data_dir
from .filtering import describe_selection, filter_view, page_count, page_view
from .pipeline import run_pipeline


def parse_selection(items: Optional[List[str]]) -> Dict[str, str]:
    """Turn ``["level=value", ...]`` into a selection mapping."""
    selection: Dict[str, str] = {}
    for item in items or []:
        level, sep, value = item.partition("=")
        if not sep or not level.strip():
            raise ValueError(f"Expected LEVEL=VALUE, got {item!r}.")
        selection[level.strip()] = value
    return selection


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    data_dir = resolve_data_dir()
    parser = argparse.ArgumentParser(
        description="Filter the composed drug registry view by hierarchy level."
    )
    parser.add_argument(
        "--drugs",
        type=Path,
        default=data_dir / DRUGS_FILE,
        help=f"Path to the drugs CSV export (default: {data_dir / DRUGS_FILE}).",
    )
    parser.add_argument(
        "--groups",
        type=Path,
        default=data_dir / GROUPS_FILE,
        help=f"Path to the drug-group CSV export (default: {data_dir / GROUPS_FILE}).",
    )
    parser.add_argument(
        "--select",
        action="append",
        metavar="LEVEL=VALUE",
        help="Constrain a hierarchy level, e.g. --select created_year=2016 "
        "(repeatable).",
    )
    parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page of the filtered table to print (default: 1).",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Rows per page (default: {DEFAULT_PAGE_SIZE}).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional CSV path for the full filtered table.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s"
    )
    args = parse_args(argv)

    try:
        selection = parse_selection(args.select)
        view = run_pipeline(args.drugs, args.groups)
        filtered = filter_view(view, selection)
        pages = page_count(filtered, args.page_size)
        page = page_view(filtered, args.page, args.page_size)
    except (FileNotFoundError, KeyError, ValueError) as exc:
        raise SystemExit(f"error: {exc}") from exc

    print("\n--- DRUG REGISTRY VIEW ---")
    print(
        f"Filter: {describe_selection(selection)} | "
        f"Rows: {len(filtered)} of {len(view)} | Pages: {pages}"
    )
    with pd.option_context("display.width", 120, "display.max_columns", None):
        print(page.to_string() if not page.empty else "(no matching rows)")

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        filtered.to_csv(args.output, index=False)
        print(f"\nSaved filtered table to {args.output}")


if __name__ == "__main__":
    main()
