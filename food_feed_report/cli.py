"""
food_feed_report.cli
~~~~~~~~~~~~~~~~~~~~
Command-line entry point::

    food-feed-report FAO.csv --output-dir report/
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .config import ReportConfig, configure_logging
from .errors import DatasetError
from .report import run

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # Option defaults are None so that only flags given on the command line
    # override the FOOD_FEED_* environment.
    parser = argparse.ArgumentParser(
        prog="food-feed-report",
        description="Render the food vs feed production report from the FAO CSV.",
    )
    parser.add_argument("data", type=Path, help="wide FAO production CSV")
    parser.add_argument("-o", "--output-dir", type=Path)
    parser.add_argument("--encoding")
    parser.add_argument("--top-n", type=int, help="rank cut-off for top producers")
    parser.add_argument("--min-samples", type=int,
                        help="smallest group that is fitted at all")
    parser.add_argument("--min-reliable-samples", type=int,
                        help="smaller fitted groups are flagged and left out of rankings")
    parser.add_argument("--item", dest="items", action="append",
                        help="restrict top producers to this item (repeatable)")
    parser.add_argument("--max-segments", type=int)
    parser.add_argument("--max-fit-panels", type=int)
    parser.add_argument("--log-level", default="INFO")
    return parser


_OVERRIDES = [
    "output_dir",
    "encoding",
    "top_n",
    "min_samples",
    "min_reliable_samples",
    "items",
    "max_segments",
    "max_fit_panels",
]


def config_from_args(args: argparse.Namespace) -> ReportConfig:
    """Environment configuration with the given command-line flags applied."""
    config = ReportConfig.from_env(args.data)
    overrides = {
        name: getattr(args, name)
        for name in _OVERRIDES
        if getattr(args, name) is not None
    }
    return replace(config, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        config = config_from_args(args)
    except ValueError as exc:
        logger.error("Invalid option: %s", exc)
        return 2
    try:
        path = run(config)
    except DatasetError as exc:
        logger.error("%s", exc)
        return 1
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
