"""
food_feed_report.config
~~~~~~~~~~~~~~~~~~~~~~~
Run configuration and logging setup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Official FAO names that are too long for tables and chart titles.
DEFAULT_AREA_ALIASES = {
    "United States of America": "USA",
    "China, mainland": "China",
    "China, Hong Kong SAR": "Hong Kong",
    "China, Macao SAR": "Macao",
    "China, Taiwan Province of": "Taiwan",
    "Iran (Islamic Republic of)": "Iran",
    "Venezuela (Bolivarian Republic of)": "Venezuela",
    "Bolivia (Plurinational State of)": "Bolivia",
    "Republic of Korea": "South Korea",
    "Democratic People's Republic of Korea": "North Korea",
    "Republic of Moldova": "Moldova",
    "Russian Federation": "Russia",
    "United Republic of Tanzania": "Tanzania",
    "Lao People's Democratic Republic": "Laos",
    "The former Yugoslav Republic of Macedonia": "North Macedonia",
    "Syrian Arab Republic": "Syria",
}


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the package log format on the root logger."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class ReportConfig:
    """Settings for one report run.

    Parameters
    ----------
    data_path : Path
        The wide FAO CSV file.
    output_dir : Path
        Directory receiving ``report.html`` and ``figures/``.
    top_n : int
        Rank cut-off for the top-producer table (default 3).
    min_samples : int
        Groups with fewer rows are not fitted at all (never below 2).
    min_reliable_samples : int
        Fitted groups with fewer rows are flagged ``low_sample``.
    items : tuple[str, ...]
        Restrict top-producer ranking to these items; empty means all.
    """

    data_path: Path
    output_dir: Path = Path("report")
    encoding: str = "utf-8"
    top_n: int = 3
    min_samples: int = 2
    min_reliable_samples: int = 10
    items: tuple = ()
    max_segments: int = 3
    max_fit_panels: int = 12
    area_aliases: dict = field(default_factory=lambda: dict(DEFAULT_AREA_ALIASES))
    title: str = "Who eats the food we grow? Food and feed production worldwide"

    def __post_init__(self) -> None:
        self.data_path = Path(self.data_path)
        self.output_dir = Path(self.output_dir)
        self.items = tuple(self.items)
        if self.top_n < 1:
            raise ValueError("top_n must be at least 1")
        if self.min_samples < 2:
            raise ValueError("min_samples must be at least 2")

    @property
    def figures_dir(self) -> Path:
        return self.output_dir / "figures"

    @property
    def report_path(self) -> Path:
        return self.output_dir / "report.html"

    @classmethod
    def from_env(cls, data_path: Optional[str | Path] = None) -> "ReportConfig":
        """Build a config from ``FOOD_FEED_*`` environment variables.

        An explicit *data_path* wins over ``FOOD_FEED_DATA``.
        """
        data = data_path or os.getenv("FOOD_FEED_DATA")
        if not data:
            raise ValueError("No dataset given and FOOD_FEED_DATA is not set")
        items = os.getenv("FOOD_FEED_ITEMS", "")
        return cls(
            data_path=Path(data),
            output_dir=Path(os.getenv("FOOD_FEED_OUTPUT_DIR", "report")),
            encoding=os.getenv("FOOD_FEED_ENCODING", "utf-8"),
            top_n=int(os.getenv("FOOD_FEED_TOP_N", 3)),
            min_samples=int(os.getenv("FOOD_FEED_MIN_SAMPLES", 2)),
            min_reliable_samples=int(os.getenv("FOOD_FEED_MIN_RELIABLE_SAMPLES", 10)),
            items=tuple(i.strip() for i in items.split(",") if i.strip()),
            max_segments=int(os.getenv("FOOD_FEED_MAX_SEGMENTS", 3)),
            max_fit_panels=int(os.getenv("FOOD_FEED_MAX_FIT_PANELS", 12)),
        )
