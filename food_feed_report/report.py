"""
food_feed_report.report
~~~~~~~~~~~~~~~~~~~~~~~
Run the whole analysis and assemble the HTML document.

    loader -> reshape -> aggregate -> fitter / detector -> charts + narrative
"""

from __future__ import annotations

import html
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import charts
from .aggregate import (
    area_summary,
    coefficient_of_variation,
    feed_share_table,
    item_totals,
    latest_year,
    top_producers,
    yearly_totals,
)
from .config import ReportConfig
from .detector import SegmentDetector
from .errors import SchemaMismatchError
from .fitter import GroupedTrendFitter, GroupedTrendResult
from .loader import load_wide_table
from .narrative import (
    describe_feed_share,
    describe_fit,
    describe_fit_ranking,
    describe_segments,
    describe_top_producers,
)
from .reshape import wide_to_long

logger = logging.getLogger(__name__)

_CSS = """
body { font-family: "DejaVu Sans", Arial, sans-serif; margin: 2em auto; max-width: 1100px; color: #222; }
h1 { color: #1f4e79; }
h2 { color: #1f4e79; border-bottom: 1px solid #ccc; padding-bottom: 4px; }
table { border-collapse: collapse; margin: 1em 0; font-size: 0.9em; }
th, td { border: 1px solid #ddd; padding: 4px 8px; text-align: right; }
th { background: #f0f4f8; }
img { max-width: 100%; margin: 1em 0; }
.footer { color: #888; font-size: 0.8em; margin-top: 3em; }
"""


@dataclass
class Section:
    heading: str
    paragraphs: list = field(default_factory=list)
    tables: list = field(default_factory=list)
    figures: list = field(default_factory=list)


@dataclass
class Report:
    """Rendered analysis: prose, tables and figure paths, plus the frames
    they were built from."""

    title: str
    sections: list = field(default_factory=list)
    fits: Optional[GroupedTrendResult] = None
    feed_share: Optional[pd.DataFrame] = None
    generated: datetime = field(default_factory=datetime.now)

    def to_html(self, base_dir: Optional[Path] = None) -> str:
        """Render the report; figure paths are made relative to *base_dir*."""
        parts = [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8">',
            f"<title>{html.escape(self.title)}</title>",
            f"<style>{_CSS}</style></head><body>",
            f"<h1>{html.escape(self.title)}</h1>",
        ]
        for section in self.sections:
            parts.append(f"<h2>{html.escape(section.heading)}</h2>")
            parts.extend(f"<p>{html.escape(p)}</p>" for p in section.paragraphs)
            for table in section.tables:
                parts.append(table.to_html(index=False, na_rep="n/a", float_format=lambda v: f"{v:,.2f}"))
            for figure in section.figures:
                src = Path(figure)
                if base_dir is not None:
                    src = Path(os.path.relpath(src, base_dir))
                parts.append(f'<img src="{html.escape(src.as_posix())}" alt="{html.escape(src.stem)}">')
        parts.append(
            f'<p class="footer">Generated {self.generated:%Y-%m-%d %H:%M}</p></body></html>'
        )
        return "\n".join(parts)

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_html(base_dir=path.parent), encoding="utf-8")
        logger.info("Wrote report %s", path)
        return path


def _overview(long: pd.DataFrame) -> Section:
    years = long["Year"]
    return Section(
        "Dataset",
        paragraphs=[
            f"The dataset holds {len(long):,} yearly production records for "
            f"{long['Area'].nunique()} areas and {long['Item'].nunique()} items, "
            f"covering {years.min()} to {years.max()}. Coverage varies by area: "
            f"empty year cells were dropped, so some areas start later than others."
        ],
    )


def _world_section(long: pd.DataFrame, config: ReportConfig) -> Section:
    yearly = yearly_totals(long)
    detector = SegmentDetector(max_segments=config.max_segments)
    segments, paragraphs = {}, []
    for element in ("Food", "Feed"):
        x = yearly["Year"].to_numpy(dtype=float)
        y = yearly[element].to_numpy(dtype=float)
        segments[element] = detector.detect(x, y)
        paragraphs.append(
            describe_segments(
                segments[element],
                coefficient_of_variation(y),
                metric=f"worldwide {element.lower()} production",
            )
        )
    figure = charts.plot_yearly_totals(yearly, config.figures_dir / "world_totals.png", segments)
    decades = yearly.loc[yearly["Year"] % 10 == 0]
    return Section("Worldwide food and feed", paragraphs, [decades], [figure])


def _feed_share_section(feed_share: pd.DataFrame, year: int, config: ReportConfig) -> Section:
    summary = area_summary(feed_share, year)
    figures = [
        charts.plot_food_vs_feed(feed_share, config.figures_dir / "food_vs_feed.png", year=year),
        charts.plot_percent_feed_histogram(
            feed_share, config.figures_dir / "percent_feed_hist.png", year=year
        ),
    ]
    return Section(
        f"Feed share by area, {year}",
        [describe_feed_share(summary, year)],
        [summary.head(15)],
        figures,
    )


def _trend_section(
    feed_share: pd.DataFrame,
    areas: list,
    config: ReportConfig,
) -> tuple[Section, GroupedTrendResult]:
    fitter = GroupedTrendFitter(
        min_samples=config.min_samples,
        min_reliable_samples=config.min_reliable_samples,
    )
    subset = feed_share.loc[feed_share["Area"].isin(areas)]
    result = fitter.fit_frame(subset, "Area", "Year", "Percent Feed")

    paragraphs = [
        "For each top-producing area we fit a straight line to its feed share "
        f"over time. Fits based on fewer than {config.min_reliable_samples} years "
        "are shown but left out of the ranking.",
        describe_fit_ranking(result),
    ]
    paragraphs.extend(describe_fit(fit) for fit in result.fits.values())

    panels = areas[: config.max_fit_panels]
    figures = [
        charts.plot_group_fits(result, panels, config.figures_dir / "feed_share_fits.png"),
        charts.plot_percent_feed_over_time(
            feed_share, panels, config.figures_dir / "percent_feed_over_time.png"
        ),
    ]
    table = result.to_frame()
    for column in ("First", "Last"):
        table[column] = table[column].round().astype("Int64")
    return Section("Trends in feed share", paragraphs, [table], figures), result


def build_report(config: ReportConfig) -> Report:
    """Load the dataset named by *config* and build every report section.

    Figures are written to ``config.figures_dir`` as a side effect; call
    :meth:`Report.write` to produce the document. A dataset without a
    single production value raises :class:`SchemaMismatchError`.
    """
    wide = load_wide_table(config.data_path, config.encoding, config.area_aliases)
    long = wide_to_long(wide)
    if long.empty:
        raise SchemaMismatchError(f"{config.data_path}: no production values in any year column")
    feed_share = feed_share_table(long)
    year = latest_year(feed_share)

    items = item_totals(long, year=year)
    top = top_producers(long, n=config.top_n, items=config.items or None)
    # Areas ordered by how many items they lead, most first.
    areas = list(
        top.groupby("Area")["Item"].nunique().sort_values(ascending=False, kind="stable").index
    )

    report = Report(title=config.title, feed_share=feed_share)
    report.sections.append(_overview(long))
    report.sections.append(_world_section(long, config))
    report.sections.append(
        Section(
            f"Items, {year}",
            [f"The ten largest items by total production in {year}."],
            [items.head(10)],
        )
    )
    report.sections.append(_feed_share_section(feed_share, year, config))
    report.sections.append(
        Section(
            f"Top {config.top_n} producers",
            [describe_top_producers(top)],
            [top],
        )
    )
    trend, report.fits = _trend_section(feed_share, areas, config)
    report.sections.append(trend)
    return report


def run(config: ReportConfig) -> Path:
    """Build the report and write it to ``config.report_path``."""
    return build_report(config).write(config.report_path)
