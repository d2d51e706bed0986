"""
food_feed_report
~~~~~~~~~~~~~~~~
Who eats the food we grow? A narrative report on worldwide food and feed
production, built from the FAO food balance CSV.

Whole report:

    from food_feed_report import ReportConfig, build_report

    report = build_report(ReportConfig(data_path="FAO.csv"))
    report.write("report/report.html")

Just the per-country trends:

    from food_feed_report import GroupedTrendFitter, feed_share_table

    shares = feed_share_table(long)
    result = GroupedTrendFitter(min_reliable_samples=10).fit_frame(
        shares, "Area", "Year", "Percent Feed"
    )
    result.reliable()      # only fits with enough years
    result.flagged()       # everything else, with the reason
"""

from .aggregate import (
    feed_share_table,
    percent_feed,
    top_producers,
    yearly_totals,
)
from .config import ReportConfig, configure_logging
from .detector import Segment, SegmentDetector
from .errors import DatasetError, DatasetNotFoundError, SchemaMismatchError
from .fitter import FitStatus, GroupedTrendFitter, GroupedTrendResult, TrendFit
from .loader import load_wide_table
from .report import Report, build_report
from .reshape import wide_to_long

__all__ = [
    "DatasetError",
    "DatasetNotFoundError",
    "FitStatus",
    "GroupedTrendFitter",
    "GroupedTrendResult",
    "Report",
    "ReportConfig",
    "SchemaMismatchError",
    "Segment",
    "SegmentDetector",
    "TrendFit",
    "build_report",
    "configure_logging",
    "feed_share_table",
    "load_wide_table",
    "percent_feed",
    "top_producers",
    "wide_to_long",
    "yearly_totals",
]

__version__ = "0.1.0"
