"""
food_feed_report.narrative
~~~~~~~~~~~~~~~~~~~~~~~~~~
Plain-English commentary for the report: production trends, feed shares,
top producers and the per-country regressions.
"""

from __future__ import annotations

import math
from dataclasses import replace

import pandas as pd

from .detector import Segment
from .fitter import FitStatus, GroupedTrendResult, TrendFit

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

CV_LOW_THRESHOLD = 5
CV_MODERATE_THRESHOLD = 15

# |slope| below this, in percentage points per year, reads as "flat".
FLAT_SLOPE = 0.05

_MILLNAMES = ["", " K", " M", " B", " T"]

_TRANSITION_PREFIXES = [
    "The trend then shifted,",
    "It pivoted again,",
    "Then,",
]

_STATUS_CAVEATS = {
    FitStatus.LOW_SAMPLE: "too few years for a stable fit",
    FitStatus.CONSTANT_Y: "no variation to fit",
    FitStatus.INSUFFICIENT_DATA: "fewer than two years of data",
    FitStatus.DEGENERATE_X: "all observations from a single year",
}


# ------------------------------------------------------------------
# Formatting helpers
# ------------------------------------------------------------------


def millify(n: float) -> str:
    """Format a large number with a K/M/B/T suffix.

    Examples
    --------
    >>> millify(1_500_000)
    '1.50 M'
    >>> millify(750)
    '750.00'
    """
    n = float(n)
    idx = max(
        0,
        min(
            len(_MILLNAMES) - 1,
            int(math.floor(0 if n == 0 else math.log10(abs(n)) / 3)),
        ),
    )
    return f"{n / 10 ** (3 * idx):.2f}{_MILLNAMES[idx]}"


def _join(names: list[str]) -> str:
    names = [str(n) for n in names]
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]


# ------------------------------------------------------------------
# Segment narrative (worldwide series)
# ------------------------------------------------------------------


def consolidate_segments(segments: list[Segment]) -> list[Segment]:
    """Merge neighbouring segments whose slopes point the same way.

    The merged slope is the rise over run of the combined span. The input
    list is left untouched.
    """
    if not segments:
        return []

    merged = [segments[0]]
    for seg in segments[1:]:
        last = merged[-1]
        if (last.slope >= 0) == (seg.slope >= 0):
            duration = seg.end_year - last.start_year
            slope = (seg.end_value - last.start_value) / duration if duration != 0 else 0.0
            merged[-1] = replace(last, end_year=seg.end_year, end_value=seg.end_value, slope=slope)
        else:
            merged.append(seg)
    return merged


def describe_segments(segments: list[Segment], cv_value: float, metric: str) -> str:
    """Describe a yearly series from its detected segments.

    Falls back to a volatility description (coefficient of variation,
    in percent) when no segments were detected.
    """
    segments = consolidate_segments(segments)

    if not segments:
        if cv_value < CV_LOW_THRESHOLD:
            return f"{metric.capitalize()} remained highly stable."
        if cv_value <= CV_MODERATE_THRESHOLD:
            return f"{metric.capitalize()} showed moderate fluctuations around a consistent level."
        return f"{metric.capitalize()} was volatile without a clear direction."

    if len(segments) == 1:
        seg = segments[0]
        change = seg.end_value - seg.start_value
        pct = (change / seg.start_value) * 100 if seg.start_value != 0 else 0.0
        direction = "increased" if change > 0 else "decreased"
        return (
            f"Between {int(seg.start_year)} and {int(seg.end_year)}, "
            f"{metric} {direction} by {millify(abs(change))} ({pct:+.2f}%), "
            f"following a consistent trajectory."
        )

    sentences = []
    for i, seg in enumerate(segments):
        direction = "an upward" if seg.slope > 0 else "a downward"
        if i == 0:
            sentences.append(
                f"From {int(seg.start_year)} to {int(seg.end_year)}, "
                f"{metric} followed {direction} trend."
            )
            continue
        prefix = _TRANSITION_PREFIXES[min(i - 1, len(_TRANSITION_PREFIXES) - 1)]
        previous = segments[i - 1].slope
        if previous > 0 and seg.slope < 0:
            turn = f"peaking in {int(seg.start_year)} before declining."
        elif previous < 0 and seg.slope > 0:
            turn = f"bottoming out in {int(seg.start_year)} before recovering."
        else:
            turn = f"continuing on {direction} path through {int(seg.end_year)}."
        sentences.append(f"{prefix} {turn}")
    return " ".join(sentences)


# ------------------------------------------------------------------
# Regression narrative
# ------------------------------------------------------------------


def describe_fit(fit: TrendFit, label: str = "the share of production used as feed") -> str:
    """One sentence on a single group's fitted trend.

    Slopes are read in percentage points per year.
    """
    span = f"{int(fit.first_x)}-{int(fit.last_x)}"
    if fit.status is FitStatus.CONSTANT_Y:
        return f"In {fit.group}, {label} did not change over {span}."

    if abs(fit.slope) < FLAT_SLOPE:
        movement = "stayed roughly flat"
    elif fit.slope > 0:
        movement = f"rose by {fit.slope:.2f} points per year"
    else:
        movement = f"fell by {abs(fit.slope):.2f} points per year"
    text = (
        f"In {fit.group}, {label} {movement} over {span} "
        f"(R² = {fit.r_squared:.2f}, {fit.n_obs} years)."
    )
    if fit.status is FitStatus.LOW_SAMPLE:
        text += f" Treat this with caution: {_STATUS_CAVEATS[fit.status]}."
    return text


def describe_fit_ranking(
    result: GroupedTrendResult,
    label: str = "feed share",
    k: int = 3,
) -> str:
    """Name the fastest risers and fallers among reliable fits, then list
    the groups left out of the ranking and why."""
    reliable = sorted(result.reliable().values(), key=lambda f: f.slope, reverse=True)
    sentences = []

    if not reliable:
        sentences.append(f"No country has enough years of data for a reliable {label} trend.")
    else:
        risers = [f for f in reliable if f.slope >= FLAT_SLOPE][:k]
        fallers = [f for f in reversed(reliable) if f.slope <= -FLAT_SLOPE][:k]
        if risers:
            sentences.append(
                f"The fastest growth in {label} was in "
                + _join([f"{f.group} (+{f.slope:.2f}/yr)" for f in risers])
                + "."
            )
        if fallers:
            sentences.append(
                "The steepest declines were in "
                + _join([f"{f.group} ({f.slope:.2f}/yr)" for f in fallers])
                + "."
            )
        if not risers and not fallers:
            sentences.append(f"No country shows a marked trend in {label}.")
        best = max(reliable, key=lambda f: f.r_squared)
        sentences.append(
            f"The most linear trend is {best.group}'s (R² = {best.r_squared:.2f})."
        )

    flagged = result.flagged()
    if flagged:
        by_status: dict = {}
        for group, status in flagged.items():
            by_status.setdefault(status, []).append(group)
        notes = [
            f"{_join(sorted(map(str, groups)))} ({_STATUS_CAVEATS[status]})"
            for status, groups in by_status.items()
        ]
        sentences.append("Excluded from the ranking: " + "; ".join(notes) + ".")
    return " ".join(sentences)


# ------------------------------------------------------------------
# Table narrative
# ------------------------------------------------------------------


def describe_feed_share(summary: pd.DataFrame, year: int) -> str:
    """Headline sentences for the per-area table of one year."""
    defined = summary.loc[summary["Percent Feed"].notna()]
    if defined.empty:
        return f"No area reported food or feed production in {year}."

    feed = float(summary["Feed"].sum())
    total = float(summary["Total Production"].sum())
    share = feed * 100.0 / total if total > 0 else 0.0
    top = defined.iloc[0]
    bottom = defined.iloc[-1]
    text = (
        f"In {year}, {share:.1f}% of the {millify(total)} thousand tonnes produced across "
        f"{len(summary)} areas went to animal feed. "
        f"{top['Area']} devoted the largest share to feed ({float(top['Percent Feed']):.1f}%), "
        f"{bottom['Area']} the smallest ({float(bottom['Percent Feed']):.1f}%)."
    )
    undefined = len(summary) - len(defined)
    if undefined:
        text += f" {undefined} area(s) reported no production and have no defined share."
    return text


def describe_top_producers(top: pd.DataFrame, k: int = 3) -> str:
    """Summarise which areas most often appear among the top producers."""
    if top.empty:
        return "No top producers could be ranked."
    counts = top.groupby("Area")["Item"].nunique().sort_values(ascending=False, kind="stable")
    leaders = [f"{area} ({n} items)" for area, n in counts.head(k).items()]
    return (
        f"{counts.size} areas rank among the top producers of at least one item. "
        f"The most frequent are {_join(leaders)}."
    )
