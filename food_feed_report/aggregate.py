"""
food_feed_report.aggregate
~~~~~~~~~~~~~~~~~~~~~~~~~~
Descriptive tables built from the long production table: food/feed
splits, feed shares and top-producer rankings.

Percent Feed is only defined where Food + Feed is positive. Elsewhere it
is ``None`` (scalars) or ``pd.NA`` in a nullable ``Float64`` column, so an
undefined share never turns into ``inf`` or a silent zero.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ELEMENTS = ("Feed", "Food")
SHARE_COLUMNS = ["Feed", "Food", "Total Production", "Percent Feed"]


def percent_feed(feed: float, food: float) -> Optional[float]:
    """Feed as a percentage of Feed + Food, or ``None`` when undefined.

    Examples
    --------
    >>> percent_feed(30, 70)
    30.0
    >>> percent_feed(0, 0) is None
    True
    """
    total = feed + food
    if not total > 0:
        return None
    return feed * 100.0 / total


def coefficient_of_variation(values: Iterable[float]) -> float:
    """``(std / mean) * 100``; NaN when the mean is zero."""
    y = np.asarray(list(values), dtype=float)
    mean = y.mean()
    if mean == 0:
        return float("nan")
    return float((y.std() / mean) * 100)


# ------------------------------------------------------------------
# Food / feed pivots
# ------------------------------------------------------------------


def _with_share(table: pd.DataFrame) -> pd.DataFrame:
    table["Total Production"] = table["Feed"] + table["Food"]
    total = table["Total Production"].where(table["Total Production"] > 0)
    table["Percent Feed"] = (table["Feed"] * 100.0 / total).astype("Float64")
    return table


def _element_pivot(long: pd.DataFrame, index: list[str]) -> pd.DataFrame:
    subset = long.loc[long["Element"].isin(ELEMENTS)]
    unknown = sorted(set(long["Element"]) - set(ELEMENTS))
    if unknown:
        logger.warning("Ignoring rows with unexpected element(s): %s", ", ".join(unknown))
    if subset.empty:
        return pd.DataFrame(columns=index + SHARE_COLUMNS)

    table = (
        subset.groupby(index + ["Element"])["Value"]
        .sum()
        .unstack("Element", fill_value=0.0)
        .reindex(columns=list(ELEMENTS), fill_value=0.0)
    )
    table.columns.name = None
    return _with_share(table.reset_index())


def feed_share_table(long: pd.DataFrame) -> pd.DataFrame:
    """Food and Feed per (Area, Year) with Total Production and Percent Feed.

    A missing element counts as zero production for that area and year.
    """
    return _element_pivot(long, ["Area", "Year"])


def yearly_totals(long: pd.DataFrame) -> pd.DataFrame:
    """Worldwide Food and Feed per year."""
    return _element_pivot(long, ["Year"])


def item_totals(long: pd.DataFrame, year: Optional[int] = None) -> pd.DataFrame:
    """Food and Feed per item, largest total first.

    Parameters
    ----------
    year : int, optional
        Restrict to one year; all years are summed when omitted.
    """
    if year is not None:
        long = long.loc[long["Year"] == year]
    table = _element_pivot(long, ["Item"])
    return table.sort_values("Total Production", ascending=False, kind="stable").reset_index(drop=True)


def latest_year(feed_share: pd.DataFrame) -> int:
    if feed_share.empty:
        raise ValueError("no production data")
    return int(feed_share["Year"].max())


def area_summary(feed_share: pd.DataFrame, year: int) -> pd.DataFrame:
    """One row per area for *year*, highest feed share first.

    Areas whose share is undefined are listed last.
    """
    rows = feed_share.loc[feed_share["Year"] == year, ["Area"] + SHARE_COLUMNS]
    return rows.sort_values(
        ["Percent Feed", "Total Production"],
        ascending=[False, False],
        na_position="last",
        kind="stable",
    ).reset_index(drop=True)


# ------------------------------------------------------------------
# Rankings
# ------------------------------------------------------------------


def top_producers(
    long: pd.DataFrame,
    n: int = 3,
    items: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """Areas ranked among the *n* largest producers of an item in at least one year.

    Production is Food + Feed. Ties share the better rank, so a year can
    contribute more than *n* areas. Areas producing nothing are never ranked.

    Returns
    -------
    pandas.DataFrame
        Columns ``Item``, ``Area``, ``Years In Top``, ``Best Rank``,
        ``First Year``, ``Last Year``; ordered by item, then best rank,
        then most years in the top.
    """
    columns = ["Item", "Area", "Years In Top", "Best Rank", "First Year", "Last Year"]
    per_item = long.groupby(["Item", "Year", "Area"], as_index=False)["Value"].sum()
    if items:
        per_item = per_item.loc[per_item["Item"].isin(list(items))]
    per_item = per_item.loc[per_item["Value"] > 0]
    if per_item.empty:
        return pd.DataFrame(columns=columns)

    per_item = per_item.assign(
        Rank=per_item.groupby(["Item", "Year"])["Value"].rank(method="min", ascending=False)
    )
    top = per_item.loc[per_item["Rank"] <= n]
    summary = (
        top.groupby(["Item", "Area"])
        .agg(
            **{
                "Years In Top": ("Year", "nunique"),
                "Best Rank": ("Rank", "min"),
                "First Year": ("Year", "min"),
                "Last Year": ("Year", "max"),
            }
        )
        .reset_index()
    )
    summary["Best Rank"] = summary["Best Rank"].astype(int)
    summary = summary.sort_values(
        ["Item", "Best Rank", "Years In Top", "Area"],
        ascending=[True, True, False, True],
    )
    return summary[columns].reset_index(drop=True)
