"""
food_feed_report.reshape
~~~~~~~~~~~~~~~~~~~~~~~~
Wide-to-long reshaping: one row per (area, item, element, year).

The only rows removed are those rejected by :func:`is_reportable`.
"""

from __future__ import annotations

import logging

import pandas as pd

from .loader import ID_COLUMNS, year_columns

logger = logging.getLogger(__name__)

LONG_COLUMNS = list(ID_COLUMNS.values()) + ["Year", "Value"]


def is_reportable(values: pd.Series) -> pd.Series:
    """Drop predicate for the long table.

    A year cell is kept iff it holds a production amount. Empty cells mean
    the area did not report that year and carry no information.
    """
    return values.notna()


def wide_to_long(wide: pd.DataFrame) -> pd.DataFrame:
    """Melt the year columns of *wide* into ``Year`` and ``Value``.

    Parameters
    ----------
    wide : pandas.DataFrame
        Frame as returned by :func:`~food_feed_report.loader.load_wide_table`.

    Returns
    -------
    pandas.DataFrame
        Columns :data:`LONG_COLUMNS`, sorted by area, item, element and
        year. ``Year`` is an integer, ``Value`` a float.
    """
    years = year_columns(wide)
    id_columns = [c for c in wide.columns if c not in years]

    long = wide.melt(
        id_vars=id_columns,
        value_vars=years,
        var_name="Year",
        value_name="Value",
    )
    keep = is_reportable(long["Value"])
    dropped = int((~keep).sum())
    long = long.loc[keep].copy()
    if dropped:
        logger.info("Dropped %d empty year cells out of %d", dropped, len(keep))

    long["Year"] = long["Year"].astype(int)
    long["Value"] = long["Value"].astype(float)
    long = long.sort_values(["Area", "Item", "Element", "Year"], kind="stable")
    return long.reset_index(drop=True)
