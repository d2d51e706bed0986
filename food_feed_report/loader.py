"""
food_feed_report.loader
~~~~~~~~~~~~~~~~~~~~~~~
Read the wide FAO production CSV (one column per calendar year) and
bring its identifying columns to canonical names.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

import pandas as pd

from .errors import DatasetNotFoundError, SchemaMismatchError

logger = logging.getLogger(__name__)

# Raw header -> canonical name, in file order.
ID_COLUMNS = {
    "Area Abbreviation": "AreaAbbreviation",
    "Area Code": "AreaCode",
    "Area": "Area",
    "Item Code": "ItemCode",
    "Item": "Item",
    "Element Code": "ElementCode",
    "Element": "Element",
    "Unit": "Unit",
    "latitude": "Latitude",
    "longitude": "Longitude",
}

TEXT_COLUMNS = ["AreaAbbreviation", "Area", "Item", "Element", "Unit"]
# Every row must name these; the other text columns may be blank.
KEY_COLUMNS = ["Area", "Item", "Element"]

_YEAR_HEADER = re.compile(r"^Y?(\d{4})$")


def year_columns(frame: pd.DataFrame) -> list[str]:
    """Return the columns of *frame* that hold one calendar year each."""
    return [c for c in frame.columns if re.fullmatch(r"\d{4}", str(c))]


def _rename_columns(frame: pd.DataFrame) -> pd.DataFrame:
    # Headers are matched case-insensitively; the dataset ships lower-case
    # latitude/longitude next to title-case everything else.
    lookup = {raw.lower(): canonical for raw, canonical in ID_COLUMNS.items()}
    renames = {}
    for column in frame.columns:
        stripped = str(column).strip()
        match = _YEAR_HEADER.match(stripped)
        if match:
            renames[column] = match.group(1)
        elif stripped.lower() in lookup:
            renames[column] = lookup[stripped.lower()]
    return frame.rename(columns=renames)


def _check_schema(frame: pd.DataFrame, path: Path) -> list[str]:
    missing = [c for c in ID_COLUMNS.values() if c not in frame.columns]
    if missing:
        raise SchemaMismatchError(
            f"{path}: missing identifying column(s) {', '.join(missing)}"
        )
    years = year_columns(frame)
    if not years:
        raise SchemaMismatchError(f"{path}: no year columns (expected Y1961, ...)")

    bad = []
    for column in years:
        try:
            frame[column] = pd.to_numeric(frame[column])
        except (ValueError, TypeError):
            bad.append(column)
    if bad:
        raise SchemaMismatchError(
            f"{path}: non-numeric production values in year column(s) {', '.join(bad)}"
        )

    try:
        frame["ItemCode"] = frame["ItemCode"].astype(int)
    except (ValueError, TypeError) as exc:
        raise SchemaMismatchError(f"{path}: Item Code must be an integer") from exc
    return years


def load_wide_table(
    path: str | Path,
    encoding: str = "utf-8",
    area_aliases: Optional[dict] = None,
) -> pd.DataFrame:
    """Load the production dataset in its original wide layout.

    Parameters
    ----------
    path : str or Path
        CSV file with the identifying columns followed by one column per
        year (``Y1961`` ... ``Y2013``).
    encoding : str
        Character encoding of the file (default UTF-8).
    area_aliases : dict, optional
        Mapping of official area names to the shorter names used in the
        report.

    Returns
    -------
    pandas.DataFrame
        Canonical identifying columns followed by the year columns, which
        are named by the bare year (``"1961"``) and hold floats or NaN.

    Raises
    ------
    DatasetNotFoundError
        If *path* does not exist.
    SchemaMismatchError
        If a required column is missing, a row has no area, item or
        element, or a year column is not numeric.
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetNotFoundError(f"dataset not found: {path}")

    try:
        raw = pd.read_csv(path, encoding=encoding)
    except UnicodeDecodeError as exc:
        raise SchemaMismatchError(f"{path}: not valid {encoding} text") from exc
    except pd.errors.EmptyDataError as exc:
        raise SchemaMismatchError(f"{path}: file is empty") from exc

    frame = _rename_columns(raw)
    years = _check_schema(frame, path)

    for column in TEXT_COLUMNS:
        frame[column] = frame[column].astype("string").str.strip()
    unnamed = [c for c in KEY_COLUMNS if frame[c].fillna("").eq("").any()]
    if unnamed:
        raise SchemaMismatchError(f"{path}: empty {', '.join(unnamed)} in some rows")
    if area_aliases:
        frame["Area"] = frame["Area"].replace(area_aliases)

    frame = frame[list(ID_COLUMNS.values()) + years]
    logger.info(
        "Loaded %d rows x %d years (%s-%s) from %s",
        len(frame), len(years), years[0], years[-1], path,
    )
    return frame
