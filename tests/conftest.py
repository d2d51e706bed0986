"""Shared fixtures: a tiny dataset in the FAO wide layout."""

import numpy as np
import pandas as pd
import pytest

HEADER = [
    "Area Abbreviation", "Area Code", "Area", "Item Code", "Item",
    "Element Code", "Element", "Unit", "latitude", "longitude",
]
YEARS = list(range(2000, 2012))


def _row(abbr, code, area, item_code, item, element, values):
    element_code = 5521 if element == "Feed" else 5142
    return [abbr, code, area, item_code, item, element_code, element,
            "1000 tonnes", 0.0, 0.0] + list(values)


@pytest.fixture
def wide_frame():
    """Raw wide frame (original headers) with gaps and a zero-production area."""
    n = len(YEARS)
    rising = np.linspace(10, 40, n)
    rows = [
        _row("AAA", 1, "Alpha", 2511, "Wheat", "Feed", rising),
        _row("AAA", 1, "Alpha", 2511, "Wheat", "Food", 100 - rising),
        _row("AAA", 1, "Alpha", 2514, "Maize", "Feed", np.full(n, 50.0)),
        _row("BBB", 2, "Beta", 2511, "Wheat", "Feed", np.full(n, 5.0)),
        _row("BBB", 2, "Beta", 2511, "Wheat", "Food", np.linspace(200, 150, n)),
        _row("CCC", 3, "Gamma", 2514, "Maize", "Food", [np.nan] * (n - 2) + [30.0, 35.0]),
        _row("CCC", 3, "Gamma", 2514, "Maize", "Feed", [np.nan] * (n - 2) + [10.0, 20.0]),
        _row("DDD", 4, "Delta", 2511, "Wheat", "Food", np.zeros(n)),
        _row("DDD", 4, "Delta", 2511, "Wheat", "Feed", np.zeros(n)),
    ]
    return pd.DataFrame(rows, columns=HEADER + [f"Y{y}" for y in YEARS])


@pytest.fixture
def csv_path(tmp_path, wide_frame):
    path = tmp_path / "FAO.csv"
    wide_frame.to_csv(path, index=False, encoding="utf-8")
    return path
