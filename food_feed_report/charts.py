"""
food_feed_report.charts
~~~~~~~~~~~~~~~~~~~~~~~
Static PNG charts for the report. Every function writes one file and
returns its path.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from .fitter import FitStatus, GroupedTrendResult  # noqa: E402

logger = logging.getLogger(__name__)

COLORS = {
    "food": "#2e75b6",
    "feed": "#ed7d31",
    "fit": "#c00000",
    "flagged": "#7f7f7f",
    "neutral": "#1f4e79",
}


def _save(fig, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info("Wrote chart %s", path)
    return path


def plot_food_vs_feed(feed_share: pd.DataFrame, path: Path, year: Optional[int] = None) -> Path:
    """Scatter of Food against Feed, one point per area (and year)."""
    data = feed_share if year is None else feed_share.loc[feed_share["Year"] == year]
    data = data.loc[(data["Food"] > 0) & (data["Feed"] > 0)]

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(data["Food"], data["Feed"], s=12, alpha=0.5, color=COLORS["neutral"])
    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Food (1000 tonnes, log scale)")
    ax.set_ylabel("Feed (1000 tonnes, log scale)")
    suffix = f" in {year}" if year is not None else ", all years"
    ax.set_title(f"Food vs feed production per area{suffix}", fontweight="bold")
    ax.grid(True, alpha=0.3)
    return _save(fig, path)


def plot_percent_feed_histogram(
    feed_share: pd.DataFrame, path: Path, year: Optional[int] = None, bins: int = 20
) -> Path:
    """Distribution of Percent Feed across areas; undefined shares are left out."""
    data = feed_share if year is None else feed_share.loc[feed_share["Year"] == year]
    values = data["Percent Feed"].dropna().astype(float)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.hist(values, bins=bins, range=(0, 100), color=COLORS["feed"], edgecolor="black", alpha=0.8)
    ax.set_xlabel("Percent of production used as feed")
    ax.set_ylabel("Areas" if year is not None else "Area-years")
    suffix = f" ({year})" if year is not None else ""
    ax.set_title(f"Distribution of feed share{suffix}", fontweight="bold")
    ax.grid(True, alpha=0.3)
    return _save(fig, path)


def plot_percent_feed_over_time(
    feed_share: pd.DataFrame, areas: Sequence[str], path: Path
) -> Path:
    """Year vs Percent Feed scatter for the selected areas."""
    fig, ax = plt.subplots(figsize=(10, 6))
    cmap = matplotlib.colormaps["tab20"]
    for i, area in enumerate(areas):
        rows = feed_share.loc[(feed_share["Area"] == area) & feed_share["Percent Feed"].notna()]
        ax.scatter(
            rows["Year"], rows["Percent Feed"].astype(float),
            s=10, label=area, color=cmap(i % cmap.N),
        )
    ax.set_xlabel("Year")
    ax.set_ylabel("Percent feed")
    ax.set_title("Share of production used as feed", fontweight="bold")
    ax.grid(True, alpha=0.3)
    if 0 < len(areas) <= 20:
        ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), fontsize=8)
    return _save(fig, path)


def plot_group_fits(
    result: GroupedTrendResult,
    groups: Sequence,
    path: Path,
    x_label: str = "Year",
    y_label: str = "Percent feed",
) -> Path:
    """Small multiples: observations and fitted line for each group.

    Flagged fits are drawn in grey; skipped groups show their points only.
    """
    groups = [g for g in groups if g in result.observations]
    n_cols = min(4, max(1, len(groups)))
    n_rows = max(1, math.ceil(len(groups) / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(4 * n_cols, 3 * n_rows), squeeze=False)

    for ax, group in zip(axes.flat, groups):
        obs = result.observations[group]
        x = obs.iloc[:, 0].to_numpy(dtype=float)
        y = obs.iloc[:, 1].to_numpy(dtype=float)
        ax.scatter(x, y, s=8, color=COLORS["neutral"])
        fit = result.fits.get(group)
        if fit is not None:
            line_x = np.array([fit.first_x, fit.last_x])
            color = COLORS["fit"] if fit.status is FitStatus.OK else COLORS["flagged"]
            ax.plot(line_x, fit.predict(line_x), color=color, linewidth=2)
            ax.set_title(f"{group}\nR² = {fit.r_squared:.2f}, n = {fit.n_obs}", fontsize=9)
        else:
            ax.set_title(f"{group}\n{result.skipped[group].value}", fontsize=9)
        ax.set_xlabel(x_label, fontsize=8)
        ax.set_ylabel(y_label, fontsize=8)
        ax.tick_params(labelsize=7)
        ax.grid(True, alpha=0.3)

    for ax in list(axes.flat)[len(groups):]:
        ax.set_visible(False)
    fig.tight_layout()
    return _save(fig, path)


def plot_yearly_totals(
    yearly: pd.DataFrame,
    path: Path,
    segments: Optional[dict] = None,
) -> Path:
    """Worldwide Food and Feed per year, with detected segments overlaid.

    *segments* maps ``"Food"``/``"Feed"`` to detected segments.
    """
    segments = segments or {}
    fig, ax = plt.subplots(figsize=(10, 5))
    for element in ("Food", "Feed"):
        color = COLORS[element.lower()]
        ax.plot(yearly["Year"], yearly[element], label=element, color=color, linewidth=2)
        for seg in segments.get(element, []):
            ax.plot(
                [seg.start_year, seg.end_year], [seg.start_value, seg.end_value],
                color=color, linestyle="--", linewidth=1,
            )
    ax.set_xlabel("Year")
    ax.set_ylabel("Production (1000 tonnes)")
    ax.set_title("Worldwide food and feed production", fontweight="bold")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    return _save(fig, path)
