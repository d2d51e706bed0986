"""
food_feed_report.fitter
~~~~~~~~~~~~~~~~~~~~~~~
One ordinary-least-squares line per group.

:class:`GroupedTrendFitter` partitions ``(group, x, y)`` observations by
group key and fits ``y = slope * x + intercept`` to each partition. Groups
that cannot support a line are reported instead of raising, so one bad
country never stops the rest of the run.

Sample-size policy
------------------
* fewer than ``min_samples`` rows: not fitted, status ``insufficient_data``
* all x identical: not fitted, status ``degenerate_x``
* y (near) constant: slope 0, intercept ``mean(y)``, ``r_squared`` 0.0,
  status ``constant_y``
* fewer than ``min_reliable_samples`` rows: fitted, status ``low_sample``
* otherwise status ``ok``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Iterable, Optional

import numpy as np
import pandas as pd
from scipy import stats

logger = logging.getLogger(__name__)


class FitStatus(str, Enum):
    OK = "ok"
    LOW_SAMPLE = "low_sample"
    CONSTANT_Y = "constant_y"
    INSUFFICIENT_DATA = "insufficient_data"
    DEGENERATE_X = "degenerate_x"

    @property
    def fitted(self) -> bool:
        return self not in (FitStatus.INSUFFICIENT_DATA, FitStatus.DEGENERATE_X)


@dataclass(frozen=True)
class TrendFit:
    """Straight-line fit for one group.

    ``r_squared`` lies in [0, 1]. A value of 1 means a perfect fit, which
    for two points says nothing about the model; check ``status``.
    """

    group: Hashable
    slope: float
    intercept: float
    r_squared: float
    n_obs: int
    first_x: float
    last_x: float
    status: FitStatus = FitStatus.OK
    p_value: Optional[float] = None

    def predict(self, x):
        return self.slope * np.asarray(x, dtype=float) + self.intercept


@dataclass
class GroupedTrendResult:
    """Output of :meth:`GroupedTrendFitter.fit_frame`."""

    fits: dict = field(default_factory=dict)
    skipped: dict = field(default_factory=dict)
    observations: dict = field(default_factory=dict)

    def reliable(self) -> dict:
        """Fits with status ``ok`` only."""
        return {k: f for k, f in self.fits.items() if f.status is FitStatus.OK}

    def flagged(self) -> dict:
        """Every group not fitted cleanly, mapped to its status."""
        flagged = {k: f.status for k, f in self.fits.items() if f.status is not FitStatus.OK}
        flagged.update(self.skipped)
        return flagged

    def to_frame(self) -> pd.DataFrame:
        """One row per group, steepest slope first, skipped groups last.

        Skipped groups carry ``pd.NA`` in the numeric columns.
        """
        columns = ["Group", "Slope", "Intercept", "R Squared", "P Value", "Observations",
                   "First", "Last", "Status"]
        rows = [
            {
                "Group": f.group,
                "Slope": f.slope,
                "Intercept": f.intercept,
                "R Squared": f.r_squared,
                "P Value": f.p_value,
                "Observations": f.n_obs,
                "First": f.first_x,
                "Last": f.last_x,
                "Status": f.status.value,
            }
            for f in self.fits.values()
        ]
        rows.sort(key=lambda r: r["Slope"], reverse=True)
        for key, status in self.skipped.items():
            n_obs = len(self.observations.get(key, ()))
            rows.append({"Group": key, "Observations": n_obs, "Status": status.value})

        frame = pd.DataFrame(rows, columns=columns)
        for column in ["Slope", "Intercept", "R Squared", "P Value", "First", "Last"]:
            frame[column] = frame[column].astype("Float64")
        frame["Observations"] = frame["Observations"].astype(int)
        return frame


class GroupedTrendFitter:
    """Fit one least-squares line per group.

    Parameters
    ----------
    min_samples : int
        Smallest group that is fitted at all (default 2, never below 2).
    min_reliable_samples : int
        Fitted groups smaller than this are flagged ``low_sample``
        (default 10).
    rtol : float
        Relative tolerance under which the spread of y counts as zero.
    """

    def __init__(
        self,
        min_samples: int = 2,
        min_reliable_samples: int = 10,
        rtol: float = 1e-9,
    ) -> None:
        if min_samples < 2:
            raise ValueError("min_samples must be at least 2")
        self.min_samples = min_samples
        self.min_reliable_samples = max(min_reliable_samples, min_samples)
        self.rtol = rtol

    # ------------------------------------------------------------------
    # Single group
    # ------------------------------------------------------------------

    def _is_constant(self, y: np.ndarray) -> bool:
        scale = max(float(np.abs(y).max()), 1.0)
        return float(np.ptp(y)) <= self.rtol * scale

    def fit_group(self, key: Hashable, x, y) -> tuple[Optional[TrendFit], FitStatus]:
        """Fit one group; returns ``(None, status)`` when it cannot be fitted."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        n_obs = len(x)

        if n_obs < self.min_samples:
            return None, FitStatus.INSUFFICIENT_DATA
        if np.ptp(x) == 0:
            return None, FitStatus.DEGENERATE_X

        if self._is_constant(y):
            fit = TrendFit(
                group=key,
                slope=0.0,
                intercept=float(y.mean()),
                r_squared=0.0,
                n_obs=n_obs,
                first_x=float(x.min()),
                last_x=float(x.max()),
                status=FitStatus.CONSTANT_Y,
            )
            return fit, fit.status

        result = stats.linregress(x, y)
        status = FitStatus.OK if n_obs >= self.min_reliable_samples else FitStatus.LOW_SAMPLE
        # Two points leave no degrees of freedom for a p-value.
        p_value = float(result.pvalue) if n_obs > 2 else None
        fit = TrendFit(
            group=key,
            slope=float(result.slope),
            intercept=float(result.intercept),
            r_squared=float(np.clip(result.rvalue ** 2, 0.0, 1.0)),
            n_obs=n_obs,
            first_x=float(x.min()),
            last_x=float(x.max()),
            status=status,
            p_value=p_value,
        )
        return fit, status

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fit_frame(
        self,
        frame: pd.DataFrame,
        group_col: str,
        x_col: str,
        y_col: str,
    ) -> GroupedTrendResult:
        """Fit every group of *frame*.

        Rows with a missing x or y are left out before grouping. *frame*
        itself is not modified.
        """
        data = frame[[group_col, x_col, y_col]].copy()
        data = data.loc[data[x_col].notna() & data[y_col].notna()].copy()
        data[x_col] = data[x_col].astype(float)
        data[y_col] = data[y_col].astype(float)

        result = GroupedTrendResult()
        for key, rows in data.groupby(group_col, sort=True):
            rows = rows.sort_values(x_col, kind="stable").reset_index(drop=True)
            result.observations[key] = rows[[x_col, y_col]]
            fit, status = self.fit_group(key, rows[x_col], rows[y_col])
            if fit is None:
                result.skipped[key] = status
                logger.info("Skipped %r: %s (%d rows)", key, status.value, len(rows))
                continue
            if status is not FitStatus.OK:
                logger.warning("Fit for %r flagged %s (%d rows)", key, status.value, len(rows))
            result.fits[key] = fit

        logger.info(
            "Fitted %d group(s), %d reliable, %d skipped",
            len(result.fits), len(result.reliable()), len(result.skipped),
        )
        return result

    def fit(self, triples: Iterable[tuple]) -> GroupedTrendResult:
        """Fit ``(group_key, x, y)`` triples."""
        frame = pd.DataFrame(list(triples), columns=["group", "x", "y"])
        return self.fit_frame(frame, "group", "x", "y")
