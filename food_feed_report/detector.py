"""
food_feed_report.detector
~~~~~~~~~~~~~~~~~~~~~~~~~
Piecewise-linear segments for a yearly production series.

The number of segments is chosen by BIC over statistically significant
fits, then breakpoints are moved to whole years (preferring local peaks
and troughs) so the narrative can name the year a trend turned.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import product
from typing import Optional

import numpy as np
import pwlf
from scipy.signal import find_peaks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    start_year: float
    end_year: float
    start_value: float
    end_value: float
    slope: float
    p_value: float


class SegmentDetector:
    """Split a yearly series into straight-line segments.

    Parameters
    ----------
    max_segments : int
        Largest number of segments tried (default 3).
    threshold : float
        Every slope change must have a p-value below this (default 0.05).
    seed : int
        Seed for the breakpoint optimiser, for reproducible reports.
    """

    def __init__(self, max_segments: int = 3, threshold: float = 0.05, seed: int = 42) -> None:
        self.max_segments = max_segments
        self.threshold = threshold
        self.seed = seed

    @staticmethod
    def bic(ssr: float, n_obs: int, n_segments: int) -> float:
        """Bayesian Information Criterion of a continuous piecewise fit (lower is better)."""
        n_params = 3 * n_segments - 1
        return float(n_obs * np.log(ssr / n_obs) + n_params * np.log(n_obs))

    @staticmethod
    def turning_years(x: np.ndarray, y: np.ndarray) -> set:
        """Years at which *y* has a local peak or trough."""
        peaks, _ = find_peaks(y)
        troughs, _ = find_peaks(-y)
        return {float(x[i]) for i in set(peaks) | set(troughs)}

    def _acceptable(self, model: pwlf.PiecewiseLinFit) -> bool:
        years = [int(b) for b in model.fit_breaks]
        if len(years) != len(set(years)):
            return False
        return all(p <= self.threshold for p in model.p_values()[1:])

    def _segment_count(self, x: np.ndarray, y: np.ndarray) -> tuple[Optional[pwlf.PiecewiseLinFit], int]:
        best, best_count = None, 0
        for n_seg in range(1, self.max_segments + 1):
            if len(x) - n_seg <= 1:
                break
            model = pwlf.PiecewiseLinFit(x, y)
            try:
                model.fit(n_seg, seed=self.seed)
                acceptable = self._acceptable(model)
            except Exception as exc:  # noqa: BLE001
                logger.warning("%d-segment fit failed: %s", n_seg, exc)
                continue
            if acceptable:
                best, best_count = model, n_seg
        return best, best_count

    def _snap_breaks(
        self,
        x: np.ndarray,
        y: np.ndarray,
        model: pwlf.PiecewiseLinFit,
        n_seg: int,
    ) -> Optional[pwlf.PiecewiseLinFit]:
        turning = self.turning_years(x, y)
        choices = []
        for b in model.fit_breaks:
            lo, hi = math.floor(b), math.ceil(b)
            if lo == hi or lo in turning:
                choices.append([lo])
            elif hi in turning:
                choices.append([hi])
            else:
                choices.append([lo, hi])

        snapped, lowest = None, np.inf
        for breaks in product(*choices):
            if len(set(breaks)) != len(breaks):
                continue
            candidate = pwlf.PiecewiseLinFit(x, y)
            score = self.bic(candidate.fit_with_breaks(breaks), len(x), n_seg)
            if score < lowest:
                snapped, lowest = candidate, score
        return snapped

    def detect(self, x, y) -> list[Segment]:
        """Segments of the series ``y(x)``, or an empty list when no
        significant piecewise fit exists.

        *x* must be sorted ascending.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)

        model, n_seg = self._segment_count(x, y)
        if model is None:
            return []
        model = self._snap_breaks(x, y, model, n_seg)
        if model is None:
            return []

        # p_values() follows beta: intercept first, then one term per segment.
        slope_p_values = model.p_values()[1:]
        slopes = np.cumsum(model.beta[1:])
        breaks = model.fit_breaks
        last = len(y) - 1
        segments = []
        for i in range(len(breaks) - 1):
            start = min(np.searchsorted(x, breaks[i]), last)
            end = min(np.searchsorted(x, breaks[i + 1]), last)
            segments.append(
                Segment(
                    start_year=float(breaks[i]),
                    end_year=float(breaks[i + 1]),
                    start_value=float(y[start]),
                    end_value=float(y[end]),
                    slope=float(slopes[i]),
                    p_value=float(slope_p_values[i]),
                )
            )
        return segments
