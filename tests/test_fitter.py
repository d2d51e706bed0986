"""Unit tests for food_feed_report.fitter."""

import math
import warnings

import numpy as np
import pandas as pd
import pytest

from food_feed_report.fitter import FitStatus, GroupedTrendFitter, GroupedTrendResult


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fitter():
    return GroupedTrendFitter(min_samples=2, min_reliable_samples=5)


@pytest.fixture
def observations():
    """Three countries: a clean rise, a noisy fall, and a two-year record."""
    rng = np.random.default_rng(0)
    years = np.arange(1990, 2010, dtype=float)
    rows = [("Rise", y, 10.0 + 0.5 * (y - 1990)) for y in years]
    rows += [
        ("Fall", y, 80.0 - 1.5 * (y - 1990) + noise)
        for y, noise in zip(years, rng.normal(0, 2.0, len(years)))
    ]
    rows += [("Short", 2012.0, 20.0), ("Short", 2013.0, 25.0)]
    return pd.DataFrame(rows, columns=["Area", "Year", "Percent Feed"])


# ---------------------------------------------------------------------------
# fit_group – single group edge cases
# ---------------------------------------------------------------------------

class TestFitGroup:
    def test_two_points_exact_line(self, fitter):
        fit, _ = fitter.fit_group("X", [2000, 2010], [10.0, 30.0])
        assert fit.slope == pytest.approx(2.0)
        assert fit.intercept == pytest.approx(-3990.0)
        assert fit.r_squared == pytest.approx(1.0)

    def test_two_points_flagged_low_sample(self, fitter):
        fit, status = fitter.fit_group("X", [2000, 2010], [10.0, 30.0])
        assert status is FitStatus.LOW_SAMPLE
        assert fit.p_value is None

    def test_constant_y_sentinel(self, fitter):
        fit, status = fitter.fit_group("X", np.arange(10), np.full(10, 7.0))
        assert status is FitStatus.CONSTANT_Y
        assert fit.slope == 0.0
        assert fit.intercept == 7.0
        assert fit.r_squared == 0.0

    def test_constant_y_two_points(self, fitter):
        fit, status = fitter.fit_group("X", [2000, 2001], [5.0, 5.0])
        assert status is FitStatus.CONSTANT_Y
        assert not math.isnan(fit.r_squared)

    def test_single_point_insufficient(self, fitter):
        fit, status = fitter.fit_group("X", [2000], [5.0])
        assert fit is None
        assert status is FitStatus.INSUFFICIENT_DATA

    def test_empty_group_insufficient(self, fitter):
        fit, status = fitter.fit_group("X", [], [])
        assert fit is None
        assert status is FitStatus.INSUFFICIENT_DATA

    def test_identical_x_degenerate(self, fitter):
        fit, status = fitter.fit_group("X", [2000, 2000, 2000], [1.0, 2.0, 3.0])
        assert fit is None
        assert status is FitStatus.DEGENERATE_X

    def test_r_squared_matches_definition(self, fitter):
        x = np.arange(12, dtype=float)
        y = np.array([3, 5, 4, 8, 9, 7, 12, 11, 15, 14, 13, 18], dtype=float)
        fit, _ = fitter.fit_group("X", x, y)
        residuals = y - fit.predict(x)
        expected = 1 - (residuals ** 2).sum() / ((y - y.mean()) ** 2).sum()
        assert fit.r_squared == pytest.approx(expected)
        assert 0.0 <= fit.r_squared <= 1.0

    def test_matches_polyfit(self, fitter):
        x = np.arange(2000, 2015, dtype=float)
        y = np.sin(x) + 0.3 * x
        fit, status = fitter.fit_group("X", x, y)
        slope, intercept = np.polyfit(x, y, 1)
        assert status is FitStatus.OK
        assert fit.slope == pytest.approx(slope)
        assert fit.intercept == pytest.approx(intercept, rel=1e-6)

    def test_min_samples_below_two_rejected(self):
        with pytest.raises(ValueError):
            GroupedTrendFitter(min_samples=1)

    def test_higher_min_samples(self):
        fit, status = GroupedTrendFitter(min_samples=4).fit_group("X", [1, 2, 3], [1.0, 2.0, 4.0])
        assert fit is None
        assert status is FitStatus.INSUFFICIENT_DATA


# ---------------------------------------------------------------------------
# fit_frame – grouping
# ---------------------------------------------------------------------------

class TestFitFrame:
    def test_returns_result(self, fitter, observations):
        result = fitter.fit_frame(observations, "Area", "Year", "Percent Feed")
        assert isinstance(result, GroupedTrendResult)
        assert set(result.fits) == {"Rise", "Fall", "Short"}

    def test_slopes_per_group(self, fitter, observations):
        result = fitter.fit_frame(observations, "Area", "Year", "Percent Feed")
        assert result.fits["Rise"].slope == pytest.approx(0.5)
        assert result.fits["Fall"].slope == pytest.approx(-1.5, abs=0.2)

    def test_short_group_flagged_not_reliable(self, fitter, observations):
        result = fitter.fit_frame(observations, "Area", "Year", "Percent Feed")
        assert result.fits["Short"].status is FitStatus.LOW_SAMPLE
        assert "Short" not in result.reliable()
        assert result.flagged() == {"Short": FitStatus.LOW_SAMPLE}

    def test_does_not_mutate_input(self, fitter, observations):
        before = observations.copy()
        fitter.fit_frame(observations, "Area", "Year", "Percent Feed")
        pd.testing.assert_frame_equal(observations, before)

    def test_observations_retained_sorted(self, fitter, observations):
        shuffled = observations.sample(frac=1.0, random_state=1)
        result = fitter.fit_frame(shuffled, "Area", "Year", "Percent Feed")
        rise = result.observations["Rise"]
        assert len(rise) == 20
        assert rise["Year"].is_monotonic_increasing

    def test_missing_values_dropped_before_grouping(self, fitter):
        frame = pd.DataFrame({
            "Area": ["X", "X", "X"],
            "Year": [2000, 2001, 2002],
            "Percent Feed": pd.array([10.0, pd.NA, 12.0], dtype="Float64"),
        })
        result = fitter.fit_frame(frame, "Area", "Year", "Percent Feed")
        assert result.fits["X"].n_obs == 2

    def test_dropping_missing_values_does_not_warn(self, fitter):
        copy_warning = getattr(pd.errors, "SettingWithCopyWarning", None)
        if copy_warning is None:
            pytest.skip("pandas without chained-assignment warnings")
        frame = pd.DataFrame({
            "Area": ["X", "X", "X", "X"],
            "Year": [2000, 2001, 2002, 2003],
            "Percent Feed": pd.array([10.0, pd.NA, 12.0, 13.0], dtype="Float64"),
        })
        with warnings.catch_warnings():
            warnings.simplefilter("error", copy_warning)
            result = fitter.fit_frame(frame, "Area", "Year", "Percent Feed")
        assert result.fits["X"].n_obs == 3

    def test_bad_group_does_not_stop_others(self, fitter, observations):
        extra = pd.DataFrame([("Lonely", 2000.0, 3.0)], columns=observations.columns)
        frame = pd.concat([observations, extra], ignore_index=True)
        result = fitter.fit_frame(frame, "Area", "Year", "Percent Feed")
        assert result.skipped == {"Lonely": FitStatus.INSUFFICIENT_DATA}
        assert "Rise" in result.fits

    def test_triples_input(self, fitter):
        result = fitter.fit([("A", 0, 1.0), ("A", 1, 3.0), ("B", 0, 2.0)])
        assert result.fits["A"].slope == pytest.approx(2.0)
        assert "B" in result.skipped

    def test_empty_input(self, fitter):
        result = fitter.fit([])
        assert result.fits == {}
        assert result.skipped == {}


# ---------------------------------------------------------------------------
# GroupedTrendResult.to_frame
# ---------------------------------------------------------------------------

class TestToFrame:
    def test_sorted_by_slope_skipped_last(self, fitter):
        result = fitter.fit([
            ("Up", 0, 0.0), ("Up", 1, 5.0), ("Up", 2, 9.0),
            ("Down", 0, 9.0), ("Down", 1, 4.0), ("Down", 2, 0.0),
            ("Solo", 0, 1.0),
        ])
        frame = result.to_frame()
        assert frame["Group"].tolist() == ["Up", "Down", "Solo"]
        assert pd.isna(frame.iloc[-1]["Slope"])
        assert frame.iloc[-1]["Status"] == "insufficient_data"

    def test_no_nan_in_fitted_rows(self, fitter, observations):
        frame = fitter.fit_frame(observations, "Area", "Year", "Percent Feed").to_frame()
        assert frame["R Squared"].notna().all()
