"""Unit tests for food_feed_report.narrative."""

import pandas as pd
import pytest

from food_feed_report.detector import Segment
from food_feed_report.fitter import FitStatus, GroupedTrendFitter, TrendFit
from food_feed_report.narrative import (
    consolidate_segments,
    describe_feed_share,
    describe_fit,
    describe_fit_ranking,
    describe_segments,
    describe_top_producers,
    millify,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _seg(start_year, end_year, slope, start_value=100.0, end_value=None):
    if end_value is None:
        end_value = start_value + slope * (end_year - start_year)
    return Segment(
        start_year=float(start_year),
        end_year=float(end_year),
        start_value=float(start_value),
        end_value=float(end_value),
        slope=float(slope),
        p_value=0.01,
    )


def _fit(group="Brazil", slope=0.5, r_squared=0.9, n_obs=40, status=FitStatus.OK):
    return TrendFit(
        group=group, slope=slope, intercept=0.0, r_squared=r_squared,
        n_obs=n_obs, first_x=1970.0, last_x=2009.0, status=status,
    )


# ---------------------------------------------------------------------------
# millify
# ---------------------------------------------------------------------------

class TestMillify:
    def test_small_number(self):
        assert millify(750) == "750.00"

    def test_thousands(self):
        assert millify(1_500) == "1.50 K"

    def test_millions(self):
        assert millify(2_000_000) == "2.00 M"

    def test_zero(self):
        assert millify(0) == "0.00"


# ---------------------------------------------------------------------------
# consolidate_segments
# ---------------------------------------------------------------------------

class TestConsolidateSegments:
    def test_empty_returns_empty(self):
        assert consolidate_segments([]) == []

    def test_merges_same_direction(self):
        result = consolidate_segments([_seg(2000, 2003, 5), _seg(2003, 2006, 3)])
        assert len(result) == 1
        assert (result[0].start_year, result[0].end_year) == (2000, 2006)

    def test_keeps_different_directions(self):
        assert len(consolidate_segments([_seg(2000, 2004, 5), _seg(2004, 2008, -3)])) == 2

    def test_merged_slope_recomputed(self):
        segs = [
            _seg(2000, 2002, 4, start_value=100, end_value=108),
            _seg(2002, 2004, 6, start_value=108, end_value=120),
        ]
        assert consolidate_segments(segs)[0].slope == pytest.approx(5.0)

    def test_does_not_mutate_input(self):
        segs = [_seg(2000, 2002, 2), _seg(2002, 2004, 3)]
        consolidate_segments(segs)
        assert segs[0].end_year == 2002


# ---------------------------------------------------------------------------
# describe_segments
# ---------------------------------------------------------------------------

class TestDescribeSegments:
    def test_no_segments_low_cv(self):
        assert "stable" in describe_segments([], 2.0, "feed production")

    def test_no_segments_moderate_cv(self):
        assert "moderate" in describe_segments([], 10.0, "feed production")

    def test_no_segments_high_cv(self):
        assert "volatile" in describe_segments([], 25.0, "feed production")

    def test_single_segment(self):
        text = describe_segments([_seg(1961, 2013, 10, 100, 620)], 8.0, "food production")
        assert "increased" in text
        assert "1961" in text and "2013" in text
        assert "food production" in text

    def test_peak(self):
        segs = [_seg(1990, 2000, 10, 100, 200), _seg(2000, 2010, -5, 200, 150)]
        assert "peaking in 2000" in describe_segments(segs, 10.0, "feed production")

    def test_trough(self):
        segs = [_seg(1990, 2000, -5, 200, 150), _seg(2000, 2010, 10, 150, 250)]
        assert "bottoming out" in describe_segments(segs, 10.0, "feed production")


# ---------------------------------------------------------------------------
# describe_fit / describe_fit_ranking
# ---------------------------------------------------------------------------

class TestDescribeFit:
    def test_rising(self):
        text = describe_fit(_fit(slope=0.42))
        assert "Brazil" in text and "rose by 0.42" in text

    def test_falling(self):
        assert "fell by 1.20" in describe_fit(_fit(slope=-1.2))

    def test_flat(self):
        assert "flat" in describe_fit(_fit(slope=0.01))

    def test_low_sample_caveat(self):
        text = describe_fit(_fit(n_obs=2, status=FitStatus.LOW_SAMPLE))
        assert "caution" in text

    def test_constant(self):
        text = describe_fit(_fit(slope=0.0, r_squared=0.0, status=FitStatus.CONSTANT_Y))
        assert "did not change" in text


class TestDescribeFitRanking:
    @pytest.fixture
    def result(self):
        triples = [("Up", x, 2.0 * x + (x % 2)) for x in range(12)]
        triples += [("Down", x, 50.0 - 3.0 * x + (x % 3)) for x in range(12)]
        triples += [("Tiny", 0, 1.0), ("Tiny", 1, 4.0)]
        triples += [("Lone", 0, 1.0)]
        return GroupedTrendFitter(min_reliable_samples=10).fit(triples)

    def test_names_riser_and_faller(self, result):
        text = describe_fit_ranking(result)
        assert "fastest growth" in text and "Up" in text
        assert "steepest declines" in text and "Down" in text

    def test_flagged_groups_listed(self, result):
        text = describe_fit_ranking(result)
        assert "Excluded from the ranking" in text
        assert "Tiny" in text and "Lone" in text

    def test_no_reliable_fits(self):
        result = GroupedTrendFitter().fit([("A", 0, 1.0), ("A", 1, 2.0)])
        assert "No country" in describe_fit_ranking(result)


# ---------------------------------------------------------------------------
# describe_feed_share / describe_top_producers
# ---------------------------------------------------------------------------

class TestTableNarrative:
    def test_feed_share_headline(self):
        summary = pd.DataFrame({
            "Area": ["A", "B", "C"],
            "Feed": [30.0, 10.0, 0.0],
            "Food": [70.0, 90.0, 0.0],
            "Total Production": [100.0, 100.0, 0.0],
            "Percent Feed": pd.array([30.0, 10.0, pd.NA], dtype="Float64"),
        })
        text = describe_feed_share(summary, 2013)
        assert "20.0%" in text
        assert "A devoted the largest share" in text
        assert "B the smallest" in text
        assert "1 area(s)" in text

    def test_feed_share_all_undefined(self):
        summary = pd.DataFrame({
            "Area": ["A"], "Feed": [0.0], "Food": [0.0], "Total Production": [0.0],
            "Percent Feed": pd.array([pd.NA], dtype="Float64"),
        })
        assert "No area" in describe_feed_share(summary, 2013)

    def test_top_producers(self):
        top = pd.DataFrame({
            "Item": ["Maize", "Wheat", "Wheat"],
            "Area": ["USA", "USA", "India"],
        })
        text = describe_top_producers(top)
        assert "2 areas" in text
        assert "USA (2 items)" in text

    def test_top_producers_empty(self):
        assert "No top producers" in describe_top_producers(pd.DataFrame(columns=["Item", "Area"]))
