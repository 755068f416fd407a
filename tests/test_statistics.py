"""
Unit tests for plantops.core.statistics and plantops.core.utils.
"""

import math
import pytest

from plantops.core.statistics import (
    TREND_DECREASING,
    TREND_INCREASING,
    TREND_INSUFFICIENT,
    TREND_STABLE,
    classify_trend,
    compute_statistics,
    linear_slope,
)
from plantops.core.utils import clean_value, indexed_valid_values, valid_values


class TestCleanValue:
    """Test raw reading coercion."""

    def test_numbers_and_numeric_text(self):
        assert clean_value(3) == 3.0
        assert clean_value("4.5") == 4.5
        assert clean_value(" 7 ") == 7.0

    def test_rejected_values(self):
        for raw in (None, "", "  ", "abc", float("nan"), float("inf"), -math.inf, True):
            assert clean_value(raw) is None, raw

    def test_valid_values_keep_order(self):
        assert valid_values([3, None, "x", 1, float("nan"), 2]) == [3.0, 1.0, 2.0]

    def test_indexed_valid_values_keep_position(self):
        assert indexed_valid_values([None, 5, "x", 6]) == [(1, 5.0), (3, 6.0)]


class TestLinearSlope:
    """Test the OLS slope helper."""

    def test_perfect_line(self):
        assert linear_slope([1, 3, 5, 7]) == pytest.approx(2.0)

    def test_invalid_entries_are_dropped_before_indexing(self):
        """Positions run over valid values only: [1, 2, 3] -> slope 1."""
        assert linear_slope([1, None, 2, float("nan"), 3]) == pytest.approx(1.0)

    def test_too_few_points(self):
        assert linear_slope([1, 2]) is None
        assert linear_slope([1, 2], min_points=2) == pytest.approx(1.0)


class TestClassifyTrend:
    """Test trend labels."""

    def test_labels(self):
        assert classify_trend(None) == TREND_INSUFFICIENT
        assert classify_trend(0.005) == TREND_STABLE
        assert classify_trend(-0.009) == TREND_STABLE
        assert classify_trend(0.01) == TREND_INCREASING
        assert classify_trend(-0.5) == TREND_DECREASING

    def test_custom_epsilon(self):
        assert classify_trend(0.05, epsilon=0.1) == TREND_STABLE


class TestComputeStatistics:
    """Test descriptive statistics."""

    def test_basic_series(self):
        summary = compute_statistics([1, 2, 3, 4, 5])
        assert summary.mean == pytest.approx(3.0)
        assert summary.median == pytest.approx(3.0)
        # Population standard deviation
        assert summary.std_dev == pytest.approx(math.sqrt(2.0))
        assert summary.min == 1.0
        assert summary.max == 5.0
        assert summary.count == 5
        assert summary.completeness == pytest.approx(100.0)
        assert summary.trend == TREND_INCREASING
        assert summary.slope == pytest.approx(1.0)

    def test_even_count_median_is_midpoint(self):
        assert compute_statistics([1, 2, 3, 10]).median == pytest.approx(2.5)

    def test_invalid_entries_count_towards_completeness_only(self):
        summary = compute_statistics([1, None, float("nan"), 3])
        assert summary.count == 2
        assert summary.mean == pytest.approx(2.0)
        assert summary.completeness == pytest.approx(50.0)
        assert summary.trend == TREND_INSUFFICIENT
        assert summary.slope is None

    def test_no_valid_values(self):
        """Every statistic is None, never 0."""
        summary = compute_statistics([None, "x", float("inf")])
        assert summary.mean is None
        assert summary.median is None
        assert summary.std_dev is None
        assert summary.count == 0
        assert summary.completeness == 0.0
        assert summary.trend == TREND_INSUFFICIENT

    def test_empty_sequence(self):
        summary = compute_statistics([])
        assert summary.count == 0
        assert summary.mean is None

    def test_constant_series_is_stable(self):
        summary = compute_statistics([5, 5, 5, 5])
        assert summary.std_dev == 0.0
        assert summary.trend == TREND_STABLE

    def test_decreasing_series(self):
        assert compute_statistics([9, 6, 3]).trend == TREND_DECREASING

    def test_two_points_are_insufficient_for_trend(self):
        summary = compute_statistics([1, 100])
        assert summary.mean == pytest.approx(50.5)
        assert summary.trend == TREND_INSUFFICIENT
