# plantops/core/statistics.py
import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence
from scipy import stats

from .utils import to_array

logger = logging.getLogger(__name__)

TREND_INCREASING = 'increasing'
TREND_DECREASING = 'decreasing'
TREND_STABLE = 'stable'
TREND_INSUFFICIENT = 'insufficient'


@dataclass(frozen=True)
class StatisticsSummary:
    mean: Optional[float]
    median: Optional[float]
    std_dev: Optional[float]
    min: Optional[float]
    max: Optional[float]
    count: int
    completeness: float
    trend: str
    slope: Optional[float] = None


EMPTY_SUMMARY = StatisticsSummary(
    mean=None, median=None, std_dev=None, min=None, max=None,
    count=0, completeness=0.0, trend=TREND_INSUFFICIENT,
)


def linear_slope(values: Sequence, min_points: int = 3) -> Optional[float]:
    """
    Ordinary least-squares slope of the valid values against their position.

    Invalid entries are dropped first, so positions run 0..n-1 over the
    valid values only. Returns None with fewer than `min_points` values.
    """
    data = to_array(values)
    if len(data) < max(min_points, 2):
        return None
    result = stats.linregress(np.arange(len(data), dtype=np.float64), data)
    return float(result.slope)


def classify_trend(slope: Optional[float], epsilon: float = 0.01) -> str:
    """Maps an OLS slope to a trend label."""
    if slope is None:
        return TREND_INSUFFICIENT
    if abs(slope) < epsilon:
        return TREND_STABLE
    return TREND_INCREASING if slope > 0 else TREND_DECREASING


def compute_statistics(values: Sequence, min_points: int = 3,
                       trend_epsilon: float = 0.01) -> StatisticsSummary:
    """
    Descriptive statistics over a raw series.

    Args:
        values: Raw entries; None, NaN, +/-inf and non-numeric entries are
            filtered out but still count towards completeness' denominator.
        min_points: Minimum valid values needed for a trend.
        trend_epsilon: |slope| below this is classified as 'stable'.

    Returns:
        StatisticsSummary: population standard deviation, midpoint median,
        completeness = valid / total * 100. With no valid value every
        statistic is None, count is 0 and completeness is 0.
    """
    values = list(values)
    data = to_array(values)

    if len(data) == 0:
        return EMPTY_SUMMARY

    slope = linear_slope(data, min_points=min_points)

    return StatisticsSummary(
        mean=float(np.mean(data)),
        median=float(np.median(data)),
        std_dev=float(np.std(data)),
        min=float(np.min(data)),
        max=float(np.max(data)),
        count=int(len(data)),
        completeness=len(data) / len(values) * 100.0,
        trend=classify_trend(slope, trend_epsilon),
        slope=slope,
    )
