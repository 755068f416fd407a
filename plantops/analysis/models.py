# plantops/analysis/models.py
"""
Data models for compliance and ranking analysis.

This module contains the tunable thresholds of the analytics engines,
separating configuration from analysis logic.
"""
from dataclasses import dataclass


@dataclass
class AnalyticsThresholds:
    """
    Tunable constants of the analytics engines. The defaults reproduce the
    plant dashboard's behaviour.
    """
    # Statistics / trend
    min_points: int = 3
    trend_slope_epsilon: float = 0.01

    # Outliers (|x - mean| > outlier_sigma * stdev)
    outlier_sigma: float = 3.0
    medium_severity_max: int = 2

    # Forecast
    forecast_horizon: int = 7
    risk_margin: float = 0.05

    # Correlation strength bands (absolute value)
    strong_correlation: float = 0.8
    moderate_correlation: float = 0.5
    weak_correlation: float = 0.3

    # QAF status bands (%)
    qaf_good: float = 95.0
    qaf_fair: float = 85.0

    # Ranking
    top_n: int = 4
    operator_role: str = "Operator"


DEFAULT_THRESHOLDS = AnalyticsThresholds()
