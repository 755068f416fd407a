# plantops/analysis/insights.py
"""
Read-only insights derived from a month's analysis table.

Every function here consumes the AnalysisRow list produced by
build_analysis_table() and never mutates it.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..core.anomalies import AnomalyReport, detect_anomalies
from ..core.correlation import CorrelationPair, ParameterSeries, compute_correlation_matrix
from ..core.forecast import ForecastResult, forecast
from ..core.statistics import StatisticsSummary, compute_statistics
from .aggregation import AnalysisRow
from .models import AnalyticsThresholds, DEFAULT_THRESHOLDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSummary:
    parameter_id: str
    parameter: str
    unit_of_measure: str
    statistics: StatisticsSummary
    target_min: Optional[float]
    target_max: Optional[float]


@dataclass(frozen=True)
class ParameterStats:
    """Rounded figures of the monthly parameter table."""
    avg: Optional[float]
    median: Optional[float]
    min: Optional[float]
    max: Optional[float]
    stdev: Optional[float]
    qaf: Optional[float]


@dataclass(frozen=True)
class QualityMetrics:
    overall_stability: float
    average_completeness: float
    parameter_count: int
    total_data_points: int
    valid_data_points: int


@dataclass(frozen=True)
class PeriodComparison:
    parameter_id: str
    parameter: str
    current_mean: Optional[float]
    current_completeness: float
    previous_mean: Optional[float]
    previous_completeness: float
    delta: Optional[float]
    direction: str


@dataclass(frozen=True)
class RiskInsight:
    parameter_id: str
    parameter: str
    unit_of_measure: str
    current_value: Optional[float]
    trend: str
    result: ForecastResult


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return None if value is None else round(value, digits)


def _stats(row: AnalysisRow, thresholds: AnalyticsThresholds) -> StatisticsSummary:
    return compute_statistics(
        row.raw_values,
        min_points=thresholds.min_points,
        trend_epsilon=thresholds.trend_slope_epsilon,
    )


def summarize_parameters(table: Sequence[AnalysisRow],
                         thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[ParameterSummary]:
    """Statistical summary of each parameter's daily raw series."""
    return [
        ParameterSummary(
            parameter_id=row.parameter.id,
            parameter=row.parameter.name,
            unit_of_measure=row.parameter.unit_of_measure,
            statistics=_stats(row, thresholds),
            target_min=row.bounds.min,
            target_max=row.bounds.max,
        )
        for row in table
    ]


def build_parameter_stats(row: AnalysisRow) -> ParameterStats:
    """
    Figures for the monthly table footer, rounded to two decimals.
    QAF here is the parameter's monthly average compliance percentage.
    """
    summary = compute_statistics(row.raw_values)
    monthly_pct = row.monthly.percentage if row.monthly else None
    return ParameterStats(
        avg=_round(summary.mean),
        median=_round(summary.median),
        min=_round(summary.min),
        max=_round(summary.max),
        stdev=_round(summary.std_dev),
        qaf=_round(monthly_pct),
    )


def compute_quality_metrics(table: Sequence[AnalysisRow],
                            thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> QualityMetrics:
    """
    Data quality overview of the selection.

    Stability of a parameter is max(0, 100 - CV%) with CV = stdev / |mean|;
    a parameter whose mean or stdev is undefined or zero counts as CV 100%.
    """
    if not table:
        return QualityMetrics(0.0, 0.0, 0, 0, 0)

    total_stability = 0.0
    total_completeness = 0.0
    total_points = 0
    valid_points = 0

    for row in table:
        summary = _stats(row, thresholds)
        if summary.std_dev and summary.mean:
            cv = summary.std_dev / abs(summary.mean) * 100.0
        else:
            cv = 100.0
        total_stability += max(0.0, 100.0 - cv)
        total_completeness += summary.completeness
        total_points += len(row.daily)
        valid_points += summary.count

    return QualityMetrics(
        overall_stability=total_stability / len(table),
        average_completeness=total_completeness / len(table),
        parameter_count=len(table),
        total_data_points=total_points,
        valid_data_points=valid_points,
    )


def compare_periods(current: Sequence[AnalysisRow], previous: Sequence[AnalysisRow],
                    thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[PeriodComparison]:
    """
    Compares each parameter's mean against the same parameter in another
    period. delta is the relative change in percent; it is None when
    either mean is undefined or the previous mean is zero.
    """
    previous_by_id: Dict[str, AnalysisRow] = {row.parameter.id: row for row in previous}
    comparisons = []

    for row in current:
        now = _stats(row, thresholds)
        before_row = previous_by_id.get(row.parameter.id)
        before = _stats(before_row, thresholds) if before_row else None
        previous_mean = before.mean if before else None

        delta = None
        if now.mean is not None and previous_mean:
            delta = (now.mean - previous_mean) / previous_mean * 100.0

        if delta is None:
            direction = 'unknown'
        elif delta > 0:
            direction = 'increased'
        elif delta < 0:
            direction = 'decreased'
        else:
            direction = 'stable'

        comparisons.append(PeriodComparison(
            parameter_id=row.parameter.id,
            parameter=row.parameter.name,
            current_mean=now.mean,
            current_completeness=now.completeness,
            previous_mean=previous_mean,
            previous_completeness=before.completeness if before else 0.0,
            delta=delta,
            direction=direction,
        ))
    return comparisons


def predict_risks(table: Sequence[AnalysisRow],
                  thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[RiskInsight]:
    """Forecast and target risk of each parameter against its resolved bounds."""
    insights = []
    for row in table:
        summary = _stats(row, thresholds)
        result = forecast(
            row.raw_values, row.bounds,
            horizon=thresholds.forecast_horizon,
            min_points=thresholds.min_points,
            margin=thresholds.risk_margin,
        )
        if result.risk_assessed and result.risk != 'low':
            logger.info(f"{row.parameter.name}: forecast {result.forecast:.2f} carries {result.risk} risk")
        insights.append(RiskInsight(
            parameter_id=row.parameter.id,
            parameter=row.parameter.name,
            unit_of_measure=row.parameter.unit_of_measure,
            current_value=summary.mean,
            trend=summary.trend,
            result=result,
        ))
    return insights


def detect_parameter_anomalies(table: Sequence[AnalysisRow],
                               thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> Dict[str, AnomalyReport]:
    """Outlier report per parameter id."""
    reports = {}
    for row in table:
        summary = _stats(row, thresholds)
        reports[row.parameter.id] = detect_anomalies(
            row.raw_values, summary.mean, summary.std_dev,
            sigma=thresholds.outlier_sigma,
            min_points=thresholds.min_points,
            medium_max=thresholds.medium_severity_max,
        )
    return reports


def correlate_parameters(table: Sequence[AnalysisRow],
                         thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[CorrelationPair]:
    """Correlation matrix over the daily raw series of the table."""
    if len(table) < 2:
        return []
    series = [ParameterSeries(row.parameter.id, row.parameter.name, row.raw_values) for row in table]
    return compute_correlation_matrix(
        series,
        min_points=thresholds.min_points,
        strong=thresholds.strong_correlation,
        moderate=thresholds.moderate_correlation,
        weak=thresholds.weak_correlation,
    )
