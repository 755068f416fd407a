"""Main workflow orchestrator for monthly compliance and ranking runs."""
import logging
from dataclasses import asdict, is_dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from ..analysis.aggregation import (
    build_analysis_table,
    compute_daily_qaf,
    compute_monthly_qaf,
    select_parameters,
)
from ..analysis.insights import (
    build_parameter_stats,
    compare_periods,
    compute_quality_metrics,
    correlate_parameters,
    detect_parameter_anomalies,
    predict_risks,
    summarize_parameters,
)
from ..analysis.models import AnalyticsThresholds, DEFAULT_THRESHOLDS
from ..analysis.ranking import compute_operator_achievement, rank_operators
from ..analysis.repository import AnalyticsRepository
from ..core.models import MaterialType
from ..services.logging_config import get_selection_logger
from .helpers import month_dates

logger = logging.getLogger(__name__)


def to_jsonable(obj: Any) -> Any:
    """Converts dataclasses, dates and enums into JSON-serializable values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    return obj


def _empty_report(year: int, month: int, category, unit, material) -> Dict[str, Any]:
    return {
        'period': f"{year:04d}-{month:02d}",
        'category': category,
        'unit': unit,
        'material': material.value if material else None,
        'parameters': [],
        'daily_qaf': [],
        'monthly_qaf': None,
        'statistics': [],
        'anomalies': {},
        'correlations': [],
        'forecasts': [],
        'quality': None,
        'operator_achievement': [],
        'comparison': None,
    }


def run_compliance_workflow(repo: AnalyticsRepository, year: int, month: int,
                            category: Optional[str], unit: Optional[str],
                            material=None, compare_year: Optional[int] = None,
                            thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> Dict[str, Any]:
    """
    Runs the monthly compliance analysis of one category/unit selection.

    This is the main entry point called by plantops_cli.py.

    Args:
        repo: Source of master data and readings.
        year, month: The analysed month.
        category, unit: The selection; an incomplete selection yields an
            empty report.
        material: Material context (MaterialType, tag or None).
        compare_year: When given, the same month of this year is analysed
            too and compared per parameter.

    Returns:
        Dict[str, Any]: A JSON-serializable report.

    Raises:
        RecordStoreError: If the record store cannot be reached.
    """
    material = MaterialType.parse(material)
    slog = get_selection_logger(__name__, category, unit)
    report = _empty_report(year, month, category, unit, material)

    if not category or not unit:
        slog.warning("Category and unit are both required, nothing to analyse.")
        return to_jsonable(report)

    parameters = select_parameters(repo.list_parameters(category, unit), category, unit)
    if not parameters:
        slog.warning("No parameters configured for this selection, nothing to analyse.")
        return to_jsonable(report)

    dates = month_dates(year, month)
    parameter_ids = [p.id for p in parameters]
    slog.info(f"--- Analysing {len(parameters)} parameter(s) for {report['period']} "
              f"(material: {material.value if material else 'general'}) ---")

    readings = repo.list_hourly_readings(dates[0], dates[-1], parameter_ids)
    table = build_analysis_table(parameters, readings, material, dates)
    rows = [row for entry in table for row in entry.daily]

    report['parameters'] = [
        {
            'parameter_id': entry.parameter.id,
            'parameter': entry.parameter.name,
            'unit_of_measure': entry.parameter.unit_of_measure,
            'target_min': entry.bounds.min,
            'target_max': entry.bounds.max,
            'daily': entry.daily,
            'monthly': entry.monthly,
            'stats': build_parameter_stats(entry),
        }
        for entry in table
    ]
    report['daily_qaf'] = compute_daily_qaf(rows, thresholds)
    report['monthly_qaf'] = compute_monthly_qaf(rows, thresholds)
    report['statistics'] = summarize_parameters(table, thresholds)
    report['anomalies'] = detect_parameter_anomalies(table, thresholds)
    report['correlations'] = correlate_parameters(table, thresholds)
    report['forecasts'] = predict_risks(table, thresholds)
    report['quality'] = compute_quality_metrics(table, thresholds)

    operators = repo.list_operators()
    report['operator_achievement'] = compute_operator_achievement(
        readings, parameters, operators, material, thresholds=thresholds,
    )

    monthly_qaf = report['monthly_qaf']
    if monthly_qaf.value is not None:
        slog.info(f"Monthly QAF: {monthly_qaf.value:.1f}% ({monthly_qaf.in_range}/{monthly_qaf.total}, {monthly_qaf.status})")
    else:
        slog.info("Monthly QAF: no data")

    if compare_year is not None:
        previous_dates = month_dates(compare_year, month)
        slog.info(f"Comparing against {compare_year:04d}-{month:02d}")
        previous_readings = repo.list_hourly_readings(previous_dates[0], previous_dates[-1], parameter_ids)
        previous_table = build_analysis_table(parameters, previous_readings, material, previous_dates)
        report['comparison'] = {
            'period': f"{compare_year:04d}-{month:02d}",
            'parameters': compare_periods(table, previous_table, thresholds),
            'quality': compute_quality_metrics(previous_table, thresholds),
        }

    slog.info("--- Compliance analysis finished ---")
    return to_jsonable(report)


def run_ranking_workflow(repo: AnalyticsRepository, year: int, month: int,
                         top_n: Optional[int] = None,
                         thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> Dict[str, Any]:
    """
    Builds the per-category operator leaderboards of a month over every
    configured parameter.

    Raises:
        ValueError: If top_n is negative.
        RecordStoreError: If the record store cannot be reached.
    """
    period = f"{year:04d}-{month:02d}"
    logger.info(f"--- Ranking operators for {period} ---")

    parameters = repo.list_parameters()
    if not parameters:
        logger.warning("No parameters configured, ranking is empty.")
        return {'period': period, 'rankings': []}

    dates = month_dates(year, month)
    readings = repo.list_hourly_readings(dates[0], dates[-1], [p.id for p in parameters])
    operators = repo.list_operators()

    rankings = rank_operators(readings, parameters, operators, top_n=top_n, thresholds=thresholds)
    logger.info(f"--- Ranking finished: {len(rankings)} categor{'y' if len(rankings) == 1 else 'ies'} ---")
    return to_jsonable({'period': period, 'rankings': rankings})
