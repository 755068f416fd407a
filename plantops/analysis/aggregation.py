# plantops/analysis/aggregation.py
import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.models import Bounds, HourlyReading, Parameter
from ..core.ranges import compute_compliance, resolve_bounds
from ..core.utils import clean_value, valid_values
from .models import AnalyticsThresholds, DEFAULT_THRESHOLDS

logger = logging.getLogger(__name__)

READING_COLUMNS = ['operator_name', 'parameter_id', 'date', 'hour', 'value']


@dataclass(frozen=True)
class ComplianceRow:
    parameter_id: str
    date: date
    value: Optional[float]
    percentage: Optional[float]

    @property
    def in_target(self) -> bool:
        """Normalized percentage inside the [0, 100] band."""
        return self.percentage is not None and 0.0 <= self.percentage <= 100.0


@dataclass(frozen=True)
class MonthlyAverage:
    parameter_id: str
    percentage: Optional[float]
    raw: Optional[float]
    days_with_value: int = 0


@dataclass(frozen=True)
class QAFResult:
    value: Optional[float]
    in_range: int
    total: int
    status: str = 'none'
    date: Optional[date] = None


@dataclass(frozen=True)
class DailyReadingStats:
    total: float
    avg: float
    min: float
    max: float
    count: int


@dataclass
class AnalysisRow:
    """One parameter's month: its resolved bounds, daily rows and average."""
    parameter: Parameter
    bounds: Bounds
    daily: List[ComplianceRow] = field(default_factory=list)
    monthly: Optional[MonthlyAverage] = None

    @property
    def raw_values(self) -> List[Optional[float]]:
        return [row.value for row in self.daily]

    @property
    def percentages(self) -> List[Optional[float]]:
        return [row.percentage for row in self.daily]


def _none_if_nan(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def readings_frame(readings: Iterable[HourlyReading]) -> pd.DataFrame:
    """
    Flattens readings into one row per valid hourly slot.
    Invalid slots (None, NaN, inf, text) are dropped here.
    """
    records = []
    for reading in readings:
        for hour_idx, raw in enumerate(reading.hours, start=1):
            value = clean_value(raw)
            if value is None:
                continue
            records.append((reading.operator_name, reading.parameter_id, reading.date, hour_idx, value))
    return pd.DataFrame.from_records(records, columns=READING_COLUMNS)


def qaf_status(value: Optional[float], thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> str:
    if value is None:
        return 'none'
    if value >= thresholds.qaf_good:
        return 'good'
    elif value >= thresholds.qaf_fair:
        return 'fair'
    return 'poor'


def select_parameters(parameters: Sequence[Parameter], category: Optional[str],
                      unit: Optional[str]) -> List[Parameter]:
    """
    Master data for the selected category and unit.
    An incomplete selection selects nothing.
    """
    if not category or not unit:
        return []
    return [p for p in parameters if p.category == category and p.unit == unit]


def compute_daily_reading_stats(reading: HourlyReading) -> Optional[DailyReadingStats]:
    """Total/average/min/max over the valid slots of a single reading."""
    values = valid_values(reading.hours)
    if not values:
        return None
    total = float(np.sum(values))
    return DailyReadingStats(
        total=total,
        avg=total / len(values),
        min=float(np.min(values)),
        max=float(np.max(values)),
        count=len(values),
    )


def compute_daily_averages(readings: Iterable[HourlyReading],
                           parameter_ids: Optional[Iterable[str]] = None) -> Dict[Tuple[str, date], float]:
    """
    Averages every valid hourly slot per (parameter, date).

    All operators' readings for the same parameter and day are pooled.
    A combination without a single valid slot is absent from the result,
    it never averages to 0.
    """
    df = readings_frame(readings)
    if parameter_ids is not None:
        df = df[df['parameter_id'].isin(set(parameter_ids))]
    if df.empty:
        return {}

    grouped = df.groupby(['parameter_id', 'date'], sort=False)['value'].mean()
    return {(pid, day): float(avg) for (pid, day), avg in grouped.items()}


def compute_compliance_rows(parameters: Sequence[Parameter], readings: Iterable[HourlyReading],
                            material=None, dates: Optional[Sequence[date]] = None) -> List[ComplianceRow]:
    """
    Daily compliance rows for each parameter.

    Args:
        parameters: Parameters of the active selection. Records without an
            id or name are skipped.
        readings: Raw hourly readings of the window.
        material: Material context used to resolve bounds.
        dates: The window's dates. When given, every (parameter, date) gets
            a row even without data; otherwise only dates seen in the data.

    Returns:
        List[ComplianceRow]: ordered by parameter, then date.
    """
    parameters = [p for p in parameters if p is not None and p.id and p.name]
    if not parameters:
        logger.debug("No parameters selected, nothing to compute.")
        return []

    averages = compute_daily_averages(readings, [p.id for p in parameters])
    if dates is None:
        dates = sorted({day for _, day in averages})

    rows = []
    for parameter in parameters:
        bounds = resolve_bounds(parameter, material)
        if not bounds.is_valid:
            logger.debug(f"{parameter.name}: no valid target range for material '{material}'")
        for day in dates:
            raw = averages.get((parameter.id, day))
            rows.append(ComplianceRow(
                parameter_id=parameter.id,
                date=day,
                value=raw,
                percentage=compute_compliance(raw, bounds),
            ))
    return rows


def compute_monthly_averages(rows: Sequence[ComplianceRow]) -> Dict[str, MonthlyAverage]:
    """
    Mean daily percentage (and raw value) per parameter.
    Only days with a defined value contribute; no such day gives None.
    """
    if not rows:
        return {}

    df = pd.DataFrame({
        'parameter_id': [r.parameter_id for r in rows],
        'percentage': pd.to_numeric(pd.Series([r.percentage for r in rows], dtype=object), errors='coerce'),
        'value': pd.to_numeric(pd.Series([r.value for r in rows], dtype=object), errors='coerce'),
    })
    grouped = df.groupby('parameter_id', sort=False).agg(
        percentage=('percentage', 'mean'),
        value=('value', 'mean'),
        days=('percentage', 'count'),
    )

    return {
        pid: MonthlyAverage(
            parameter_id=pid,
            percentage=_none_if_nan(row['percentage']),
            raw=_none_if_nan(row['value']),
            days_with_value=int(row['days']),
        )
        for pid, row in grouped.iterrows()
    }


def _qaf_counters(rows: Sequence[ComplianceRow]) -> pd.DataFrame:
    df = pd.DataFrame({
        'date': [r.date for r in rows],
        'defined': [r.percentage is not None for r in rows],
        'in_range': [r.in_target for r in rows],
    })
    return df.groupby('date', sort=True)[['in_range', 'defined']].sum()


def compute_daily_qaf(rows: Sequence[ComplianceRow],
                      thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[QAFResult]:
    """
    Quality Achievement Factor per day, ordered by date.

    QAF = in-target rows / rows with a defined percentage * 100; a day
    without any defined percentage has an undefined (None) QAF.
    """
    if not rows:
        return []

    results = []
    for day, counters in _qaf_counters(rows).iterrows():
        in_range, total = int(counters['in_range']), int(counters['defined'])
        value = in_range / total * 100.0 if total > 0 else None
        results.append(QAFResult(
            value=value, in_range=in_range, total=total,
            status=qaf_status(value, thresholds), date=day,
        ))
    return results


def compute_monthly_qaf(rows: Sequence[ComplianceRow],
                        thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> QAFResult:
    """
    Monthly QAF from the summed daily counters.

    This is sum(in range) / sum(defined) over all days, which differs from
    the mean of daily QAF values when days hold different sample counts.
    """
    in_range = sum(1 for r in rows if r.in_target)
    total = sum(1 for r in rows if r.percentage is not None)
    value = in_range / total * 100.0 if total > 0 else None
    return QAFResult(value=value, in_range=in_range, total=total, status=qaf_status(value, thresholds))


def build_analysis_table(parameters: Sequence[Parameter], readings: Iterable[HourlyReading],
                         material=None, dates: Optional[Sequence[date]] = None) -> List[AnalysisRow]:
    """
    Groups compliance rows into one AnalysisRow per parameter, keeping the
    order of `parameters`. This is the shape every downstream insight reads.
    """
    rows = compute_compliance_rows(parameters, readings, material, dates)
    if not rows:
        return []

    monthly = compute_monthly_averages(rows)
    by_parameter: Dict[str, List[ComplianceRow]] = {}
    for row in rows:
        by_parameter.setdefault(row.parameter_id, []).append(row)

    table = []
    for parameter in parameters:
        if parameter is None or parameter.id not in by_parameter:
            continue
        table.append(AnalysisRow(
            parameter=parameter,
            bounds=resolve_bounds(parameter, material),
            daily=by_parameter[parameter.id],
            monthly=monthly.get(parameter.id),
        ))
    return table
