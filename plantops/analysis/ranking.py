# plantops/analysis/ranking.py
import logging
import pandas as pd
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..core.models import Bounds, HourlyReading, Operator, Parameter
from ..core.ranges import display_bounds, is_within_any_bounds, is_within_bounds, resolve_bounds
from .aggregation import readings_frame
from .models import AnalyticsThresholds, DEFAULT_THRESHOLDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterBreakdown:
    parameter_id: str
    parameter_name: str
    total_checks: int
    in_range_count: int
    achievement_percentage: float
    min: Optional[float]
    max: Optional[float]


@dataclass(frozen=True)
class OperatorAchievement:
    operator_id: str
    operator_name: str
    achievement_percentage: float
    total_checks: int
    total_in_range: int
    total_parameters: int
    breakdown: List[ParameterBreakdown] = field(default_factory=list)
    category: Optional[str] = None
    rank: Optional[int] = None


@dataclass(frozen=True)
class CategoryRanking:
    category: str
    entries: List[OperatorAchievement] = field(default_factory=list)


def _achievement(in_range: int, checks: int) -> float:
    """In-range share as a percentage rounded to one decimal."""
    if checks <= 0:
        return 0.0
    return round(in_range / checks * 100.0, 1)


def _operator_directory(operators: Iterable[Operator],
                        thresholds: AnalyticsThresholds) -> Dict[str, Operator]:
    """
    Active operators keyed by name. Readings carry the operator's name only,
    so the first active operator with a given name wins.
    """
    directory: Dict[str, Operator] = {}
    for op in operators:
        if not op or not op.name or not op.active:
            continue
        if thresholds.operator_role and op.role != thresholds.operator_role:
            continue
        directory.setdefault(op.name, op)
    return directory


def _sort_key(entry: OperatorAchievement):
    return (-entry.achievement_percentage, str(entry.operator_id))


def _checks_frame(readings: Iterable[HourlyReading], parameters: Dict[str, Parameter],
                  in_range: Callable[[float, Parameter], Optional[bool]]) -> pd.DataFrame:
    """
    One row per valid hourly slot attributed to a known parameter and a
    named operator, with its in-range flag.
    """
    df = readings_frame(readings)
    df = df[(df['operator_name'].fillna('') != '') & df['parameter_id'].isin(list(parameters))]
    if df.empty:
        return df

    flags = [in_range(v, parameters[pid]) for v, pid in zip(df['value'], df['parameter_id'])]
    df = df.assign(
        category=df['parameter_id'].map(lambda pid: parameters[pid].category),
        in_range=[bool(f) for f in flags],
        usable=[f is not None for f in flags],
    )
    return df[df['usable']].drop(columns='usable')


def _summarize_operators(df: pd.DataFrame, parameters: Dict[str, Parameter],
                         directory: Dict[str, Operator],
                         bounds_for: Callable[[Parameter], Bounds],
                         category: Optional[str] = None) -> List[OperatorAchievement]:
    """
    Reduces (operator, parameter) groups to per-operator achievements.
    Operators without checks or outside the directory are dropped.
    """
    per_parameter = df.groupby(['operator_name', 'parameter_id'], sort=False).agg(
        checks=('in_range', 'size'),
        in_range=('in_range', 'sum'),
    )

    results = []
    for operator_name, group in per_parameter.groupby(level='operator_name', sort=False):
        total_checks = int(group['checks'].sum())
        total_in_range = int(group['in_range'].sum())
        if total_checks == 0:
            continue

        operator = directory.get(operator_name)
        if operator is None:
            logger.debug(f"Operator '{operator_name}' not in the active operator list, skipped.")
            continue

        breakdown = []
        for (_, pid), stats in group.iterrows():
            parameter = parameters[pid]
            bounds = bounds_for(parameter)
            breakdown.append(ParameterBreakdown(
                parameter_id=pid,
                parameter_name=parameter.name or pid,
                total_checks=int(stats['checks']),
                in_range_count=int(stats['in_range']),
                achievement_percentage=_achievement(int(stats['in_range']), int(stats['checks'])),
                min=bounds.min,
                max=bounds.max,
            ))

        results.append(OperatorAchievement(
            operator_id=operator.id,
            operator_name=operator_name,
            achievement_percentage=_achievement(total_in_range, total_checks),
            total_checks=total_checks,
            total_in_range=total_in_range,
            total_parameters=len(breakdown),
            breakdown=breakdown,
            category=category,
        ))
    return results


def rank_operators(readings: Iterable[HourlyReading], parameters: Sequence[Parameter],
                   operators: Iterable[Operator], top_n: Optional[int] = None,
                   thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[CategoryRanking]:
    """
    Per-category operator leaderboards.

    A reading slot counts as in range when it satisfies any of the
    parameter's general, OPC or PCC ranges. Slots are grouped by
    (category, operator, parameter) and reduced to an overall achievement
    percentage per operator and category.

    Args:
        readings: Hourly readings of the window.
        parameters: Parameter master data; readings of unknown parameters
            are ignored.
        operators: Operator master list. Only active operators with the
            configured role are ranked.
        top_n: Leaderboard size (defaults to thresholds.top_n).

    Returns:
        List[CategoryRanking]: one per category with at least one ranked
        operator, ordered by category name. Entries are sorted by
        achievement descending, ties by operator id, and carry their
        1-based rank.

    Raises:
        ValueError: If top_n is negative.
    """
    top_n = thresholds.top_n if top_n is None else top_n
    if top_n < 0:
        raise ValueError(f"top_n must be >= 0, got {top_n}")

    param_by_id = {p.id: p for p in parameters if p is not None and p.id}
    directory = _operator_directory(operators, thresholds)
    if not param_by_id or not directory:
        logger.info("No parameters or no active operators, ranking is empty.")
        return []

    df = _checks_frame(readings, param_by_id, lambda v, p: is_within_any_bounds(v, p))
    if df.empty:
        return []

    rankings = []
    for category, category_df in df.groupby('category', sort=True):
        entries = _summarize_operators(category_df, param_by_id, directory, display_bounds, category)
        entries = sorted(entries, key=_sort_key)[:top_n]
        if not entries:
            continue
        ranked = [
            replace(entry, rank=idx)
            for idx, entry in enumerate(entries, start=1)
        ]
        rankings.append(CategoryRanking(category=category, entries=ranked))
        logger.debug(f"Category '{category}': ranked {len(ranked)} operator(s)")

    return rankings


def compute_operator_achievement(readings: Iterable[HourlyReading], parameters: Sequence[Parameter],
                                 operators: Iterable[Operator], material=None,
                                 operator_id: Optional[str] = None,
                                 thresholds: AnalyticsThresholds = DEFAULT_THRESHOLDS) -> List[OperatorAchievement]:
    """
    Achievement table for one unit's parameters under a material context.

    Unlike rank_operators() a slot is in range only against the bounds
    resolved for `material`; parameters without a usable range are skipped.
    The result is sorted like a leaderboard but not truncated, and can be
    narrowed to a single operator id.
    """
    param_by_id = {
        p.id: p for p in parameters
        if p is not None and p.id and resolve_bounds(p, material).is_valid
    }
    directory = _operator_directory(operators, thresholds)
    if not param_by_id or not directory:
        return []

    df = _checks_frame(
        readings, param_by_id,
        lambda v, p: is_within_bounds(v, resolve_bounds(p, material)),
    )
    if df.empty:
        return []

    results = _summarize_operators(df, param_by_id, directory, lambda p: resolve_bounds(p, material))
    if operator_id is not None:
        results = [r for r in results if r.operator_id == operator_id]
    return sorted(results, key=_sort_key)
