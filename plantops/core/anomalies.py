# plantops/core/anomalies.py
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .statistics import compute_statistics
from .utils import indexed_valid_values

logger = logging.getLogger(__name__)

SEVERITY_LOW = 'low'
SEVERITY_MEDIUM = 'medium'
SEVERITY_HIGH = 'high'


@dataclass(frozen=True)
class AnomalyReport:
    outliers: List[float] = field(default_factory=list)
    outlier_indices: List[int] = field(default_factory=list)
    severity: str = SEVERITY_LOW
    total_days: int = 0


def classify_severity(outlier_count: int, medium_max: int = 2) -> str:
    if outlier_count == 0:
        return SEVERITY_LOW
    elif outlier_count <= medium_max:
        return SEVERITY_MEDIUM
    else:
        return SEVERITY_HIGH


def detect_anomalies(values: Sequence, mean: Optional[float] = None,
                     std_dev: Optional[float] = None, sigma: float = 3.0,
                     min_points: int = 3, medium_max: int = 2) -> AnomalyReport:
    """
    Flags values further than `sigma` standard deviations from the mean.

    Args:
        values: Raw series; invalid entries are skipped but keep their slot,
            so `outlier_indices` point into the original sequence.
        mean, std_dev: Statistics of the series. Computed here when either
            is not supplied.
        sigma: Outlier multiple (|x - mean| > sigma * std_dev).
        min_points: Minimum valid values before any value can be flagged.

    Returns:
        AnomalyReport: zero outliers with 'low' severity when there are too
        few values or the standard deviation is zero (constant series).
    """
    values = list(values)
    indexed = indexed_valid_values(values)

    if mean is None or std_dev is None:
        summary = compute_statistics(values, min_points=min_points)
        mean, std_dev = summary.mean, summary.std_dev

    if len(indexed) < min_points or mean is None or not std_dev:
        return AnomalyReport(total_days=len(values))

    limit = sigma * std_dev
    flagged = [(idx, v) for idx, v in indexed if abs(v - mean) > limit]

    if flagged:
        logger.debug(f"{len(flagged)} outlier(s) beyond {sigma} sigma (mean={mean:.3f}, sd={std_dev:.3f})")

    return AnomalyReport(
        outliers=[v for _, v in flagged],
        outlier_indices=[idx for idx, _ in flagged],
        severity=classify_severity(len(flagged), medium_max),
        total_days=len(values),
    )
