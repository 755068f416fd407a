# plantops/core/correlation.py
import logging
import numpy as np
from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional, Sequence
from scipy import stats

from .utils import clean_value

logger = logging.getLogger(__name__)

STRENGTH_STRONG = 'strong'
STRENGTH_MODERATE = 'moderate'
STRENGTH_WEAK = 'weak'
STRENGTH_NONE = 'none'


@dataclass(frozen=True)
class ParameterSeries:
    """A parameter's daily raw values, aligned on the same date axis."""
    parameter_id: str
    name: str
    values: Sequence


@dataclass(frozen=True)
class CorrelationPair:
    param1: str
    param2: str
    correlation: Optional[float]
    strength: str
    paired_points: int = 0


def _paired_values(series_a: Sequence, series_b: Sequence):
    """Keeps only the positions where both series hold a valid number."""
    left, right = [], []
    for a, b in zip(series_a, series_b):
        a, b = clean_value(a), clean_value(b)
        if a is not None and b is not None:
            left.append(a)
            right.append(b)
    return np.asarray(left, dtype=np.float64), np.asarray(right, dtype=np.float64)


def compute_correlation(series_a: Sequence, series_b: Sequence,
                        min_points: int = 3) -> Optional[float]:
    """
    Pearson correlation over the dates where both series are valid.

    Returns None ("insufficient evidence") with fewer than `min_points`
    pairs or when either side has zero variance.

    Raises:
        ValueError: If the two series are not aligned (different lengths).
    """
    series_a, series_b = list(series_a), list(series_b)
    if len(series_a) != len(series_b):
        raise ValueError(
            f"Series length mismatch: {len(series_a)} != {len(series_b)}"
        )

    x, y = _paired_values(series_a, series_b)
    if len(x) < min_points:
        return None
    if np.std(x) == 0 or np.std(y) == 0:
        return None

    result = stats.pearsonr(x, y)
    return float(result[0])


def classify_strength(correlation: Optional[float], strong: float = 0.8,
                      moderate: float = 0.5, weak: float = 0.3) -> str:
    if correlation is None:
        return STRENGTH_NONE
    value = abs(correlation)
    if value >= strong:
        return STRENGTH_STRONG
    elif value >= moderate:
        return STRENGTH_MODERATE
    elif value >= weak:
        return STRENGTH_WEAK
    return STRENGTH_NONE


def compute_correlation_matrix(parameter_series: Sequence[ParameterSeries],
                               min_points: int = 3, strong: float = 0.8,
                               moderate: float = 0.5, weak: float = 0.3) -> List[CorrelationPair]:
    """
    Correlates every unordered pair of parameters.

    Pairs are ordered by descending |r|; pairs without a defined correlation
    go last. The sort is stable, so equal |r| keep their pairing order.
    """
    pairs = []
    for first, second in combinations(parameter_series, 2):
        x, _ = _paired_values(first.values, second.values)
        corr = compute_correlation(first.values, second.values, min_points=min_points)
        pairs.append(CorrelationPair(
            param1=first.name,
            param2=second.name,
            correlation=corr,
            strength=classify_strength(corr, strong, moderate, weak),
            paired_points=len(x),
        ))

    logger.debug(f"Computed {len(pairs)} correlation pairs over {len(parameter_series)} parameters")

    return sorted(
        pairs,
        key=lambda p: (p.correlation is None, -abs(p.correlation) if p.correlation is not None else 0.0),
    )
