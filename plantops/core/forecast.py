# plantops/core/forecast.py
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Bounds
from .statistics import linear_slope
from .utils import valid_values

logger = logging.getLogger(__name__)

RISK_LOW = 'low'
RISK_MEDIUM = 'medium'
RISK_HIGH = 'high'


@dataclass(frozen=True)
class ForecastResult:
    forecast: Optional[float]
    slope: Optional[float]
    risk: str
    risk_assessed: bool
    target_min: Optional[float] = None
    target_max: Optional[float] = None


def classify_risk(value: float, bounds: Bounds, margin: float = 0.05) -> str:
    """
    Risk of a projected value against its target range.

    'high' outside [min, max]; 'medium' below min * (1 + margin) or above
    max * (1 - margin); 'low' otherwise.
    """
    if value < bounds.min or value > bounds.max:
        return RISK_HIGH
    if value < bounds.min * (1 + margin) or value > bounds.max * (1 - margin):
        return RISK_MEDIUM
    return RISK_LOW


def forecast(values: Sequence, bounds: Bounds, horizon: int = 7,
             min_points: int = 3, margin: float = 0.05) -> ForecastResult:
    """
    Projects the series `horizon` steps ahead along its linear trend.

        forecast = last valid value + slope * horizon

    With fewer than `min_points` valid values the forecast is None and the
    risk stays 'low' with `risk_assessed` False: 'low' then means "no
    evidence", not "confirmed safe". The same applies when the bounds are
    unusable.
    """
    data = valid_values(values)
    slope = linear_slope(data, min_points=min_points)

    if slope is None:
        return ForecastResult(
            forecast=None, slope=None, risk=RISK_LOW, risk_assessed=False,
            target_min=bounds.min, target_max=bounds.max,
        )

    projected = data[-1] + slope * horizon

    if not bounds.is_valid:
        return ForecastResult(
            forecast=projected, slope=slope, risk=RISK_LOW, risk_assessed=False,
            target_min=bounds.min, target_max=bounds.max,
        )

    return ForecastResult(
        forecast=projected,
        slope=slope,
        risk=classify_risk(projected, bounds, margin),
        risk_assessed=True,
        target_min=bounds.min,
        target_max=bounds.max,
    )
